import importlib.metadata

try:
    __version__ = importlib.metadata.version("chatdist")
except importlib.metadata.PackageNotFoundError:
    __version__ = "unknown"
