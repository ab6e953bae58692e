"""
Configuration loading for chatdist.

Configuration is a plain dict with UPPERCASE keys. Values come from three
layers, later layers winning:

1. Built-in defaults
2. An optional YAML file ($CHATDIST_CONFIG_FILE, or chatdist.yaml in the
   platformdirs user config directory)
3. Environment variables
"""

import os
from typing import Any, Dict, List, Optional

import platformdirs
import yaml

from chatdist.constants import (
    APP_NAME,
    CONFIG_FILE_ENV_VAR,
    CONFIG_FILE_NAME,
    DATABASE_FILE_NAME,
    DEFAULT_GITHUB_REPO,
    DEFAULT_HOST,
    DEFAULT_LOCALE,
    DEFAULT_PGYER_APP_KEY,
    DEFAULT_PORT,
    DEFAULT_REFRESH_INTERVAL_MINUTES,
    DEFAULT_RELEASE_NOTES_VERSION_LINES,
    HUGGINGFACE_ENDPOINT,
    LOG_LEVEL_ENV_VAR,
    RELEASE_NOTES_DIR_NAME,
)
from chatdist.exceptions import ConfigFileError, ConfigValidationError
from chatdist.log_utils import logger

# Config key -> environment variable name
ENV_OVERRIDES: Dict[str, str] = {
    "HF_DATASETS_ID": "HF_DATASETS_ID",
    "HF_TOKEN": "HF_TOKEN",
    "HF_ENDPOINT": "HF_ENDPOINT",
    "GITHUB_REPO": "GITHUB_REPO",
    "GITHUB_TOKEN": "GITHUB_TOKEN",
    "PGYER_API_KEY": "PGYER_API_KEY",
    "PGYER_APP_KEY": "PGYER_APP_KEY",
    "DATABASE_URL": "DATABASE_URL",
    "RELEASE_NOTES_DIR": "CHATDIST_RELEASE_NOTES_DIR",
    "RELEASE_NOTES_VERSION_LINES": "CHATDIST_RELEASE_NOTES_VERSION_LINES",
    "DEFAULT_LOCALE": "CHATDIST_DEFAULT_LOCALE",
    "REFRESH_INTERVAL_MINUTES": "CHATDIST_REFRESH_INTERVAL_MINUTES",
    "REFRESH_ON_STARTUP": "CHATDIST_REFRESH_ON_STARTUP",
    "HOST": "CHATDIST_HOST",
    "PORT": "CHATDIST_PORT",
    "LOG_LEVEL": LOG_LEVEL_ENV_VAR,
    "LOG_DIR": "CHATDIST_LOG_DIR",
}

_INT_KEYS = ("REFRESH_INTERVAL_MINUTES", "PORT")
_BOOL_KEYS = ("REFRESH_ON_STARTUP",)
_TRUE_VALUES = {"1", "true", "yes", "on", "y"}
_FALSE_VALUES = {"0", "false", "no", "off", "n", ""}


def get_config_file_path() -> str:
    """
    Return the configuration file path, honoring the CHATDIST_CONFIG_FILE override.
    """
    override = os.environ.get(CONFIG_FILE_ENV_VAR)
    if override:
        return override
    return os.path.join(platformdirs.user_config_dir(APP_NAME), CONFIG_FILE_NAME)


def get_default_database_url() -> str:
    """
    Build the default SQLite URL inside the platformdirs user data directory.
    """
    data_dir = platformdirs.user_data_dir(APP_NAME)
    return f"sqlite:///{os.path.join(data_dir, DATABASE_FILE_NAME)}"


def get_default_config() -> Dict[str, Any]:
    return {
        "HF_DATASETS_ID": "",
        "HF_TOKEN": "",
        "HF_ENDPOINT": HUGGINGFACE_ENDPOINT,
        "GITHUB_REPO": DEFAULT_GITHUB_REPO,
        "GITHUB_TOKEN": "",
        "PGYER_API_KEY": "",
        "PGYER_APP_KEY": DEFAULT_PGYER_APP_KEY,
        "DATABASE_URL": get_default_database_url(),
        "RELEASE_NOTES_DIR": os.path.join(os.getcwd(), "data", RELEASE_NOTES_DIR_NAME),
        "RELEASE_NOTES_VERSION_LINES": list(DEFAULT_RELEASE_NOTES_VERSION_LINES),
        "DEFAULT_LOCALE": DEFAULT_LOCALE,
        "REFRESH_INTERVAL_MINUTES": DEFAULT_REFRESH_INTERVAL_MINUTES,
        "REFRESH_ON_STARTUP": True,
        "HOST": DEFAULT_HOST,
        "PORT": DEFAULT_PORT,
        "LOG_LEVEL": "INFO",
        "LOG_DIR": None,
    }


def _read_config_file(config_path: str) -> Dict[str, Any]:
    """
    Read and parse the YAML configuration file.

    Returns an empty dict if the file does not exist.

    Raises:
        ConfigFileError: If the file cannot be read, is not valid YAML, or is not a mapping.
    """
    if not os.path.exists(config_path):
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigFileError(
            f"Invalid YAML in configuration file {config_path}", str(e)
        ) from e
    except OSError as e:
        raise ConfigFileError(
            f"Could not read configuration file {config_path}", str(e)
        ) from e

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigFileError(
            f"Configuration file {config_path} must contain a mapping",
            f"got {type(loaded).__name__}",
        )

    logger.debug(f"Loaded configuration from {config_path}")
    return {str(key).upper(): value for key, value in loaded.items()}


def _coerce_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigValidationError(f"{key} must be an integer", f"got {value!r}")
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(
            f"{key} must be an integer", f"got {value!r}"
        ) from e
    if parsed <= 0:
        raise ConfigValidationError(f"{key} must be positive", f"got {parsed}")
    return parsed


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigValidationError(f"{key} must be a boolean", f"got {value!r}")


def _coerce_string_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def normalize_database_url(url: str) -> str:
    """
    Accept `file:` prefixed SQLite paths and turn them into SQLAlchemy URLs.

    `file:./dev.db` becomes `sqlite:///./dev.db`; any other value is returned unchanged.
    """
    if url.startswith("file:"):
        return f"sqlite:///{url[len('file:'):]}"
    return url


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load chatdist configuration from defaults, the YAML file, and the environment.

    Parameters:
        config_path (Optional[str]): Explicit YAML file path. Defaults to get_config_file_path().

    Returns:
        Dict[str, Any]: The merged configuration dictionary with typed values.

    Raises:
        ConfigFileError: If the YAML file exists but cannot be parsed.
        ConfigValidationError: If an integer or boolean value is malformed.
    """
    config = get_default_config()
    config.update(_read_config_file(config_path or get_config_file_path()))

    for key, env_var in ENV_OVERRIDES.items():
        env_value = os.environ.get(env_var)
        if env_value is not None and env_value != "":
            config[key] = env_value

    for key in _INT_KEYS:
        config[key] = _coerce_int(key, config[key])
    for key in _BOOL_KEYS:
        config[key] = _coerce_bool(key, config[key])

    config["RELEASE_NOTES_VERSION_LINES"] = _coerce_string_list(
        config.get("RELEASE_NOTES_VERSION_LINES")
    )
    config["DATABASE_URL"] = normalize_database_url(str(config["DATABASE_URL"]))
    config["HF_ENDPOINT"] = str(config["HF_ENDPOINT"] or HUGGINGFACE_ENDPOINT).rstrip(
        "/"
    )

    for key in ("HF_DATASETS_ID", "HF_TOKEN", "GITHUB_TOKEN", "PGYER_API_KEY"):
        config[key] = str(config.get(key) or "").strip()

    return config
