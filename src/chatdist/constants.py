"""
Constants and configuration values for chatdist.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

APP_NAME = "chatdist"

# Hosting provider endpoints
HUGGINGFACE_ENDPOINT = "https://huggingface.co"
HF_MIRROR_ENDPOINT = "https://hf-mirror.com"
AIFASTHUB_ENDPOINT = "https://aifasthub.com"
GITHUB_API_BASE = "https://api.github.com/repos"
PGYER_APP_VIEW_URL = "https://www.pgyer.com/apiv2/app/view"
PGYER_INSTALL_URL_TEMPLATE = "https://www.pgyer.com/app/install/{build_key}"
PGYER_SHORTCUT_URL_TEMPLATE = "https://www.pgyer.com/{shortcut}"
ITUNES_LOOKUP_URL = "https://itunes.apple.com/lookup"
IP_API_URL = "http://ip-api.com/json/"
IP_API_FIELDS = "status,message,country,countryCode,region,regionName"

# Fixed store links
APP_STORE_APP_ID = "6740192639"
APP_STORE_URL = f"https://apps.apple.com/us/app/rwkv-chat/id{APP_STORE_APP_ID}"
PLAY_STORE_URL = "https://play.google.com/store/apps/details?id=com.rwkvzone.chat"
TESTFLIGHT_URL = "https://testflight.apple.com/join/DaMqCNKh"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Network timeouts (in seconds)
LISTING_REQUEST_TIMEOUT = 30
STORE_LOOKUP_TIMEOUT = 10
LOCATION_LOOKUP_TIMEOUT = 5

# Per-IP geolocation cache; ip-api.com allows about 45 requests per minute
LOCATION_CACHE_TTL_SECONDS = 600
LOCATION_CACHE_MAX_ENTRIES = 1024

# Provider calls are single-attempt; a failed type waits for the next refresh cycle
PROVIDER_REQUEST_RETRIES = 0
MAX_REDIRECTS = 5

# Sentinel version for sources that expose no version
LATEST_VERSION_SENTINEL = "latest"

# Release notes
RELEASE_NOTES_DIR_NAME = "release-notes"
RELEASE_NOTES_EXTENSION = ".md"
DEFAULT_RELEASE_NOTES_VERSION_LINES = (
    "3.0",
    "3.1",
    "3.2",
    "3.3",
    "3.4",
    "3.5",
    "3.6",
    "3.7",
    "1.6",
    "1.7",
    "1.8",
    "1.9",
)

# Locales
SUPPORTED_LOCALES = ("zh-CN", "zh-TW", "ja", "ko", "en", "ru")
DEFAULT_LOCALE = "en"

# Refresh scheduling
DEFAULT_REFRESH_INTERVAL_MINUTES = 30
SCHEDULER_JOIN_TIMEOUT = 5.0

# Server defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3462

# Configuration
CONFIG_FILE_NAME = "chatdist.yaml"
CONFIG_FILE_ENV_VAR = "CHATDIST_CONFIG_FILE"
DATABASE_FILE_NAME = "distributions.db"
DEFAULT_GITHUB_REPO = "RWKV-APP/RWKV_APP"
DEFAULT_PGYER_APP_KEY = "rwkvchat"

# Error types reported in fetch results
ERROR_TYPE_NETWORK = "network"
ERROR_TYPE_HTTP = "http"
ERROR_TYPE_PAYLOAD = "payload"
ERROR_TYPE_CONFIG = "config"
ERROR_TYPE_EMPTY = "empty"
ERROR_TYPE_UNKNOWN = "unknown"

# Logging configuration
LOGGER_NAME = "chatdist"
LOG_LEVEL_ENV_VAR = "CHATDIST_LOG_LEVEL"
LOG_FILE_NAME = "chatdist.log"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Filename parsing patterns
RWKV_CHAT_FILENAME_PATTERN = r"rwkv_chat_(\d+\.\d+\.\d+)_(\d+)(?:_|\.)"
GENERIC_VERSION_PATTERN = r"(\d+\.\d+\.\d+)(?:\+(\d+)|_(\d+))?"
RELEASE_TAG_PATTERN = r"v?(\d+\.\d+\.\d+)(?:\+(\d+)|-(\d+))?"
RELEASE_NOTE_FILENAME_PATTERN = r"^(\d+)-(.+)\.md$"
