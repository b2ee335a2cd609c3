from os import getenv
from pathlib import Path

CATALOG_URL = getenv("SETAPP_CLI_CATALOG_URL", "https://store.setapp.com/store/api/v8/en")

# the cache dir is created lazily on the first successful save
CACHE_DIR = Path(getenv("SETAPP_CLI_CACHE_DIR", Path.home() / ".cache" / "setapp-cli")).expanduser()
CACHE_FILENAME = "store-api-cache.json"

DEST_DIR = Path(getenv("SETAPP_CLI_DEST_DIR", "/Applications/Setapp"))
USE_SUDO = getenv("SETAPP_CLI_USE_SUDO", "1").lower() not in ("0", "false", "no", "off")

LOG_LEVEL = getenv("SETAPP_CLI_LOG_LEVEL", "INFO").upper()

# cache-control: public, max-age=14400 is what the store API normally sends
DEFAULT_MAX_AGE = 14400
CATALOG_TIMEOUT = 30.0

BUNDLE_SUFFIX = ".app"
TEMP_PREFIX = "setapp_"
