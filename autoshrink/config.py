"""Centralized default configuration for autoshrink.

Modify these values to change runtime defaults for the watcher and compressor.
"""

from pathlib import Path

# Compression defaults
DEFAULT_QUALITY = 0.5  # fraction 0-1; None lets the codec choose
DEFAULT_CONVERT_SIZE = 100 * 1024  # bytes; larger files are compressed, larger PNGs become JPEG
DEFAULT_MAX_WIDTH = None  # None = unbounded
DEFAULT_MAX_HEIGHT = None
DEFAULT_WIDTH = None  # fixed output size; overrides the max bounds when set
DEFAULT_HEIGHT = None
DEFAULT_IGNORED_PATHS = ()

# Formats the filter accepts, by lower-cased extension without the dot
IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg"})

# Watcher behavior
DEFAULT_STABLE_SECONDS = 1.0
DEFAULT_STABLE_TIMEOUT = 30.0
TMP_SUFFIX = ".autoshrink.tmp"

# Settings persistence, relative to the vault root
DEFAULT_SETTINGS_DIRNAME = ".autoshrink"
DEFAULT_SETTINGS_FILENAME = "settings.json"

# Logging defaults
DEFAULT_LOG_DIR = str(Path(__file__).resolve().parents[1] / "logs")
DEFAULT_LOG_FILENAME = "autoshrink.log"
# Default log level: one of 'debug', 'info', 'warning', 'quiet'
DEFAULT_LOG_LEVEL = "info"
NOTICE_LOGGER = "autoshrink.notice"
