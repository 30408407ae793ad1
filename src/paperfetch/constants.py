"""
Constants and configuration values for paperfetch.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# Fill metadata service
DEFAULT_BASE_URL = "https://fill.papermc.io"
API_PREFIX = "/v3"

# Network timeouts (in seconds)
DEFAULT_REQUEST_TIMEOUT = 30.0

# Download settings
DEFAULT_CHUNK_SIZE = 8192
PROGRESS_LOG_EVERY_CHUNKS = 100

# Truncate error bodies attached to TransportError
MAX_ERROR_BODY_CHARS = 512

# Canonical artifact key for the server application of a build
DEFAULT_ARTIFACT_KEY = "server:default"

# Version identifier markers that flag a prerelease (compared lower-cased)
PRERELEASE_MARKERS = ("snapshot", "-pre", "-rc")

# Logging configuration
LOGGER_NAME = "paperfetch"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_NAME = "paperfetch.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Configuration file names
APP_NAME = "paperfetch"
CONFIG_FILE_NAME = "paperfetch.yaml"

# Configuration keys (YAML file)
CONFIG_KEY_BASE_URL = "BASE_URL"
CONFIG_KEY_TIMEOUT = "TIMEOUT"
CONFIG_KEY_CHANNEL = "CHANNEL"
CONFIG_KEY_LIMIT = "LIMIT"
CONFIG_KEY_CHUNK_SIZE = "CHUNK_SIZE"

# Environment variable names
LOG_LEVEL_ENV_VAR = "PAPERFETCH_LOG_LEVEL"
ENV_PREFIX = "PAPERFETCH_"
