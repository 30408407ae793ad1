"""
Configuration loading for paperfetch.

Settings come from four layers, highest precedence first: command-line
overrides, ``PAPERFETCH_*`` environment variables, the YAML config file, and
the defaults in :mod:`paperfetch.constants`. The result is an immutable
:class:`ClientConfig` that is built once and passed explicitly to every
operation.
"""

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import platformdirs
import yaml

from paperfetch.constants import (
    APP_NAME,
    CONFIG_FILE_NAME,
    CONFIG_KEY_BASE_URL,
    CONFIG_KEY_CHANNEL,
    CONFIG_KEY_CHUNK_SIZE,
    CONFIG_KEY_LIMIT,
    CONFIG_KEY_TIMEOUT,
    DEFAULT_BASE_URL,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    ENV_PREFIX,
)
from paperfetch.download.interfaces import Channel
from paperfetch.exceptions import ConfigFileError, ConfigValidationError
from paperfetch.log_utils import logger
from paperfetch.utils import get_user_agent

# Keys that may be overridden from the environment as PAPERFETCH_<KEY>
ENV_OVERRIDABLE_KEYS = (
    CONFIG_KEY_BASE_URL,
    CONFIG_KEY_TIMEOUT,
    CONFIG_KEY_CHANNEL,
    CONFIG_KEY_LIMIT,
)


@dataclass(frozen=True)
class ClientConfig:
    """Immutable settings shared by the metadata client and the downloader."""

    base_url: str = DEFAULT_BASE_URL
    """Root URL of the Fill service, without the /v3 prefix"""

    timeout: float = DEFAULT_REQUEST_TIMEOUT
    """Upper bound in seconds for a single request, body transfer included"""

    channel: Optional[Channel] = None
    """Restrict "latest build" lookups to this channel (None means any)"""

    limit: int = 0
    """Keep only the last N entries of list results (0 means no limit)"""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    """Bytes read per chunk while streaming an artifact"""

    user_agent: str = dataclasses.field(default_factory=get_user_agent)
    """User-Agent header sent with every request"""

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        if self.timeout <= 0:
            raise ConfigValidationError(
                "Timeout must be positive", field="timeout", value=str(self.timeout)
            )
        if self.limit < 0:
            raise ConfigValidationError(
                "Limit must not be negative", field="limit", value=str(self.limit)
            )
        if self.chunk_size <= 0:
            raise ConfigValidationError(
                "Chunk size must be positive",
                field="chunk_size",
                value=str(self.chunk_size),
            )

    def with_overrides(self, **changes: Any) -> "ClientConfig":
        """Return a copy with the given fields replaced; None values are ignored."""
        filtered = {key: value for key, value in changes.items() if value is not None}
        return dataclasses.replace(self, **filtered) if filtered else self


def get_config_file_path() -> str:
    """Return the platformdirs-managed location of the YAML config file."""
    return os.path.join(platformdirs.user_config_dir(APP_NAME), CONFIG_FILE_NAME)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the paperfetch configuration YAML.

    Parameters:
        path (Optional[str]): Explicit config file. When given, the file must exist.
            When omitted, the platformdirs location is used and a missing file
            yields an empty mapping.

    Returns:
        Dict[str, Any]: The parsed mapping (empty for an empty file).

    Raises:
        ConfigFileError: The file cannot be read, is not valid YAML, or does not
            contain a mapping.
    """
    explicit = path is not None
    config_path = path if path is not None else get_config_file_path()

    if not os.path.exists(config_path):
        if explicit:
            raise ConfigFileError("Configuration file not found", path=config_path)
        logger.debug(f"No configuration file at {config_path}; using defaults")
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except OSError as e:
        raise ConfigFileError(
            "Could not read configuration file", path=config_path, details=str(e)
        ) from e
    except yaml.YAMLError as e:
        raise ConfigFileError(
            "Invalid YAML in configuration file", path=config_path, details=str(e)
        ) from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigFileError(
            "Configuration file must contain a mapping",
            path=config_path,
            details=f"got {type(config).__name__}",
        )

    logger.debug(f"Loaded configuration from {config_path}")
    return config


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Collect PAPERFETCH_* settings from the environment, keyed like the YAML file."""
    environ = os.environ if environ is None else environ
    overrides: Dict[str, str] = {}
    for key in ENV_OVERRIDABLE_KEYS:
        value = environ.get(f"{ENV_PREFIX}{key}")
        if value is not None and value.strip():
            overrides[key] = value.strip()
    return overrides


def _coerce_number(key: str, value: Any, kind: type) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(
            f"Invalid value for {key}", field=key, value=str(value)
        ) from e


def parse_channel(value: Any) -> Optional[Channel]:
    """Parse a channel name case-insensitively; empty values mean no filter."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return Channel.parse(str(value))
    except ValueError as e:
        raise ConfigValidationError(
            "Unknown channel", field=CONFIG_KEY_CHANNEL, value=str(value)
        ) from e


def build_client_config(
    raw: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> ClientConfig:
    """
    Merge file settings, environment variables and explicit overrides.

    Parameters:
        raw: Mapping loaded from the YAML file (keys such as "BASE_URL").
        environ: Environment to read PAPERFETCH_* variables from; defaults to os.environ.
        **overrides: ClientConfig field values from the command line; None is ignored.

    Returns:
        ClientConfig: The resolved, validated configuration.

    Raises:
        ConfigValidationError: A value cannot be converted or is out of range.
    """
    merged: Dict[str, Any] = dict(raw or {})
    merged.update(env_overrides(environ))

    fields: Dict[str, Any] = {}
    if merged.get(CONFIG_KEY_BASE_URL):
        fields["base_url"] = str(merged[CONFIG_KEY_BASE_URL])
    if merged.get(CONFIG_KEY_TIMEOUT) is not None:
        fields["timeout"] = _coerce_number(
            CONFIG_KEY_TIMEOUT, merged[CONFIG_KEY_TIMEOUT], float
        )
    if merged.get(CONFIG_KEY_LIMIT) is not None:
        fields["limit"] = _coerce_number(CONFIG_KEY_LIMIT, merged[CONFIG_KEY_LIMIT], int)
    if merged.get(CONFIG_KEY_CHUNK_SIZE) is not None:
        fields["chunk_size"] = _coerce_number(
            CONFIG_KEY_CHUNK_SIZE, merged[CONFIG_KEY_CHUNK_SIZE], int
        )
    channel = parse_channel(merged.get(CONFIG_KEY_CHANNEL))
    if channel is not None:
        fields["channel"] = channel

    if isinstance(overrides.get("channel"), str):
        overrides["channel"] = parse_channel(overrides["channel"])

    return ClientConfig(**fields).with_overrides(**overrides)
