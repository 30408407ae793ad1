# src/paperfetch/utils.py
import importlib.metadata
from typing import Optional

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE: Optional[str] = None


def get_package_version() -> str:
    """Return the installed paperfetch version, or "unknown" when not installed."""
    try:
        return importlib.metadata.version("paperfetch")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `paperfetch/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        _USER_AGENT_CACHE = f"paperfetch/{get_package_version()}"

    return _USER_AGENT_CACHE


def format_size(num_bytes: int) -> str:
    """Human-readable size used in download log lines (MB at or above 1 MB)."""
    size_mb = num_bytes / (1024 * 1024)
    if size_mb >= 1.0:
        return f"{size_mb:.1f} MB"
    return f"{num_bytes} bytes"
