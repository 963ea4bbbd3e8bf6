# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared filesystem locations for DependViz logs.

- Configurable data root directory (default: ~/.dependviz/)
- logs/ subdirectory for structured Python logging output
- Date-based log filenames (dependviz_YYYYMMDD.log)
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Default data root directory (user home)
DEFAULT_DATA_ROOT = Path.home() / ".dependviz"

LOGS_SUBDIR = "logs"


def get_default_data_root() -> Path:
    """Get the default data root directory.

    Returns:
        Path to ~/.dependviz/
    """
    return DEFAULT_DATA_ROOT


def get_current_utc_date() -> str:
    """Get the current UTC date in YYYYMMDD format."""
    return datetime.now(timezone.utc).strftime("%Y%m%d")


def build_log_filename(prefix: str = "dependviz", extension: str = "log") -> str:
    """Build a dated log filename.

    Args:
        prefix: Filename prefix.
        extension: File extension without dot.

    Returns:
        Filename like "dependviz_20251211.log"

    Raises:
        ValueError: If prefix contains path separators or parent references.
    """
    if "/" in prefix or "\\" in prefix or ".." in prefix or "\0" in prefix:
        raise ValueError(f"prefix must be a plain filename component: {prefix}")
    return f"{prefix}_{get_current_utc_date()}.{extension}"


def get_logs_dir(data_root: Optional[Path] = None) -> Path:
    """Get the log directory.

    Args:
        data_root: Data root directory. If None, uses default.

    Returns:
        Path to {data_root}/logs/
    """
    root = data_root or DEFAULT_DATA_ROOT
    return root / LOGS_SUBDIR


def ensure_log_directories(data_root: Optional[Path] = None) -> Path:
    """Create the log directory if it doesn't exist.

    Args:
        data_root: Data root directory. If None, uses default.

    Returns:
        Path to the log directory.
    """
    logs_dir = get_logs_dir(data_root)
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir
