"""
Cross-platform path handling.

Provides:
- The default ssh_config search list (user config first)
- Path expansion
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

# Precedence order: first file wins for scalar options.
DEFAULT_CONFIG_FILES: tuple[str, ...] = (
    "~/.ssh/config",
    "/etc/ssh_config",
    "/etc/ssh/ssh_config",
)


def is_windows() -> bool:
    """Check if running on Windows."""
    return sys.platform == "win32"


def default_config_files() -> list[str]:
    """Return the default ssh_config search list, user config first."""
    return list(DEFAULT_CONFIG_FILES)


def expand_path(path: str | Path) -> Path:
    """
    Expand a path, handling ~ and environment variables.

    On Unix: expands ~ to $HOME
    On Windows: expands ~ to %USERPROFILE%, also expands %VAR% syntax

    Args:
        path: Path string or Path object to expand

    Returns:
        Expanded Path object

    Raises:
        RuntimeError: If the home directory cannot be determined for ``~``
    """
    path_str = str(path)

    if is_windows():
        path_str = os.path.expandvars(path_str)

    return Path(path_str).expanduser()


def is_expandable(path: str | Path) -> bool:
    """Check whether ``path`` can be expanded without error."""
    try:
        expand_path(path)
    except (RuntimeError, KeyError):
        # No home directory for the current user (or ~user is unknown)
        return False
    return True
