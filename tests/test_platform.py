"""
Tests for cross-platform path handling.

Tests cover:
- Default ssh_config search list
- Path expansion with ~ and environment variables
- Detecting paths that cannot be expanded
"""
from __future__ import annotations

import os
import sys
from pathlib import Path
from unittest.mock import patch

import gitbot_ssh.platform
from gitbot_ssh.platform import (
    DEFAULT_CONFIG_FILES,
    default_config_files,
    expand_path,
    is_expandable,
    is_windows,
)


class TestPlatformDetection:
    """Test platform detection functions."""

    def test_is_windows_matches_sys_platform(self) -> None:
        assert is_windows() == (sys.platform == "win32")


# ---------------------------------------------------------------------------
# Default Config Files Tests
# ---------------------------------------------------------------------------

class TestDefaultConfigFiles:
    """Test the ssh_config search list."""

    def test_user_config_first(self) -> None:
        assert default_config_files() == [
            "~/.ssh/config",
            "/etc/ssh_config",
            "/etc/ssh/ssh_config",
        ]

    def test_returns_fresh_list(self) -> None:
        files = default_config_files()
        files.clear()
        assert default_config_files() == list(DEFAULT_CONFIG_FILES)


# ---------------------------------------------------------------------------
# Path Expansion Tests
# ---------------------------------------------------------------------------

class TestPathExpansion:
    """Test path expansion with ~ and environment variables."""

    def test_expand_path_handles_tilde(self, fake_home: Path) -> None:
        """expand_path() expands ~ to home directory."""
        assert expand_path("~/.ssh/id_rsa") == fake_home / ".ssh" / "id_rsa"

    def test_expand_path_handles_path_object(self, fake_home: Path) -> None:
        assert expand_path(Path("~/.ssh")) == fake_home / ".ssh"

    def test_expand_path_absolute_unchanged(self) -> None:
        assert expand_path("/absolute/path/to/file") == Path("/absolute/path/to/file")

    def test_expand_path_unix_leaves_vars(self) -> None:
        """$VAR is only expanded on Windows."""
        with patch.object(gitbot_ssh.platform, "is_windows", lambda: False):
            with patch.dict(os.environ, {"MY_DIR": "/custom/dir"}):
                assert str(expand_path("$MY_DIR/file")) == "$MY_DIR/file"

    def test_expand_path_windows_expands_vars(self) -> None:
        """
        On Windows expand_path calls os.path.expandvars.

        $VAR syntax is used since expandvars handles it on every platform.
        """
        with patch.object(gitbot_ssh.platform, "is_windows", lambda: True):
            with patch.dict(os.environ, {"TEST_DIR": "/expanded/path"}):
                assert expand_path("$TEST_DIR/file.txt") == Path("/expanded/path/file.txt")

    def test_is_expandable(self, fake_home: Path) -> None:
        assert is_expandable("~/.ssh/config")
        assert is_expandable("/etc/ssh/ssh_config")
        assert is_expandable("relative/config")

    def test_unknown_user_is_not_expandable(self) -> None:
        assert not is_expandable("~no_such_user_gitbot/.ssh/config")

    def test_missing_home_is_not_expandable(self) -> None:
        with patch("pathlib.Path.expanduser", side_effect=RuntimeError("no home")):
            assert not is_expandable("~/.ssh/config")
