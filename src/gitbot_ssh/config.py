"""
SSH config file parsing matching OpenSSH precedence rules.

Provides:
- parse_file: Parse one ssh_config file for a given host
- resolve: Merge settings for a host across an ordered list of files
- translate: Reduce merged settings to the canonical options we use
- SSHConfig: Config file list bound to an optional event emitter

Supports:
- Host pattern matching with wildcards (*, ?) and negation (!)
- Match blocks (``all`` and ``host`` criteria)
- Include directives with globbing, relative to the top-level file
- First match wins for single-value options, IdentityFile and
  CertificateFile accumulate

Each file is scanned once with two accumulators. Directives before the
first Host/Match line are collected as globals, directives inside
matching blocks as settings. At the end of the file the two are merged
with settings taking precedence, except for list options which are
concatenated globals first.
"""
from __future__ import annotations

import glob
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Sequence

from gitbot_ssh.blocks import BlockState, host_block_matches, match_block_matches
from gitbot_ssh.errors import IncludeDepthError
from gitbot_ssh.events import EventEmitter, EventType
from gitbot_ssh.lexer import (
    RawValue,
    parse_value,
    split_directive,
    tokenize_config_value,
    unquote,
)
from gitbot_ssh.platform import default_config_files, expand_path, is_expandable

logger = logging.getLogger(__name__)

# Raw merged directives: lower-cased key to a value, a list of values
# (LIST_OPTIONS) or a (kind, value) tuple ("proxy").
SettingsMap = dict[str, Any]

# Options that accumulate (multiple values allowed)
LIST_OPTIONS = frozenset({
    "identityfile",
    "certificatefile",
})

# ProxyJump and ProxyCommand share one slot
PROXY_OPTIONS = ("proxyjump", "proxycommand")

# Same limit as OpenSSH's READCONF_MAX_DEPTH
MAX_INCLUDE_DEPTH = 16

_BLANK_OR_COMMENT = re.compile(r"^\s*(?:#.*)?$")


@dataclass
class ParseState:
    """Accumulators for a single file scan."""
    globals: SettingsMap = field(default_factory=dict)
    settings: SettingsMap = field(default_factory=dict)
    block: BlockState = BlockState.NO_BLOCK

    @property
    def block_seen(self) -> bool:
        return self.block is not BlockState.NO_BLOCK

    @property
    def block_matched(self) -> bool:
        return self.block is BlockState.MATCHED

    def fold_proxy(self) -> None:
        """Move proxyjump/proxycommand from settings into the proxy slot."""
        for proxy_key in PROXY_OPTIONS:
            if proxy_key in self.settings:
                self.settings["proxy"] = (proxy_key, self.settings.pop(proxy_key))

    def merged(self) -> SettingsMap:
        """Merge globals with settings; settings win, lists concatenate."""
        result = dict(self.globals)
        for key, value in self.settings.items():
            if key in LIST_OPTIONS and key in result:
                result[key] = result[key] + value
            else:
                result[key] = value
        return result


@dataclass
class ResolvedHostConfig:
    """
    Canonical options for a host.

    Only the options credential resolution needs are exposed; every other
    directive is dropped by translate().
    """
    username: str | None = None
    private_key_paths: list[str] = field(default_factory=list)

    @property
    def private_key(self) -> str | None:
        """The first configured identity file, if any."""
        return self.private_key_paths[0] if self.private_key_paths else None


def _copy_settings(settings: SettingsMap) -> SettingsMap:
    """Copy a settings map so list values can be appended to safely."""
    return {
        key: list(value) if isinstance(value, list) else value
        for key, value in settings.items()
    }


def _read_lines(path: Path) -> list[str]:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read().splitlines()


def included_file_paths(base_dir: str | Path, value: str) -> list[str]:
    """
    Expand an Include value into the regular files it names.

    Each token is expanded for ``~``, joined onto ``base_dir`` when
    relative and globbed. Matches that are not regular files are dropped.
    """
    paths: list[str] = []
    for token in tokenize_config_value(value):
        if not is_expandable(token):
            logger.debug("Include path %r cannot be expanded, skipped", token)
            continue
        pattern = os.path.join(str(base_dir), str(expand_path(token)))
        paths.extend(sorted(p for p in glob.glob(pattern) if os.path.isfile(p)))
    return paths


def parse_file(
    path: str | Path,
    host: str,
    settings: SettingsMap | None = None,
    base_dir: str | Path | None = None,
    *,
    visited: frozenset[str] = frozenset(),
    depth: int = 0,
) -> SettingsMap:
    """
    Parse the settings in ``path`` that apply to ``host``.

    ``settings`` seeds the result: values already present win over values
    parsed here, and list options parsed here are appended to them. The
    seed itself is never modified.

    Args:
        path: Config file to parse (``~`` is expanded)
        host: Hostname being resolved
        settings: Settings from earlier files or the including file
        base_dir: Directory relative Include paths are joined onto;
                  defaults to the directory of ``path``
        visited: Real paths of the files on the current Include chain
        depth: Include nesting depth of this file

    Returns:
        A new settings map

    Raises:
        MatchConditionError: If a Match line mixes ``all`` with other criteria
        IncludeDepthError: If Include directives nest too deeply
    """
    seed = _copy_settings(settings or {})

    if depth > MAX_INCLUDE_DEPTH:
        raise IncludeDepthError(
            f"Include nested too deeply ({depth} levels) at {path}",
            depth=depth,
            config_path=str(path),
            host=host,
        )

    file = Path(os.path.abspath(expand_path(path)))
    if base_dir is None:
        base_dir = file.parent

    real = os.path.realpath(file)
    if real in visited:
        logger.warning("Include cycle through %s skipped", file)
        return seed

    try:
        lines = _read_lines(file)
    except OSError as e:
        logger.debug("Skipping unreadable config %s: %s", file, e)
        return seed

    visited = visited | {real}
    state = ParseState(settings=seed)

    def include(target: SettingsMap, raw: str) -> SettingsMap:
        for include_path in included_file_paths(base_dir, raw):
            target = parse_file(
                include_path,
                host,
                target,
                base_dir,
                visited=visited,
                depth=depth + 1,
            )
        return target

    def apply(target: SettingsMap, key: str, value: RawValue, raw: str) -> SettingsMap:
        if key in LIST_OPTIONS:
            target.setdefault(key, []).append(value)
        elif key == "include":
            target = include(target, raw)
        elif key not in target and key not in state.settings:
            target[key] = value
        return target

    for line in lines:
        if _BLANK_OR_COMMENT.match(line):
            continue

        directive = split_directive(line)
        if directive is None:
            logger.debug("Ignoring malformed line in %s: %r", file, line)
            continue

        key, raw = directive
        value = parse_value(raw)

        if key == "host":
            state.block = BlockState.from_match(
                host_block_matches(unquote(raw.strip()), host)
            )
            state.settings["host"] = host
        elif key == "match":
            state.block = BlockState.from_match(
                match_block_matches(unquote(raw.strip()), host, config_path=str(file))
            )
        elif not state.block_seen:
            state.globals = apply(state.globals, key, value, raw.strip())
        elif state.block_matched:
            state.settings = apply(state.settings, key, value, raw.strip())

        state.fold_proxy()

    return state.merged()


def expandable_default_files() -> list[str]:
    """Filter the default config files down to those that can be expanded."""
    return [path for path in default_config_files() if is_expandable(path)]


def resolve(host: str, files: Iterable[str | Path] | None = None) -> SettingsMap:
    """
    Merge the settings for ``host`` across ``files``.

    Each file's result seeds the next, so earlier files win for single
    value options and list options accumulate in file order. Missing and
    unreadable files contribute nothing.

    Args:
        host: Hostname being resolved
        files: Config files in precedence order (defaults to the user
               config followed by the system-wide configs)

    Returns:
        Raw merged settings with lower-cased keys
    """
    if files is None:
        files = expandable_default_files()

    settings: SettingsMap = {}
    for path in files:
        settings = parse_file(path, host, settings)
    return settings


def _as_text(value: RawValue) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def translate(settings: SettingsMap) -> ResolvedHostConfig:
    """
    Translate raw settings into canonical options.

    ``identityfile`` becomes ``private_key_paths`` and ``user`` becomes
    ``username``. Everything else is dropped.
    """
    config = ResolvedHostConfig()

    if "user" in settings:
        config.username = _as_text(settings["user"])

    if "identityfile" in settings:
        config.private_key_paths = [_as_text(v) for v in settings["identityfile"]]

    return config


class SSHConfig:
    """
    An ordered list of ssh_config files.

    Usage:
        config = SSHConfig()  # user config, then system-wide configs
        settings = config.resolve("github.com")
        host_config = config.lookup("github.com")

        # Or load from specific files
        config = SSHConfig(config_files=["/path/to/config"])
    """

    def __init__(
        self,
        config_files: Sequence[str | Path] | None = None,
        emitter: EventEmitter | None = None,
    ) -> None:
        """
        Args:
            config_files: Specific config files to load, in precedence
                          order (overrides the default list)
            emitter: Receives a RESOLVE event per resolution
        """
        if config_files is None:
            config_files = expandable_default_files()
        self.config_files: tuple[str | Path, ...] = tuple(config_files)
        self._emitter = emitter

    def resolve(self, host: str) -> SettingsMap:
        """Raw merged settings for ``host``."""
        settings = resolve(host, self.config_files)
        if self._emitter:
            self._emitter.emit(
                EventType.RESOLVE,
                host=host,
                files=[str(f) for f in self.config_files],
                keys=sorted(settings),
            )
        return settings

    def lookup(self, host: str) -> ResolvedHostConfig:
        """Canonical options for ``host``."""
        return translate(self.resolve(host))


def get_ssh_config() -> SSHConfig:
    """Get the default SSH config (user + system configs)."""
    return SSHConfig()
