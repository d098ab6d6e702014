"""
Credential resolution for git operations over SSH.

Provides:
- HostConfigOverrides: Static host to credential table set at startup
- StaticOverrideCredential, KeyFileCredential, AgentCredential: the
  credentials a git transport can be handed
- CredentialResolver: Picks a credential for a user and host

Resolution order, first success wins:
1. The override table entry for the exact hostname, else its "*" entry
2. The first expandable IdentityFile ssh_config resolves for the host
3. The SSH agent, with only a username

The override table is written once, before any resolution, and only read
afterwards. Readers take no lock.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, ClassVar, Iterator, Mapping, Sequence, Union

import asyncssh

from gitbot_ssh.auth import (
    AuthConfig,
    create_agent_auth,
    create_key_auth,
    create_password_auth,
    get_agent_keys,
    load_private_key,
)
from gitbot_ssh.config import SSHConfig
from gitbot_ssh.errors import OverridesAlreadyConfigured, SSHError
from gitbot_ssh.events import EventEmitter, EventType
from gitbot_ssh.platform import expand_path, is_expandable

logger = logging.getLogger(__name__)

# Override entry keys that must never reach logs
SECRET_KEYS = frozenset({"password", "passphrase"})

# File keys and agent keys share algorithm and public_data
KeyLike = Union[asyncssh.SSHKey, asyncssh.SSHKeyPair]


class CredentialSource(str, Enum):
    """Where a credential came from."""
    STATIC_OVERRIDE = "static_override"
    KEY_FILE = "key_file"
    AGENT = "agent"


class HostConfigOverrides(Mapping[str, Mapping[str, Any]]):
    """
    Read-only table of per-host credential settings.

    Keys are exact hostnames or ``"*"`` for every other host. Values are
    opaque to resolution; the usual keys are ``username``,
    ``private_key``, ``public_key``, ``passphrase`` and ``password``.

    Usage:
        overrides = HostConfigOverrides({
            "*": {"username": "git", "private_key": "~/.ssh/id_rsa"},
            "github.com": {"username": "git", "private_key": "~/.ssh/id_github"},
        })
    """

    WILDCARD = "*"

    def __init__(self, table: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        entries = {
            str(host): MappingProxyType(dict(entry))
            for host, entry in (table or {}).items()
        }
        self._table: Mapping[str, Mapping[str, Any]] = MappingProxyType(entries)

    def __getitem__(self, host: str) -> Mapping[str, Any]:
        return self._table[host]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def lookup(self, host: str) -> tuple[str, Mapping[str, Any]] | None:
        """Return ``(matched_key, entry)`` for ``host``, or None."""
        for key in (host, self.WILDCARD):
            entry = self._table.get(key)
            if entry is not None:
                return key, entry
        return None


@dataclass(frozen=True)
class StaticOverrideCredential:
    """Credential taken verbatim from the override table."""
    source: ClassVar[CredentialSource] = CredentialSource.STATIC_OVERRIDE
    config: Mapping[str, Any]
    host_key: str = HostConfigOverrides.WILDCARD

    @property
    def username(self) -> str | None:
        return self.config.get("username")

    def to_auth_config(self) -> AuthConfig:
        """Convert to the AuthConfig the transport understands."""
        if self.config.get("private_key"):
            return create_key_auth(
                self.config["private_key"],
                username=self.username,
                passphrase=self.config.get("passphrase"),
                public_key_path=self.config.get("public_key"),
            )
        if self.config.get("password") is not None:
            return create_password_auth(self.config["password"], username=self.username)
        return create_agent_auth(self.username)

    async def load_keys(self) -> list[KeyLike]:
        """
        Load the keys this entry names.

        A ``private_key`` entry loads that file. A ``password`` entry
        needs no keys. Anything else defers to the agent.

        Raises:
            KeyLoadError: If the private key cannot be loaded
            AgentError: If the agent is needed but unavailable
        """
        if self.config.get("private_key"):
            return [
                load_private_key(
                    self.config["private_key"],
                    passphrase=self.config.get("passphrase"),
                )
            ]
        if self.config.get("password") is not None:
            return []
        return list(await get_agent_keys())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging (excludes secrets)."""
        result: dict[str, Any] = {"source": self.source.value, "host_key": self.host_key}
        for key, value in self.config.items():
            if key not in SECRET_KEYS:
                result[key] = str(value)
        return result


@dataclass(frozen=True)
class KeyFileCredential:
    """Credential backed by an IdentityFile from ssh_config."""
    source: ClassVar[CredentialSource] = CredentialSource.KEY_FILE
    username: str | None
    path: Path

    async def load_keys(self) -> list[KeyLike]:
        """
        Load the private key.

        Raises:
            KeyLoadError: If the key cannot be loaded
        """
        return [load_private_key(self.path)]

    def to_auth_config(self) -> AuthConfig:
        return create_key_auth(self.path, username=self.username)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"source": self.source.value, "path": str(self.path)}
        if self.username:
            result["username"] = self.username
        return result


@dataclass(frozen=True)
class AgentCredential:
    """Fallback credential: whatever keys the SSH agent holds."""
    source: ClassVar[CredentialSource] = CredentialSource.AGENT
    username: str | None = None

    async def load_keys(self) -> list[KeyLike]:
        """
        Fetch the agent's keys.

        Raises:
            AgentError: If the agent is unavailable
        """
        return list(await get_agent_keys())

    def to_auth_config(self) -> AuthConfig:
        return create_agent_auth(self.username)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"source": self.source.value}
        if self.username:
            result["username"] = self.username
        return result


CredentialDescriptor = Union[StaticOverrideCredential, KeyFileCredential, AgentCredential]


@dataclass
class CredentialResolver:
    """
    Chooses the credential a git operation should use for a host.

    The override table is optional and may be given at construction or
    set later with set_host_config_overrides(), exactly once, before the
    resolver is shared between threads.

    Usage:
        resolver = CredentialResolver()
        resolver.set_host_config_overrides(settings["host_ssh_config"])

        credential = resolver.find_for_user_and_host("git", "github.com")
        auth = credential.to_auth_config()
    """
    overrides: HostConfigOverrides | None = None
    config_files: Sequence[str | Path] | None = None
    emitter: EventEmitter | None = None
    ssh_config: SSHConfig = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.overrides is not None and not isinstance(self.overrides, HostConfigOverrides):
            self.overrides = HostConfigOverrides(self.overrides)
        self.ssh_config = SSHConfig(config_files=self.config_files, emitter=self.emitter)

    def set_host_config_overrides(
        self,
        table: Mapping[str, Mapping[str, Any]],
    ) -> HostConfigOverrides:
        """
        Install the override table.

        Raises:
            OverridesAlreadyConfigured: If a table is already installed
        """
        if self.overrides is not None:
            raise OverridesAlreadyConfigured(
                "Host config overrides can only be set once",
            )
        self.overrides = HostConfigOverrides(table)
        logger.debug("Installed host config overrides for %s", sorted(self.overrides))
        return self.overrides

    def find_for_user_and_host(
        self,
        username: str | None,
        hostname: str,
    ) -> CredentialDescriptor:
        """
        Find the credential for ``username`` on ``hostname``.

        Args:
            username: Remote username; when None, the ssh_config User
                      (if any) is used for key file credentials
            hostname: Host the git operation connects to

        Returns:
            The first of StaticOverrideCredential, KeyFileCredential or
            AgentCredential that applies

        Raises:
            MatchConditionError: If ssh_config has an invalid Match line
        """
        try:
            credential = self._find(username, hostname)
        except SSHError as e:
            if e.context.host is None:
                e.context.host = hostname
            if self.emitter:
                self.emitter.emit(EventType.ERROR, **e.to_dict())
            raise

        logger.debug("Credential for %s@%s: %s", username, hostname, credential.source.value)
        if self.emitter:
            self.emitter.emit(
                EventType.CREDENTIAL,
                host=hostname,
                credential=credential.to_dict(),
            )
        return credential

    def _find(self, username: str | None, hostname: str) -> CredentialDescriptor:
        if self.overrides is not None:
            match = self.overrides.lookup(hostname)
            if match is not None:
                host_key, entry = match
                return StaticOverrideCredential(config=entry, host_key=host_key)

        host_config = self.ssh_config.lookup(hostname)
        key_paths = []
        for key_path in host_config.private_key_paths:
            if is_expandable(key_path):
                key_paths.append(key_path)
            else:
                logger.debug("Skipping IdentityFile %r: home directory unknown", key_path)
        if key_paths:
            return KeyFileCredential(
                username=username or host_config.username,
                path=expand_path(key_paths[0]),
            )

        return AgentCredential(username=username)

