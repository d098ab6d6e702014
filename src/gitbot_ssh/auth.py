"""
SSH authentication configuration handed to the git transport.

Provides:
- AuthMethod enum: PASSWORD, PRIVATE_KEY, SSH_AGENT
- AuthConfig dataclass: What the transport should authenticate with
- Key loading from files or the agent, mapped to KeyLoadError and AgentError
"""
from __future__ import annotations

import base64
import hashlib
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import asyncssh

from gitbot_ssh.errors import AgentError, KeyLoadError
from gitbot_ssh.platform import expand_path


class AuthMethod(str, Enum):
    """Supported SSH authentication methods."""
    PASSWORD = "password"
    PRIVATE_KEY = "private_key"
    SSH_AGENT = "ssh_agent"


@dataclass
class AuthConfig:
    """
    SSH authentication configuration.

    Usage:
        # Key auth
        config = AuthConfig(
            method=AuthMethod.PRIVATE_KEY,
            username="git",
            key_path=Path("~/.ssh/id_rsa"),
        )

        # Agent auth
        config = AuthConfig(method=AuthMethod.SSH_AGENT, username="git")
    """
    method: AuthMethod
    username: str | None = None
    password: str | None = None
    key_path: Path | str | None = None
    public_key_path: Path | str | None = None
    passphrase: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.method == AuthMethod.PASSWORD:
            assert self.password is not None, \
                "Password required for PASSWORD auth method"

        if self.method == AuthMethod.PRIVATE_KEY:
            assert self.key_path is not None, \
                "key_path required for PRIVATE_KEY auth method"

        if self.key_path is not None:
            self.key_path = expand_path(self.key_path)

        if self.public_key_path is not None:
            self.public_key_path = expand_path(self.public_key_path)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging (excludes secrets)."""
        result: dict[str, Any] = {"method": self.method.value}
        if self.username:
            result["username"] = self.username
        if self.key_path:
            result["key_path"] = str(self.key_path)
        if self.public_key_path:
            result["public_key_path"] = str(self.public_key_path)
        return result


def load_private_key(
    key_path: Path | str,
    passphrase: str | None = None,
) -> asyncssh.SSHKey:
    """
    Load a private key from file.

    Args:
        key_path: Path to the private key file, ``~`` allowed
        passphrase: Optional passphrase for encrypted keys

    Returns:
        Loaded SSH key

    Raises:
        KeyLoadError: If the file is missing, unreadable, malformed or
            needs a passphrase that was not given
    """
    path = expand_path(key_path)

    try:
        return asyncssh.read_private_key(str(path), passphrase=passphrase)
    except FileNotFoundError as e:
        raise KeyLoadError(
            f"Private key file not found: {path}",
            key_path=str(path),
            reason="file_not_found",
        ) from e
    except PermissionError as e:
        raise KeyLoadError(
            f"Private key file not readable: {path}",
            key_path=str(path),
            reason="permission_denied",
        ) from e
    except OSError as e:
        raise KeyLoadError(
            f"Failed to read private key {path}: {e}",
            key_path=str(path),
            reason="unreadable",
        ) from e
    except (asyncssh.KeyImportError, asyncssh.KeyEncryptionError) as e:
        message = str(e).lower()
        if passphrase is None and "passphrase" in message:
            reason = "passphrase_required"
        elif (
            isinstance(e, asyncssh.KeyEncryptionError)
            or "passphrase" in message
            or "decrypt" in message
        ):
            reason = "wrong_passphrase"
        else:
            reason = "invalid_format"

        raise KeyLoadError(
            f"Failed to load private key {path}: {e}",
            key_path=str(path),
            reason=reason,
        ) from e


def key_fingerprint(public_data: bytes) -> str:
    """Return the OpenSSH style ``SHA256:`` fingerprint of a public key blob."""
    digest = hashlib.sha256(public_data).digest()
    return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")


def describe_key(key: asyncssh.SSHKey | asyncssh.SSHKeyPair) -> dict[str, str]:
    """Summarise a loaded key for reports, never including secret material."""
    algorithm = key.algorithm
    if isinstance(algorithm, bytes):
        algorithm = algorithm.decode("ascii")
    return {
        "algorithm": algorithm,
        "fingerprint": key_fingerprint(key.public_data),
    }


async def get_agent_keys(
    agent_path: str | None = None,
) -> list[asyncssh.SSHKeyPair]:
    """
    Get keys from an SSH agent.

    Args:
        agent_path: Agent socket to use, defaults to ``SSH_AUTH_SOCK``

    Returns:
        List of keys the agent offers

    Raises:
        AgentError: If no agent socket is known or talking to it fails
    """
    path = agent_path or os.environ.get("SSH_AUTH_SOCK")
    if not path:
        raise AgentError(
            "SSH agent not available: SSH_AUTH_SOCK not set",
            reason="no_auth_sock",
        )

    if not Path(path).exists():
        raise AgentError(
            f"SSH agent socket not found: {path}",
            reason="socket_not_found",
        )

    try:
        async with asyncssh.connect_agent(path) as agent:
            return list(await agent.get_keys())
    except OSError as e:
        raise AgentError(
            f"Failed to connect to SSH agent at {path}: {e}",
            reason="connection_failed",
        ) from e
    except (asyncssh.Error, ValueError) as e:
        raise AgentError(
            f"SSH agent communication failed: {e}",
            reason="communication_error",
        ) from e




def create_password_auth(password: str, username: str | None = None) -> AuthConfig:
    """Create password authentication config."""
    return AuthConfig(method=AuthMethod.PASSWORD, username=username, password=password)


def create_key_auth(
    key_path: Path | str,
    username: str | None = None,
    passphrase: str | None = None,
    public_key_path: Path | str | None = None,
) -> AuthConfig:
    """
    Create private key authentication config.

    Args:
        key_path: Path to the private key file
        username: Remote username
        passphrase: Optional passphrase for encrypted keys
        public_key_path: Optional matching public key file

    Returns:
        AuthConfig for private key authentication
    """
    return AuthConfig(
        method=AuthMethod.PRIVATE_KEY,
        username=username,
        key_path=key_path,
        passphrase=passphrase,
        public_key_path=public_key_path,
    )


def create_agent_auth(username: str | None = None) -> AuthConfig:
    """Create SSH agent authentication config."""
    return AuthConfig(method=AuthMethod.SSH_AGENT, username=username)
