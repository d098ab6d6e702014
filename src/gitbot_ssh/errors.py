"""
Error taxonomy with structured data for JSONL logging.

Provides specific error types for the failure modes of credential
resolution, enabling:
- Programmatic error handling with specific exception types
- Rich context for debugging
- Structured data for JSONL event logging

Error hierarchy:
- SSHError (base)
  - ConfigError
    - MatchConditionError (``all`` mixed with other Match criteria)
    - IncludeDepthError (Include nesting too deep)
    - OverridesAlreadyConfigured (host override table set twice)
  - AuthenticationError
    - KeyLoadError (private key file issues)
    - AgentError (SSH agent communication failed)
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any


@dataclass
class ErrorContext:
    """
    Structured context for errors.

    Carries all information needed for:
    - Debugging the root cause
    - JSONL event logging
    """
    host: str | None = None
    username: str | None = None
    config_path: str | None = None
    key_path: str | None = None
    original_error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result = {}
        for key, value in asdict(self).items():
            if value is not None:
                if key == "extra" and isinstance(value, dict):
                    # Precondition: extra keys must not shadow field names,
                    # even when those fields are currently None.
                    field_names = {f.name for f in fields(self)} - {"extra"}
                    collisions = field_names & value.keys()
                    assert not collisions, (
                        f"Extra keys collision with dataclass field names: "
                        f"{collisions}. Use distinct key names in extra."
                    )
                    result.update(value)
                else:
                    result[key] = value
        return result


class SSHError(Exception):
    """
    Base exception for all gitbot-ssh errors.

    All errors carry structured context for logging and debugging.
    """

    def __init__(self, message: str, context: ErrorContext | None = None) -> None:
        # Precondition: message must be non-empty
        assert isinstance(message, str) and message.strip(), (
            f"SSHError message must be a non-empty string, "
            f"got {message!r}"
        )
        super().__init__(message)
        self.context = context or ErrorContext()

    @property
    def error_type(self) -> str:
        """Return the error type name for logging."""
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSONL logging."""
        return {
            "error_type": self.error_type,
            "message": str(self),
            **self.context.to_dict(),
        }


# ---------------------------------------------------------------------------
# Configuration Errors
# ---------------------------------------------------------------------------

class ConfigError(SSHError):
    """Base class for ssh_config and override table errors."""

    def __init__(
        self,
        message: str,
        config_path: str | None = None,
        host: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        if context is None:
            context = ErrorContext()
        if config_path is not None:
            context.config_path = config_path
        if host is not None:
            context.host = host
        super().__init__(message, context)


class MatchConditionError(ConfigError):
    """
    Invalid Match line.

    Raised when ``all`` is combined with any other criterion, e.g.
    ``Match all host *.example.com``. This aborts the whole resolution.
    """

    def __init__(
        self,
        message: str,
        condition: str | None = None,
        config_path: str | None = None,
        host: str | None = None,
    ) -> None:
        context = ErrorContext()
        if condition is not None:
            context.extra["condition"] = condition
        super().__init__(message, config_path=config_path, host=host, context=context)


class IncludeDepthError(ConfigError):
    """Include directives nested deeper than the supported limit."""

    def __init__(
        self,
        message: str,
        depth: int,
        config_path: str | None = None,
        host: str | None = None,
    ) -> None:
        context = ErrorContext(extra={"depth": depth})
        super().__init__(message, config_path=config_path, host=host, context=context)


class OverridesAlreadyConfigured(ConfigError):
    """The host override table may only be set once per resolver."""
    pass


# ---------------------------------------------------------------------------
# Authentication Errors
# ---------------------------------------------------------------------------

class AuthenticationError(SSHError):
    """Base class for authentication-related errors."""
    pass


class KeyLoadError(AuthenticationError):
    """
    Failed to load private key.

    This is raised when:
    - Key file does not exist
    - Key file is not readable
    - Key file format is invalid
    - Passphrase is incorrect for encrypted key
    """

    def __init__(
        self,
        message: str,
        key_path: str | None = None,
        reason: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        # Precondition: key_path must be None or a non-empty string
        assert key_path is None or (isinstance(key_path, str) and key_path.strip()), (
            f"key_path must be None or a non-empty string, got {key_path!r}"
        )
        if context is None:
            context = ErrorContext()
        context.key_path = key_path
        if reason:
            context.extra["reason"] = reason
        super().__init__(message, context)


class AgentError(AuthenticationError):
    """
    SSH agent communication failed.

    This is raised when:
    - SSH agent is not running
    - Agent socket is not accessible
    - Agent returned an error
    """

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        if context is None:
            context = ErrorContext()
        if reason:
            context.extra["reason"] = reason
        super().__init__(message, context)
