"""gitbot-ssh: SSH credential resolution for git automation."""

__version__ = "0.1.0"

from gitbot_ssh.auth import (
    AuthConfig,
    AuthMethod,
    create_agent_auth,
    create_key_auth,
    create_password_auth,
    describe_key,
    get_agent_keys,
    key_fingerprint,
    load_private_key,
)
from gitbot_ssh.blocks import BlockState, host_block_matches, match_block_matches
from gitbot_ssh.config import (
    ResolvedHostConfig,
    SettingsMap,
    SSHConfig,
    expandable_default_files,
    get_ssh_config,
    parse_file,
    resolve,
    translate,
)
from gitbot_ssh.credentials import (
    AgentCredential,
    CredentialDescriptor,
    CredentialResolver,
    CredentialSource,
    HostConfigOverrides,
    KeyFileCredential,
    StaticOverrideCredential,
)
from gitbot_ssh.errors import (
    AgentError,
    AuthenticationError,
    ConfigError,
    ErrorContext,
    IncludeDepthError,
    KeyLoadError,
    MatchConditionError,
    OverridesAlreadyConfigured,
    SSHError,
)
from gitbot_ssh.events import (
    Event,
    EventCollector,
    EventEmitter,
    EventType,
    JSONLEventSink,
    read_jsonl_events,
)
from gitbot_ssh.lexer import RawValue, coerce_value, tokenize_config_value, unquote
from gitbot_ssh.patterns import HostPattern, pattern_to_regex
from gitbot_ssh.platform import default_config_files, expand_path, is_expandable

__all__ = [
    # Config
    "SSHConfig",
    "SettingsMap",
    "ResolvedHostConfig",
    "parse_file",
    "resolve",
    "translate",
    "expandable_default_files",
    "get_ssh_config",
    # Blocks and patterns
    "BlockState",
    "host_block_matches",
    "match_block_matches",
    "HostPattern",
    "pattern_to_regex",
    # Values
    "RawValue",
    "coerce_value",
    "tokenize_config_value",
    "unquote",
    # Credentials
    "CredentialResolver",
    "CredentialDescriptor",
    "CredentialSource",
    "HostConfigOverrides",
    "StaticOverrideCredential",
    "KeyFileCredential",
    "AgentCredential",
    # Auth
    "AuthConfig",
    "AuthMethod",
    "create_password_auth",
    "create_key_auth",
    "create_agent_auth",
    "get_agent_keys",
    "load_private_key",
    "key_fingerprint",
    "describe_key",
    # Errors
    "SSHError",
    "ConfigError",
    "MatchConditionError",
    "IncludeDepthError",
    "OverridesAlreadyConfigured",
    "AuthenticationError",
    "KeyLoadError",
    "AgentError",
    "ErrorContext",
    # Events
    "Event",
    "EventCollector",
    "EventEmitter",
    "EventType",
    "JSONLEventSink",
    "read_jsonl_events",
    # Platform
    "default_config_files",
    "expand_path",
    "is_expandable",
]
