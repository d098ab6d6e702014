"""
OpenSSH host pattern matching.

Patterns support:
- * matches any sequence of characters (including none)
- ? matches exactly one character
- ! prefix negates the pattern (applied by the caller)

Matching is anchored at both ends and case-insensitive.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache


@lru_cache(maxsize=256)
def pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile an ssh_config host pattern into an anchored regex."""
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("^" + "".join(parts) + r"\Z", re.IGNORECASE | re.DOTALL)


@dataclass(frozen=True)
class HostPattern:
    """A single host pattern, possibly negated with a leading ``!``."""
    pattern: str
    negated: bool = False
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regex", pattern_to_regex(self.pattern))

    @classmethod
    def parse(cls, text: str) -> "HostPattern":
        """Parse pattern text, stripping one leading ``!``."""
        if text.startswith("!"):
            return cls(pattern=text[1:], negated=True)
        return cls(pattern=text)

    def matches(self, host: str) -> bool:
        """Whether the hostname matches the pattern, ignoring negation."""
        return self.regex.match(host) is not None


def host_matches(host: str, pattern: str) -> bool:
    """Match ``host`` against a single non-negated pattern."""
    return pattern_to_regex(pattern).match(host) is not None
