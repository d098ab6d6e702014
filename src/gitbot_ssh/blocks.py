"""
Host and Match block evaluation.

A block is a ``Host`` or ``Match`` line plus the directives that follow
it up to the next block or end of file. Only hostname criteria are
evaluated; other Match criteria are skipped.
"""
from __future__ import annotations

import logging
from enum import Enum

from gitbot_ssh.errors import MatchConditionError
from gitbot_ssh.lexer import split_match_conditions, unquote
from gitbot_ssh.patterns import HostPattern, host_matches

logger = logging.getLogger(__name__)


class BlockState(str, Enum):
    """Where a file scan currently stands with respect to blocks."""
    NO_BLOCK = "no_block"
    UNMATCHED = "unmatched"
    MATCHED = "matched"

    @classmethod
    def from_match(cls, matched: bool) -> "BlockState":
        return cls.MATCHED if matched else cls.UNMATCHED


def host_block_matches(value: str, host: str) -> bool:
    """
    Evaluate a ``Host`` line against ``host``.

    Patterns are separated by whitespace or commas. Any matching negated
    pattern rules the block out, whatever the positive patterns say.
    Otherwise one matching positive pattern is enough.
    """
    patterns = [
        HostPattern.parse(text)
        for token in value.split()
        for text in token.split(",")
        if text
    ]
    negative = [p for p in patterns if p.negated]
    positive = [p for p in patterns if not p.negated]

    if any(p.matches(host) for p in negative):
        return False
    return any(p.matches(host) for p in positive)


def match_block_matches(
    value: str,
    host: str,
    config_path: str | None = None,
) -> bool:
    """
    Evaluate a ``Match`` line against ``host``.

    ``Match all`` on its own always matches, with or without a trailing
    comma. Otherwise criteria come in ``kind expr`` pairs and every
    recognised criterion must hold. A line with no recognised criteria
    does not match.

    Raises:
        MatchConditionError: If ``all`` is mixed with other criteria
    """
    tokens = split_match_conditions(value)
    # "Match all, host x" is written with a separating comma
    kinds = [t.lower().rstrip(",") for t in tokens]
    if kinds == ["all"]:
        return True

    results: list[bool] = []
    for i in range(0, len(tokens), 2):
        kind = kinds[i]
        if kind == "all":
            raise MatchConditionError(
                "all cannot be mixed with other conditions",
                condition=value,
                config_path=config_path,
                host=host,
            )
        if i + 1 >= len(tokens):
            logger.debug("Match criterion %r has no argument, skipped", kind)
            continue
        if kind != "host":
            logger.debug("Unsupported Match criterion %r skipped", kind)
            continue

        exprs = unquote(tokens[i + 1])
        negated = exprs.startswith("!")
        if negated:
            exprs = exprs[1:]

        condition_met = any(host_matches(host, expr) for expr in exprs.split(","))
        results.append(negated ^ condition_met)

    return bool(results) and all(results)
