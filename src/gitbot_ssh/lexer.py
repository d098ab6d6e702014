"""
Tokenizing and value coercion for ssh_config lines.

Provides:
- split_directive: split a config line into (key, value)
- unquote / coerce_value: turn raw text into a RawValue (int, bool or str)
- tokenize_config_value: split Include/Host style values into tokens
- split_match_conditions: split a Match line into criteria tokens

Quoting rules: double quotes only, one nesting
level, no escape sequences. A quoted run may contain whitespace and is
joined to any unquoted text directly around it.
"""
from __future__ import annotations

import re
from typing import Union

# Values are coerced once, here; everything downstream sees these types.
RawValue = Union[int, bool, str]

_EQUALS_FORM = re.compile(r"^\s*([^\s=]+)\s*=(.*)$")
_INTEGER = re.compile(r"^\d+$")
_QUOTED = re.compile(r'^"(.*)"$')

# OpenSSH's own whitespace set, not Python's \s
_MATCH_WHITESPACE = " \t\r\n"


def split_directive(line: str) -> tuple[str, str] | None:
    """
    Split a config line into its key and raw value.

    Supports both ``Key=Value`` and ``Key Value`` forms. The key is
    lower-cased. Returns None for lines that carry no value.
    """
    equals = _EQUALS_FORM.match(line)
    if equals:
        key, value = equals.group(1), equals.group(2)
    else:
        parts = line.strip().split(None, 1)
        if len(parts) < 2:
            return None
        key, value = parts

    return key.lower(), value


def unquote(text: str) -> str:
    """Strip one surrounding pair of double quotes."""
    quoted = _QUOTED.match(text)
    return quoted.group(1) if quoted else text


def coerce_value(text: str) -> RawValue:
    """
    Coerce unquoted directive text into a typed value.

    ``^\\d+$`` becomes an int, ``yes``/``no`` become booleans, anything
    else is returned as the string given.
    """
    stripped = text.strip()
    if _INTEGER.match(stripped):
        return int(stripped)
    if stripped.lower() == "yes":
        return True
    if stripped.lower() == "no":
        return False
    return text


def parse_value(raw: str) -> RawValue:
    """Unquote then coerce a raw directive value."""
    return coerce_value(unquote(raw.strip()))


def tokenize_config_value(text: str) -> list[str]:
    """
    Split a value into whitespace separated tokens.

    A double-quoted run is taken literally (whitespace included) and the
    quotes are dropped. An unterminated quote runs to the end of input.

        >>> tokenize_config_value('a "b c"d e')
        ['a', 'b cd', 'e']
    """
    tokens: list[str] = []
    current: list[str] = []
    in_quotes = False

    for char in text:
        if char == '"':
            in_quotes = not in_quotes
        elif char.isspace() and not in_quotes:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)

    if current:
        tokens.append("".join(current))

    return tokens


def split_match_conditions(text: str) -> list[str]:
    """
    Split a Match line into criteria tokens.

    Separators are runs of space, tab, CR or LF, and a bare ``=`` that is
    not part of ``==``. Empty tokens are dropped.
    """
    tokens: list[str] = []
    current: list[str] = []
    length = len(text)

    for i, char in enumerate(text):
        bare_equals = (
            char == "="
            and (i == 0 or text[i - 1] != "=")
            and (i + 1 == length or text[i + 1] != "=")
        )
        if char in _MATCH_WHITESPACE or bare_equals:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)

    if current:
        tokens.append("".join(current))

    return tokens
