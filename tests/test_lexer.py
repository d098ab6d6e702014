"""
Tests for ssh_config line tokenizing and value coercion.

Tests cover:
- Key/value splitting in both forms
- Integer and yes/no coercion, quote stripping
- Include value tokenizing with quoted paths
- Match criteria splitting on whitespace and bare '='
"""
from __future__ import annotations

import pytest

from gitbot_ssh.lexer import (
    coerce_value,
    parse_value,
    split_directive,
    split_match_conditions,
    tokenize_config_value,
    unquote,
)


class TestSplitDirective:
    """Test splitting config lines into key and value."""

    def test_whitespace_form(self) -> None:
        assert split_directive("User git") == ("user", "git")

    def test_key_is_lowercased(self) -> None:
        assert split_directive("IdentityFile ~/.ssh/id_rsa") == (
            "identityfile",
            "~/.ssh/id_rsa",
        )

    def test_value_keeps_inner_whitespace(self) -> None:
        """Only the first run of whitespace separates key from value."""
        assert split_directive("ProxyCommand ssh -W %h:%p bastion") == (
            "proxycommand",
            "ssh -W %h:%p bastion",
        )

    def test_equals_form(self) -> None:
        assert split_directive("Port=2222") == ("port", "2222")

    def test_equals_form_key_stops_at_first_equals(self) -> None:
        assert split_directive("IdentityFile=/k/id=x") == ("identityfile", "/k/id=x")
        assert split_directive("SetEnv=A=1") == ("setenv", "A=1")

    def test_equals_inside_whitespace_form_value(self) -> None:
        assert split_directive("User git=x") == ("user", "git=x")

    def test_equals_form_with_spaces(self) -> None:
        key, value = split_directive("  User = git")
        assert key == "user"
        assert value.strip() == "git"

    def test_indented_line(self) -> None:
        assert split_directive("    User git") == ("user", "git")

    def test_key_without_value_is_none(self) -> None:
        """Lines with no value are malformed and ignored."""
        assert split_directive("ForwardAgent") is None
        assert split_directive("   ") is None


class TestValueCoercion:
    """Test RawValue coercion."""

    def test_integer(self) -> None:
        assert coerce_value("22") == 22
        assert isinstance(coerce_value("22"), int)

    def test_yes_no_case_insensitive(self) -> None:
        assert coerce_value("yes") is True
        assert coerce_value("YES") is True
        assert coerce_value("no") is False
        assert coerce_value("No") is False

    def test_string(self) -> None:
        assert coerce_value("git") == "git"

    def test_mixed_digits_stay_string(self) -> None:
        assert coerce_value("22a") == "22a"
        assert coerce_value("-1") == "-1"

    def test_unquote_strips_one_layer(self) -> None:
        assert unquote('"hello world"') == "hello world"
        assert unquote('""nested""') == '"nested"'
        assert unquote("plain") == "plain"

    def test_unquote_needs_both_quotes(self) -> None:
        assert unquote('"open') == '"open'

    def test_parse_value_unquotes_then_coerces(self) -> None:
        assert parse_value('"42"') == 42
        assert parse_value(' "my key" ') == "my key"
        assert parse_value('"yes"') is True


class TestTokenizeConfigValue:
    """Test the Include value lexer."""

    def test_space_separated(self) -> None:
        assert tokenize_config_value("a.conf b.conf") == ["a.conf", "b.conf"]

    def test_collapses_whitespace(self) -> None:
        assert tokenize_config_value("  a\t\tb  ") == ["a", "b"]

    def test_quoted_token_keeps_spaces(self) -> None:
        assert tokenize_config_value('"my dir/x.conf" other') == [
            "my dir/x.conf",
            "other",
        ]

    def test_quoted_run_joins_adjacent_text(self) -> None:
        assert tokenize_config_value('conf.d/"with space"*.conf') == [
            "conf.d/with space*.conf",
        ]

    def test_unterminated_quote_runs_to_end(self) -> None:
        assert tokenize_config_value('"a b') == ["a b"]

    def test_empty(self) -> None:
        assert tokenize_config_value("") == []
        assert tokenize_config_value('""') == []


class TestSplitMatchConditions:
    """Test Match line splitting."""

    def test_whitespace(self) -> None:
        assert split_match_conditions("host  *.example.com\tuser git") == [
            "host",
            "*.example.com",
            "user",
            "git",
        ]

    def test_bare_equals_separates(self) -> None:
        assert split_match_conditions("host=*.example.com") == ["host", "*.example.com"]

    def test_double_equals_is_kept(self) -> None:
        assert split_match_conditions("exec a==b") == ["exec", "a==b"]

    def test_empty_tokens_dropped(self) -> None:
        assert split_match_conditions("  all  ") == ["all"]

    @pytest.mark.parametrize("text", ["", "   ", "="])
    def test_nothing(self, text: str) -> None:
        assert split_match_conditions(text) == []
