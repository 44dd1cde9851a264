from __future__ import annotations

import pytest

from lark_corpus.generate import (
    DEFAULT_START,
    Failure,
    Success,
    generate_parser_for_grammar,
    start_rule,
)

from tests.support.harness import fixture_grammar


@pytest.mark.parametrize(
    "grammar, expected",
    [
        ("document: value?\nvalue: NUMBER\n", "document"),
        ("// a comment: with a colon\n?expr: NUMBER\n", "expr"),
        ("rule.2: NUMBER\n", "rule"),
        ("!keep : NUMBER\n", "keep"),
        ("NUMBER: /[0-9]+/\n", DEFAULT_START),
    ],
    ids=["plain", "inlined-after-comment", "priority", "keep-all-tokens", "no-rules"],
)
def test_start_rule_is_first_rule(grammar: str, expected: str) -> None:
    assert start_rule(grammar) == expected


def test_success_carries_standalone_source() -> None:
    result = generate_parser_for_grammar(fixture_grammar("arithmetic"))

    assert isinstance(result, Success)
    assert "Lark_StandAlone" in result.generated_source


def test_undefined_rule_reports_lark_message() -> None:
    result = generate_parser_for_grammar("start_rule: value\n")

    assert result == Failure("Rule 'value' used but not defined (in rule start_rule)")


def test_undefined_terminal_is_failure() -> None:
    result = generate_parser_for_grammar("start: MISSING\n")

    assert isinstance(result, Failure)
    assert "MISSING" in result.message


def test_malformed_grammar_is_failure() -> None:
    result = generate_parser_for_grammar("start: (\n")

    assert isinstance(result, Failure)
    assert result.message
