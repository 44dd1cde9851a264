from __future__ import annotations

from pathlib import Path

import pytest

from lark_corpus.cli import main
from lark_corpus.config import FIXTURES_DIR_VAR

from tests.support.harness import FIXTURES_DIR

JSON_GRAMMAR = FIXTURES_DIR / "grammars" / "json" / "grammar.lark"


def test_parse_prints_sexp(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "doc.json"
    source.write_text('{"a": 1}', encoding="utf-8")

    assert main(["parse", str(JSON_GRAMMAR), str(source)]) == 0
    assert capsys.readouterr().out == "(document (object (pair (STRING) (NUMBER))))\n"


def test_parse_pretty(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "doc.json"
    source.write_text("[]", encoding="utf-8")

    assert main(["parse", "--pretty", str(JSON_GRAMMAR), str(source)]) == 0
    assert capsys.readouterr().out == "(document\n  (array))\n"


def test_parse_with_broken_grammar(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    grammar = tmp_path / "broken.lark"
    grammar.write_text("start_rule: value\n", encoding="utf-8")
    source = tmp_path / "input.txt"
    source.write_text("", encoding="utf-8")

    assert main(["parse", str(grammar), str(source)]) == 1
    assert "used but not defined" in capsys.readouterr().err


def test_run_repository_fixtures(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv(FIXTURES_DIR_VAR, str(FIXTURES_DIR))

    assert main(["run", "features", "errors"]) == 0
    captured = capsys.readouterr()
    assert "test language: 'statements'" in captured.err
    assert "Failures: none" in captured.out


def test_run_reports_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    grammar_dir = tmp_path / "test_grammars" / "words"
    grammar_dir.mkdir(parents=True)
    (grammar_dir / "grammar.lark").write_text("start: WORD\nWORD: /[a-z]+/\n", encoding="utf-8")
    (grammar_dir / "corpus.txt").write_text("===\nword\n===\nabc\n---\n(start)\n", encoding="utf-8")
    monkeypatch.setenv(FIXTURES_DIR_VAR, str(tmp_path))

    assert main(["run", "features"]) == 1
    assert "Failures: yes" in capsys.readouterr().out


def test_setup_error_exit_status(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv(FIXTURES_DIR_VAR, str(tmp_path))

    assert main(["run", "real"]) == 2
    assert "No grammar found for language 'arithmetic'" in capsys.readouterr().err


@pytest.mark.parametrize(
    "argv",
    [[], ["bogus"], ["run", "nonsense"], ["parse", "only-one-arg"]],
    ids=["no-args", "unknown-command", "unknown-suite", "parse-arity"],
)
def test_usage_errors(argv) -> None:
    with pytest.raises(SystemExit):
        main(argv)
