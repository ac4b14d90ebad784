import json
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from toy import toy_cli
from toy.toy_uimap import ALIASES_ENV_VAR, UserInterfaceMapper

SRC_DIR = Path(__file__).resolve().parent.parent / "src"


def test_run_toy_string_prints_result(capsys: pytest.CaptureFixture[str]) -> None:
    status = toy_cli.run_toy("let x = 2; x * 21", is_string=True)
    assert status == 0
    assert capsys.readouterr().out == "42\n"


def test_run_toy_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "fib.toy"
    path.write_text(
        "let fib = fn(n) { if (n < 2) { n } else { fib(n - 1) + fib(n - 2) } };\n"
        "fib(10)\n",
        encoding="utf-8",
    )
    assert toy_cli.run_toy(str(path)) == 0
    assert capsys.readouterr().out == "55\n"


def test_run_toy_rejects_non_toy_file() -> None:
    with pytest.raises(ValueError, match="Only .toy files are supported."):
        toy_cli.run_toy("example.txt", is_string=False)


def test_run_toy_prints_null_but_not_let(capsys: pytest.CaptureFixture[str]) -> None:
    assert toy_cli.run_toy("let x = 1;", is_string=True) == 0
    assert capsys.readouterr().out == ""
    assert toy_cli.run_toy("if (false) { 1 }", is_string=True) == 0
    assert capsys.readouterr().out == "null\n"


def test_run_toy_puts_output_precedes_result(capsys: pytest.CaptureFixture[str]) -> None:
    assert toy_cli.run_toy('puts("hi"); 3', is_string=True) == 0
    assert capsys.readouterr().out == "hi\n3\n"


def test_run_toy_reports_all_parser_errors(capsys: pytest.CaptureFixture[str]) -> None:
    status = toy_cli.run_toy("let x 5; let = 10; puts(1)", is_string=True)
    assert status == 1
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "parser errors:"
    assert lines[1:] == [
        '\texpected next token type "ASSIGN", actual "NUMBER" (line 1, col 7)',
        '\texpected next token type "IDENT", actual "ASSIGN" (line 1, col 14)',
    ]


def test_run_toy_error_result_sets_status(capsys: pytest.CaptureFixture[str]) -> None:
    assert toy_cli.run_toy("5 + true", is_string=True) == 1
    assert capsys.readouterr().out == "ERROR: type mismatch: INTEGER + BOOLEAN\n"


def test_run_toy_recursion_overflow(capsys: pytest.CaptureFixture[str]) -> None:
    status = toy_cli.run_toy("let f = fn() { f() }; f()", is_string=True)
    assert status == 1
    assert "maximum recursion depth exceeded" in capsys.readouterr().err


def test_run_toy_with_aliases(capsys: pytest.CaptureFixture[str]) -> None:
    aliases = UserInterfaceMapper()
    aliases.configure({"lambda": "FUNC"})
    assert toy_cli.run_toy("lambda(x) { x * 3 }(4)", is_string=True, aliases=aliases) == 0
    assert capsys.readouterr().out == "12\n"


def test_main_runs_string(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.delenv(ALIASES_ENV_VAR, raising=False)
    toy_cli.main(["-s", '"a" + "b"'])
    assert capsys.readouterr().out == "ab\n"


def test_main_exits_with_status_on_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ALIASES_ENV_VAR, raising=False)
    with pytest.raises(SystemExit) as e:
        toy_cli.main(["-s", "1 / 0"])
    assert e.value.code == 1


def test_main_cli_parses(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ALIASES_ENV_VAR, raising=False)
    called: dict[str, Any] = {}

    def dummy_run(**kwargs: Any) -> int:
        called.update(kwargs)
        return 0

    monkeypatch.setattr(toy_cli, "run_toy", dummy_run)
    monkeypatch.setattr(sys, "argv", ["toy", "-s", "1 + 1"])
    toy_cli.main()
    assert called["source"] == "1 + 1"
    assert called["is_string"] is True
    assert isinstance(called["aliases"], UserInterfaceMapper)


def test_main_calls_repl_on_no_args(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ALIASES_ENV_VAR, raising=False)
    called: dict[str, Any] = {}

    def fake_repl(**kwargs: Any) -> None:
        called.update(kwargs)

    monkeypatch.setattr("toy.toy_repl.start_repl", fake_repl)
    toy_cli.main([])
    assert called["mode"] == "eval"


def test_main_repl_flag_passes_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ALIASES_ENV_VAR, raising=False)
    called: dict[str, Any] = {}

    def fake_repl(**kwargs: Any) -> None:
        called.update(kwargs)

    monkeypatch.setattr("toy.toy_repl.start_repl", fake_repl)
    toy_cli.main(["--repl", "--mode", "token", "ignored.toy"])
    assert called["mode"] == "token"


def test_main_invalid_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(SystemExit) as e:
        toy_cli.main(["--mode", "compile"])
    assert e.value.code == 2


def test_main_loads_alias_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.delenv(ALIASES_ENV_VAR, raising=False)
    alias_file = tmp_path / "aliases.json"
    alias_file.write_text(json.dumps({"define": "LET"}), encoding="utf-8")
    toy_cli.main(["--aliases", str(alias_file), "-s", "define x = 9; x"])
    assert capsys.readouterr().out == "9\n"


def test_main_alias_env_var(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    alias_file = tmp_path / "aliases.json"
    alias_file.write_text(json.dumps({"yes": "TRUE"}), encoding="utf-8")
    monkeypatch.setenv(ALIASES_ENV_VAR, str(alias_file))
    toy_cli.main(["-s", "!yes"])
    assert capsys.readouterr().out == "false\n"


def test_main_bad_alias_file_exits(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.delenv(ALIASES_ENV_VAR, raising=False)
    alias_file = tmp_path / "aliases.json"
    alias_file.write_text(json.dumps({"fn": "LET"}), encoding="utf-8")
    with pytest.raises(SystemExit) as e:
        toy_cli.main(["--aliases", str(alias_file), "-s", "1"])
    assert e.value.code == 2
    err = capsys.readouterr().err
    assert "[error] >>> Alias collision(s) detected" in err
    assert " - 'fn' is a reserved word" in err


def test_main_verbose_enables_debug_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ALIASES_ENV_VAR, raising=False)
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    monkeypatch.setattr(toy_cli, "run_toy", lambda **kwargs: 0)
    toy_cli.main(["--verbose", "-s", "1"])
    assert calls and calls[0]["level"] == logging.DEBUG


def test_main_sets_recursion_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ALIASES_ENV_VAR, raising=False)
    limits: list[int] = []
    monkeypatch.setattr(sys, "setrecursionlimit", limits.append)
    monkeypatch.setattr(toy_cli, "run_toy", lambda **kwargs: 0)
    toy_cli.main(["--recursion-limit", "5000", "-s", "1"])
    assert limits == [5000]


def test_evaluator_logs_closure_creation(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="toy.toy_evaluator"):
        toy_cli.run_toy("fn(a, b) { a }", is_string=True)
    assert any("closure created: fn(a, b)" in r.getMessage() for r in caplog.records)


@settings(
    suppress_health_check=[HealthCheck.function_scoped_fixture], max_examples=50, deadline=None
)  # type: ignore[misc]
@given(st.text(alphabet="let fn()[]{}\"+-*/!<>=;:,xy0123 \n", max_size=40))  # type: ignore[misc]
def test_run_toy_random_input_does_not_crash(source: str) -> None:
    try:
        status = toy_cli.run_toy(source, is_string=True)
    except Exception:
        pytest.fail("Should not crash on random input")
    assert status in (0, 1)


def test_toy_cli_main_entrypoint_runs() -> None:
    env = dict(os.environ, PYTHONPATH=str(SRC_DIR))
    env.pop(ALIASES_ENV_VAR, None)
    result = subprocess.run(
        [sys.executable, "-m", "toy.toy_cli", "-s", "let a = [1, 2]; push(a, 3)"],
        capture_output=True,
        timeout=10,
        env=env,
    )
    assert result.returncode == 0
    assert result.stdout.decode().strip() == "[1, 2, 3]"


def test_toy_cli_repl_entrypoint_exits_on_eof() -> None:
    env = dict(os.environ, PYTHONPATH=str(SRC_DIR))
    env.pop(ALIASES_ENV_VAR, None)
    result = subprocess.run(
        [sys.executable, "-m", "toy.toy_cli", "--repl"],
        input=b"",
        capture_output=True,
        timeout=10,
        env=env,
    )
    assert result.returncode == 0
    assert b"Exiting Toy REPL." in result.stdout
