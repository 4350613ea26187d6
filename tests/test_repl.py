import importlib.util
import json
import sys
import uuid
from pathlib import Path

import pytest
import yaml


def _load_cli_module():
    """Dynamically load the top-level flux.py (CLI/REPL) as a module with a unique name."""
    cli_path = Path(__file__).resolve().parents[1] / "flux.py"
    mod_name = f"flux_cli_for_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, str(cli_path))
    mod = importlib.util.module_from_spec(spec)
    sys.modules[mod_name] = mod
    assert spec.loader is not None
    spec.loader.exec_module(mod)
    return mod


@pytest.fixture
def cli():
    return _load_cli_module()


def feed(monkeypatch, cli, lines):
    it = iter(lines)
    monkeypatch.setattr(cli, "read_line", lambda prompt: next(it))


def test_repl_exit_immediately(monkeypatch, capsys, cli):
    feed(monkeypatch, cli, ["exit"])
    cli.main([])
    out = capsys.readouterr().out
    assert "Flux REPL v0.1" in out
    assert "Type 'exit' or press Ctrl+D to quit." in out


def test_repl_keeps_declarations_between_lines(monkeypatch, capsys, cli):
    feed(monkeypatch, cli, ["let x = 2;\n", "x * 3;\n", "exit\n"])
    cli.main([])
    out = capsys.readouterr().out
    assert "6" in out.splitlines()


def test_repl_prints_output_and_continues_after_errors(monkeypatch, capsys, cli):
    feed(monkeypatch, cli, ['print("hello from flux");', "unset;", "1 + 1;", "exit"])
    cli.main([])
    out, err = capsys.readouterr()
    assert "hello from flux" in out
    assert "NameError: Undefined variable 'unset'" in err
    assert "2" in out.splitlines()


def test_repl_skips_blank_lines_and_quits_on_eof(monkeypatch, capsys, cli):
    feed(monkeypatch, cli, ["   \n", ""])
    cli.main([])
    assert "Exiting." in capsys.readouterr().out


def test_run_script_file(tmp_path, capsys, cli):
    script = tmp_path / "hello.flux"
    script.write_text('let who = "world";\nprint("hello " + who);\n', encoding="utf-8")
    cli.main([str(script)])
    assert capsys.readouterr().out == "hello world\n"


def test_run_script_file_error_exits_1(tmp_path, capsys, cli):
    script = tmp_path / "bad.flux"
    script.write_text("print(1);\nmissing();\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        cli.main([str(script)])
    assert exc.value.code == 1
    out, err = capsys.readouterr()
    assert out == "1\n"
    assert "NameError: Undefined variable 'missing'" in err


def test_missing_file_exits_1(tmp_path, capsys, cli):
    with pytest.raises(SystemExit) as exc:
        cli.main([str(tmp_path / "nope.flux")])
    assert exc.value.code == 1
    assert "file not found" in capsys.readouterr().err


def test_html_file_runs_every_block(tmp_path, capsys, cli):
    page = tmp_path / "page.html"
    page.write_text("<flux>print('one');</flux><flux>print('two');</flux>", encoding="utf-8")
    cli.main([str(page)])
    assert capsys.readouterr().out == "one\ntwo\n"


def test_html_option_exits_1_when_a_block_fails(tmp_path, capsys, cli):
    page = tmp_path / "page.html"
    page.write_text("<flux>nope;</flux><flux>print('still runs');</flux>", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        cli.main(["--html", str(page)])
    assert exc.value.code == 1
    assert "still runs" in capsys.readouterr().out


def test_dump_tokens(tmp_path, capsys, cli):
    script = tmp_path / "t.flux"
    script.write_text("1+2*3;", encoding="utf-8")
    cli.main(["--tokens", str(script)])
    assert json.loads(capsys.readouterr().out) == ["1", "+", "2", "*", "3", ";"]


def test_dump_ast_yaml(tmp_path, capsys, cli):
    script = tmp_path / "t.flux"
    script.write_text("x;", encoding="utf-8")
    cli.main(["--ast", str(script), "--format", "yaml"])
    assert yaml.safe_load(capsys.readouterr().out) == [
        {'tag': 'expr_stmt', 'expr': {'tag': 'variable', 'name': 'x'}},
    ]


def test_dump_reports_syntax_errors(tmp_path, capsys, cli):
    script = tmp_path / "t.flux"
    script.write_text("let 1 = 2;", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        cli.main(["--ast", str(script)])
    assert exc.value.code == 1
    assert "SyntaxError: Invalid variable name '1'" in capsys.readouterr().err


def test_dump_requires_a_file(cli):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--tokens"])
    assert exc.value.code == 2
