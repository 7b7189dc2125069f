"""Tests for the command-line entry point."""
import io
import logging

import pytest
from unittest.mock import patch

from crisp import main as main_module
from crisp.evaluator.evaluator import CrispEvaluator
from crisp.main import build_config, main, parse_arguments, run_files


@pytest.fixture
def program_file(tmp_path):
    path = tmp_path / "program.crisp"
    path.write_text("(let 'x 40)\n(debug (+ x 2))\n")
    return path


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_parse_arguments_defaults():
    args = parse_arguments([])
    assert args.files == []
    assert args.log_level == "WARNING"
    assert args.log_file is None
    assert args.no_echo is False


def test_build_config():
    config = build_config(parse_arguments(["a.crisp", "-", "--log-level", "debug", "--no-echo"]))
    assert config.files == ["a.crisp", "-"]
    assert config.log_level == "DEBUG"
    assert config.echo_results is False


def test_invalid_log_level_exits():
    with pytest.raises(SystemExit):
        parse_arguments(["--log-level", "chatty"])


def test_main_runs_file(program_file, capsys):
    assert main([str(program_file)]) == 0
    assert capsys.readouterr().out == "42\n"


def test_files_share_one_environment(tmp_path, capsys):
    first = tmp_path / "first.crisp"
    second = tmp_path / "second.crisp"
    first.write_text("(let 'shared 7)")
    second.write_text("(debug shared)")
    assert main([str(first), str(second)]) == 0
    assert capsys.readouterr().out == "7\n"


def test_main_stops_at_first_failure(tmp_path, capsys):
    path = tmp_path / "bad.crisp"
    path.write_text("(debug 1)\n(set 'missing 2)\n(debug 3)\n")
    assert main([str(path)]) == 1
    captured = capsys.readouterr()
    assert captured.out == "1\n"
    assert "form 2" in captured.err
    assert "UnboundSymbol" in captured.err


def test_main_reports_syntax_error(tmp_path, capsys):
    path = tmp_path / "broken.crisp"
    path.write_text("(debug 1")
    assert main([str(path)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "syntax error" in captured.err


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "absent.crisp")]) == 1
    assert "cannot read" in capsys.readouterr().err


def test_run_files_reads_stdin():
    evaluator = CrispEvaluator(output_stream=io.StringIO())
    env = evaluator.create_global_environment()
    config = build_config(parse_arguments(["-"]))
    status = run_files(config, evaluator, env, stdin=io.StringIO("(debug '(a b))"), stderr=io.StringIO())
    assert status == 0
    assert evaluator.output.getvalue() == "(a b)\n"


def test_main_writes_log_file(program_file, tmp_path):
    log_file = tmp_path / "logs" / "crisp.log"
    assert main([str(program_file), "--log-level", "INFO", "--log-file", str(log_file)]) == 0
    for handler in logging.getLogger().handlers:
        handler.close()
    assert "Running" in log_file.read_text()


def test_main_without_files_starts_repl():
    with patch.object(main_module, "Repl") as mock_repl:
        assert main([]) == 0
    mock_repl.return_value.start.assert_called_once_with()
    assert mock_repl.call_args.kwargs["echo_results"] is True
