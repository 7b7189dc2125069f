"""Tests for the configuration and run-result models."""
import pytest
from pydantic import ValidationError

from crisp.system.errors import (
    CrispEvaluationError, CrispSyntaxError, MalformedFormError, UnboundSymbolError,
)
from crisp.system.models import FormResult, InterpreterConfig, RunResult


class TestInterpreterConfig:
    def test_defaults(self):
        config = InterpreterConfig()
        assert config.log_level == "WARNING"
        assert config.log_file is None
        assert config.files == []
        assert config.echo_results is True

    def test_log_level_is_normalized(self):
        assert InterpreterConfig(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            InterpreterConfig(log_level="LOUD")


class TestRunResult:
    def test_failure_is_last_failed_form(self):
        ok = FormResult(index=0, expression="(let 'x 1)", status="COMPLETE", value=1, rendered="1")
        bad = FormResult(
            index=1, expression="y", status="FAILED",
            error_kind="UnboundSymbol", error_message="Unbound symbol: 'y' is not defined.",
        )
        result = RunResult(status="FAILED", results=[ok, bad])
        assert result.failure is bad
        assert result.last_value == 1

    def test_complete_run_has_no_failure(self):
        result = RunResult(status="COMPLETE", results=[
            FormResult(index=0, expression="1", status="COMPLETE", value=1, rendered="1"),
        ])
        assert result.failure is None
        assert result.last_value == 1

    def test_empty_run(self):
        result = RunResult(status="COMPLETE")
        assert result.failure is None
        assert result.last_value is None

    def test_invalid_status_rejected(self):
        with pytest.raises(ValidationError):
            RunResult(status="DONE")


class TestErrors:
    def test_evaluation_error_message_includes_expression(self):
        err = CrispEvaluationError("Division by zero", "(/ 1 0)")
        assert err.message == "Division by zero"
        assert "Expression: '(/ 1 0)'" in str(err)
        assert err.kind == "EvaluationError"

    def test_unbound_symbol_is_name_error(self):
        err = UnboundSymbolError("x")
        assert isinstance(err, NameError)
        assert isinstance(err, CrispEvaluationError)
        assert err.name == "x"
        assert err.kind == "UnboundSymbol"

    def test_error_kinds(self):
        assert MalformedFormError("bad").kind == "Malformed"

    def test_syntax_error_position(self):
        err = CrispSyntaxError("Unexpected ')'", "())", line=1, column=3)
        assert "(line 1, column 3)" in str(err)
        assert err.message == "Unexpected ')'"
        assert isinstance(err, ValueError)
