"""Core data models for the interpreter.

Pydantic models for configuration and for the results reported by the
program runner, providing validation and serialization for the CLI and REPL.
"""
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

# Allowed status values for a single top-level form or a whole run
RunStatus = Literal["COMPLETE", "FAILED"]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class InterpreterConfig(BaseModel):
    """Runtime configuration assembled from CLI arguments."""
    log_level: str = Field("WARNING", description="Root logging level name")
    log_file: Optional[str] = Field(None, description="Write logs to this file instead of stderr")
    files: List[str] = Field(default_factory=list, description="Source files to run in order; '-' reads stdin")
    echo_results: bool = Field(True, description="Print the rendering of each REPL result")

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level


class FormResult(BaseModel):
    """Outcome of evaluating one top-level form."""
    index: int = Field(description="0-based position of the form in the program")
    expression: str = Field(description="Canonical rendering of the form")
    status: RunStatus
    value: Any = Field(None, description="The evaluated value; None when the form failed")
    rendered: Optional[str] = Field(None, description="Canonical rendering of the value")
    error_kind: Optional[str] = None
    error_message: Optional[str] = None


class RunResult(BaseModel):
    """
    Result of running a whole program.

    Runs halt at the first failing form, so ``results`` ends with the failed
    form when ``status`` is FAILED and later forms are never attempted.
    """
    status: RunStatus
    results: List[FormResult] = Field(default_factory=list)

    @property
    def last_value(self) -> Any:
        """Value of the last form that completed, or None."""
        for result in reversed(self.results):
            if result.status == "COMPLETE":
                return result.value
        return None

    @property
    def failure(self) -> Optional[FormResult]:
        if self.results and self.results[-1].status == "FAILED":
            return self.results[-1]
        return None
