import pytest
from io import StringIO

from crisp.evaluator.evaluator import CrispEvaluator
from crisp.parser.parser import CrispParser


@pytest.fixture
def parser():
    """Provides a CrispParser instance for tests."""
    return CrispParser()


@pytest.fixture
def output():
    """Captures everything `debug` writes."""
    return StringIO()


@pytest.fixture
def evaluator(output):
    """Provides a CrispEvaluator whose debug output goes to the `output` fixture."""
    return CrispEvaluator(output_stream=output)


@pytest.fixture
def global_env(evaluator):
    """A fresh global environment holding every builtin."""
    return evaluator.create_global_environment()


@pytest.fixture
def run(evaluator, global_env):
    """Evaluates source in the shared global environment and returns the last value."""
    def _run(source):
        return evaluator.evaluate_string(source, global_env)
    return _run
