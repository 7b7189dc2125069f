"""
Command-line entry point.

Runs Crisp source files in one shared global environment, or starts the
REPL when no files are given.
"""

import argparse
import sys
from typing import List, Optional, TextIO

from crisp.config.logging_config import get_logger, setup_logging
from crisp.evaluator.environment import CrispEnvironment
from crisp.evaluator.evaluator import CrispEvaluator
from crisp.repl.repl import Repl
from crisp.system.errors import CrispSyntaxError
from crisp.system.models import LOG_LEVELS, InterpreterConfig

logger = get_logger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="crisp",
        description="Run Crisp programs, or start an interactive session when no files are given.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("files", nargs="*", help="Source files to run in order ('-' reads stdin)")
    parser.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS, type=str.upper, help="Logging level")
    parser.add_argument("--log-file", default=None, help="Write logs to this file instead of stderr")
    parser.add_argument("--no-echo", action="store_true", help="Do not print REPL results")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> InterpreterConfig:
    return InterpreterConfig(
        log_level=args.log_level,
        log_file=args.log_file,
        files=args.files,
        echo_results=not args.no_echo,
    )


def run_files(
    config: InterpreterConfig,
    evaluator: CrispEvaluator,
    env: CrispEnvironment,
    stdin: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """
    Runs each configured file in order against `env`.

    Halts at the first failing form of any file.

    Returns:
        The process exit status: 0 on success, 1 on the first failure.
    """
    stdin = stdin or sys.stdin
    stderr = stderr or sys.stderr

    for path in config.files:
        try:
            if path == "-":
                source = stdin.read()
            else:
                with open(path, encoding="utf-8") as f:
                    source = f.read()
        except OSError as e:
            logger.error(f"Cannot read {path}: {e}")
            print(f"crisp: cannot read {path}: {e}", file=stderr)
            return 1

        logger.info(f"Running {path}")
        try:
            result = evaluator.run_program(source, env)
        except CrispSyntaxError as e:
            print(f"crisp: {path}: syntax error: {e}", file=stderr)
            return 1

        failure = result.failure
        if failure is not None:
            print(
                f"crisp: {path}: form {failure.index + 1} {failure.expression}: "
                f"{failure.error_kind}: {failure.error_message}",
                file=stderr,
            )
            return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    config = build_config(args)
    setup_logging(config.log_level, config.log_file)

    evaluator = CrispEvaluator()
    env = evaluator.create_global_environment()

    if config.files:
        return run_files(config, evaluator, env)

    Repl(evaluator, env, echo_results=config.echo_results).start()
    return 0


if __name__ == "__main__":
    sys.exit(main())
