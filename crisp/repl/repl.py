"""REPL interface for interactive sessions."""
import logging
import sys
from typing import Optional, TextIO

from crisp.evaluator.combiners import BuiltinForm
from crisp.evaluator.environment import CrispEnvironment
from crisp.evaluator.evaluator import CrispEvaluator
from crisp.evaluator.printer import render
from crisp.system.errors import CrispSyntaxError

logger = logging.getLogger(__name__)

EXIT_WORDS = ("exit", "quit")


class Repl:
    """Interactive REPL (Read-Eval-Print Loop) interface.

    Each input line is read as a program and run against one persistent
    global environment. Errors are reported and the session continues.
    """

    PROMPT = "crisp> "

    def __init__(
        self,
        evaluator: CrispEvaluator,
        env: Optional[CrispEnvironment] = None,
        output_stream: Optional[TextIO] = None,
        echo_results: bool = True,
    ):
        """Initialize the REPL interface.

        Args:
            evaluator: The CrispEvaluator used for every input line
            env: Global environment to start from (a fresh one by default)
            output_stream: Optional output stream (defaults to sys.stdout)
            echo_results: Print the rendering of each line's last value
        """
        self.evaluator = evaluator
        self.env = env if env is not None else evaluator.create_global_environment()
        self.output = output_stream or sys.stdout
        self.echo_results = echo_results
        self.running = False
        self.commands = {
            "/help": self._cmd_help,
            "/env": self._cmd_env,
            "/reset": self._cmd_reset,
            "/exit": self._cmd_exit,
        }

    def start(self) -> None:
        """Start the REPL and read lines until exit or end of input."""
        print("Crisp REPL. Type /help for commands, /exit to leave.", file=self.output)
        self.running = True
        while self.running:
            try:
                user_input = input(self.PROMPT)
            except (KeyboardInterrupt, EOFError):
                print("\nGoodbye!", file=self.output)
                break
            self._process_input(user_input)

    def _process_input(self, user_input: str) -> None:
        """Process one line of user input.

        Args:
            user_input: Input from the user
        """
        user_input = user_input.strip()

        if not user_input:
            return

        if user_input in EXIT_WORDS:
            self._cmd_exit("")
        elif user_input.startswith("/"):
            self._handle_command(user_input)
        else:
            self._handle_source(user_input)

    def _handle_command(self, command: str) -> None:
        parts = command.split(maxsplit=1)
        cmd = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ""

        if cmd in self.commands:
            self.commands[cmd](args)
        else:
            print(f"Unknown command: {cmd}", file=self.output)
            print("Type /help for available commands", file=self.output)

    def _handle_source(self, source: str) -> None:
        """Run one line of Crisp source and report the outcome."""
        try:
            result = self.evaluator.run_program(source, self.env)
        except CrispSyntaxError as e:
            logger.debug(f"REPL syntax error: {e}")
            print(f"Syntax error: {e.message}", file=self.output)
            return

        failure = result.failure
        if failure is not None:
            print(f"Error [{failure.error_kind}]: {failure.error_message}", file=self.output)
        elif self.echo_results and result.results:
            print(result.results[-1].rendered, file=self.output)

    def _cmd_help(self, args: str) -> None:
        print("Available commands:", file=self.output)
        print("  /help - Show this help", file=self.output)
        print("  /env - List the bindings defined in this session", file=self.output)
        print("  /reset - Discard all session bindings", file=self.output)
        print("  /exit - Exit the REPL (also: exit, quit)", file=self.output)

    def _cmd_env(self, args: str) -> None:
        bindings = {
            name: value for name, value in self.env.get_local_bindings().items()
            if not isinstance(value, BuiltinForm) and name != "t"
        }
        if not bindings:
            print("No bindings defined.", file=self.output)
            return
        for name in sorted(bindings):
            print(f"  {name} = {render(bindings[name])}", file=self.output)

    def _cmd_reset(self, args: str) -> None:
        self.env = self.evaluator.create_global_environment()
        print("Environment reset", file=self.output)

    def _cmd_exit(self, args: str) -> None:
        print("Goodbye!", file=self.output)
        self.running = False
