"""
Crisp evaluator implementation.
Reads and executes Crisp programs: dispatches on expression shape, applies
builtin forms and user fexprs, and forces suspended arguments on demand.
"""

import logging
import sys
from typing import Any, Callable, Dict, List, Optional, Sequence, TextIO

from crisp.parser.parser import CrispParser
from crisp.system.errors import (
    CrispEvaluationError,
    MalformedFormError,
    NotCallableError,
)
from crisp.system.models import FormResult, RunResult
from crisp.system.types import (
    NIL, T, Expression, ListExpr, NilLiteral, Number, Quote, String, Symbol, Unquote, make_list,
)
from .combiners import BuiltinForm, ParamSpec, SuspendedForm, UserFexpr
from .environment import CrispEnvironment
from .primitives import PrimitiveProcessor
from .printer import render
from .special_forms import SpecialFormProcessor

logger = logging.getLogger(__name__)

SELF_EVALUATING = (Number, String, NilLiteral)


class CrispEvaluator:
    """
    Evaluates Crisp expressions against explicit environments.

    The environment is threaded through every call; the evaluator holds no
    binding state of its own, so several independent global environments
    can share one evaluator.

    Fexprs receive their operands unevaluated. Bodies run directly in the
    caller's environment, with parameters bound there as well; suspended
    parameters hold a SuspendedForm that `,name` forces afresh each time.
    """

    def __init__(self, output_stream: Optional[TextIO] = None):
        """
        Initializes the evaluator.

        Args:
            output_stream: Where `debug` writes. Defaults to sys.stdout,
                           resolved at write time.
        """
        self.output = output_stream
        self.parser = CrispParser()

        self.special_form_processor = SpecialFormProcessor(self)
        self.primitive_processor = PrimitiveProcessor(self)

        # Registered into every global environment as BuiltinForm bindings
        self.BUILTIN_HANDLERS: Dict[str, Callable] = {
            "if": self.special_form_processor.handle_if_form,
            "let": self.special_form_processor.handle_let_form,
            "set": self.special_form_processor.handle_set_form,
            "defun": self.special_form_processor.handle_defun_form,
            "progn": self.special_form_processor.handle_progn_form,
            "when": self.special_form_processor.handle_when_form,
            "while": self.special_form_processor.handle_while_form,
            "+": self.primitive_processor.apply_add_primitive,
            "-": self.primitive_processor.apply_subtract_primitive,
            "*": self.primitive_processor.apply_multiply_primitive,
            "/": self.primitive_processor.apply_divide_primitive,
            "=": self.primitive_processor.apply_eq_primitive,
            "/=": self.primitive_processor.apply_neq_primitive,
            "list": self.primitive_processor.apply_list_primitive,
            "car": self.primitive_processor.apply_car_primitive,
            "cdr": self.primitive_processor.apply_cdr_primitive,
            "debug": self.primitive_processor.apply_debug_primitive,
        }
        logger.debug(f"CrispEvaluator initialized. Builtins: {list(self.BUILTIN_HANDLERS.keys())}")

    def create_global_environment(self, bindings: Optional[Dict[str, Any]] = None) -> CrispEnvironment:
        """
        Builds a fresh top-level environment holding every builtin form.

        Args:
            bindings: Extra host bindings (e.g. {"output": Number(99)}),
                      defined after the builtins so they may shadow them.
        """
        env = CrispEnvironment()
        for name, handler in self.BUILTIN_HANDLERS.items():
            env.define(name, BuiltinForm(name, handler))
        env.define(T.name, T)
        for name, value in (bindings or {}).items():
            env.define(name, value)
        return env

    def emit(self, text: str) -> None:
        """Writes one line to the output channel used by `debug`."""
        stream = self.output if self.output is not None else sys.stdout
        print(text, file=stream)

    # --- Program entry points ---

    def evaluate_string(self, source: str, initial_env: Optional[CrispEnvironment] = None) -> Any:
        """
        Reads and evaluates every top-level form in `source`, in order.

        The whole source is read before any form runs. The first failing
        form aborts the run and its error propagates; side effects of the
        forms before it remain.

        Returns:
            The value of the last form, or nil for an empty program.
        """
        logger.info(f"Evaluating Crisp source: {source[:100]!r}...")
        expressions = self.parser.parse_program(source)
        env = initial_env if initial_env is not None else self.create_global_environment()

        result: Any = NIL
        for expression in expressions:
            result = self.evaluate_toplevel(expression, env)
        logger.info(f"Finished evaluating {len(expressions)} forms. Result: {render(result)}")
        return result

    def run_program(self, source: str, env: Optional[CrispEnvironment] = None) -> RunResult:
        """
        Runs a program and reports the outcome of each form.

        Uses the same halt-on-first-failure policy as `evaluate_string`, but
        evaluation errors are captured in the returned RunResult instead of
        raised. Syntax errors still raise, since no form has run yet.
        """
        expressions = self.parser.parse_program(source)
        env = env if env is not None else self.create_global_environment()

        results: List[FormResult] = []
        for index, expression in enumerate(expressions):
            expr_str = render(expression)
            try:
                value = self.evaluate_toplevel(expression, env)
            except CrispEvaluationError as e:
                results.append(FormResult(
                    index=index,
                    expression=expr_str,
                    status="FAILED",
                    error_kind=e.kind,
                    error_message=e.message,
                ))
                logger.warning(f"Run halted at form {index}: {e.kind}: {e.message}")
                return RunResult(status="FAILED", results=results)
            results.append(FormResult(
                index=index,
                expression=expr_str,
                status="COMPLETE",
                value=value,
                rendered=render(value),
            ))
        return RunResult(status="COMPLETE", results=results)

    def load_file(self, path: str, env: CrispEnvironment) -> Any:
        """Reads a source file and evaluates it in `env`."""
        logger.info(f"Loading Crisp file: {path}")
        with open(path, encoding="utf-8") as f:
            source = f.read()
        return self.evaluate_string(source, env)

    def evaluate_toplevel(self, expression: Expression, env: CrispEnvironment) -> Any:
        """
        Evaluates one top-level form, attaching the form's text to errors.

        Unexpected Python exceptions (including hitting the recursion limit)
        are converted into CrispEvaluationError.
        """
        expr_str = render(expression)
        try:
            return self.evaluate(expression, env)
        except CrispEvaluationError as e:
            logger.error(f"Evaluation error in {expr_str}: {e.kind}: {e.message}")
            if not e.expression:
                e.expression = expr_str
            raise
        except RecursionError as e:
            logger.error(f"Maximum evaluation depth exceeded in {expr_str}")
            raise CrispEvaluationError("Maximum evaluation depth exceeded", expr_str, error_details=str(e)) from e
        except Exception as e:
            logger.exception(f"Unexpected error during evaluation of {expr_str}: {e}")
            raise CrispEvaluationError(f"Evaluation failed: {e}", expr_str, error_details=str(e)) from e

    # --- Core evaluation ---

    def evaluate(self, node: Expression, env: CrispEnvironment) -> Any:
        """
        Evaluates one expression node in `env`.

        A bare reference to a suspended parameter yields the suspended
        expression as a datum, unforced; only `,name` forces.
        """
        if isinstance(node, SELF_EVALUATING):
            return node

        if isinstance(node, Symbol):
            binding = env.lookup(node.name)
            if isinstance(binding, SuspendedForm):
                logger.debug(f"Eval Symbol: '{node.name}' is suspended, returning raw datum")
                return binding.expression
            return binding

        if isinstance(node, Quote):
            if isinstance(node.expression, ListExpr) and not node.expression.items:
                return NIL
            return node.expression

        if isinstance(node, Unquote):
            return self._eval_unquote(node, env)

        if isinstance(node, ListExpr):
            if not node.items:
                return NIL
            return self._eval_list_form(node, env)

        # Host code may splice combiners straight into a tree
        if isinstance(node, (BuiltinForm, UserFexpr)):
            return node

        raise MalformedFormError(f"Cannot evaluate object of type {type(node).__name__}", repr(node))

    def force(self, suspended: SuspendedForm) -> Any:
        """Evaluates a suspended expression in its captured environment. Never cached.

        A sequence form runs each of its expressions in order and yields the last.
        """
        logger.debug(f"Forcing {render(suspended.expression)} in env {id(suspended.environment)}")
        if suspended.sequence:
            exprs = suspended.expression.items if isinstance(suspended.expression, ListExpr) else ()
            return self.evaluate_sequence(exprs, suspended.environment)
        return self.evaluate(suspended.expression, suspended.environment)

    def evaluate_sequence(self, exprs: Sequence[Expression], env: CrispEnvironment) -> Any:
        """Evaluates expressions in order and returns the last value, nil when empty."""
        result: Any = NIL
        for expr in exprs:
            result = self.evaluate(expr, env)
        return result

    def _eval_unquote(self, node: Unquote, env: CrispEnvironment) -> Any:
        inner = node.expression
        if isinstance(inner, Symbol):
            binding = env.lookup(inner.name)
            if isinstance(binding, SuspendedForm):
                return self.force(binding)
            return binding
        return self.evaluate(inner, env)

    def _eval_list_form(self, node: ListExpr, env: CrispEnvironment) -> Any:
        original_expr_str = render(node)
        operator = self.evaluate(node.head, env)
        return self.apply_combiner(operator, node.operands, env, original_expr_str)

    def apply_combiner(
        self,
        operator: Any,
        operands: Sequence[Expression],
        calling_env: CrispEnvironment,
        original_call_expr_str: str,
    ) -> Any:
        """
        Applies a resolved combiner to unevaluated operands.

        Builtins decide their own evaluation order. User fexprs bind their
        parameters into `calling_env` and run their body there.
        """
        if isinstance(operator, BuiltinForm):
            logger.debug(f"Applying builtin '{operator.name}' to {len(operands)} operands")
            return operator(operands, calling_env, original_call_expr_str)

        if isinstance(operator, UserFexpr):
            return self._apply_fexpr(operator, operands, calling_env, original_call_expr_str)

        raise NotCallableError(
            f"Cannot apply non-combiner {render(operator)}",
            original_call_expr_str,
        )

    def _apply_fexpr(
        self,
        fexpr: UserFexpr,
        operands: Sequence[Expression],
        calling_env: CrispEnvironment,
        original_call_expr_str: str,
    ) -> Any:
        required = fexpr.required_params
        rest = fexpr.rest_param
        if len(operands) < len(required) or (rest is None and len(operands) > len(required)):
            expected = f"{len(required)} or more" if rest else f"{len(required)}"
            raise MalformedFormError(
                f"Arity mismatch: '{fexpr.name}' expects {expected} arguments, got {len(operands)}",
                original_call_expr_str,
            )

        # Compute every argument before binding any, so an eager operand
        # never observes another parameter of the same call.
        bindings = [
            (param.name, self._bind_argument(param, operand, calling_env))
            for param, operand in zip(required, operands)
        ]
        if rest is not None:
            extra = list(operands[len(required):])
            if rest.suspended:
                rest_value: Any = SuspendedForm(make_list(extra), calling_env, sequence=True)
            else:
                rest_value = make_list([self.evaluate(e, calling_env) for e in extra])
            bindings.append((rest.name, rest_value))

        for name, value in bindings:
            calling_env.define(name, value)

        logger.debug(f"Applying fexpr '{fexpr.name}' in caller env {id(calling_env)}")
        return self.evaluate_sequence(fexpr.body, calling_env)

    def _bind_argument(self, param: ParamSpec, operand: Expression, calling_env: CrispEnvironment) -> Any:
        if not param.suspended:
            return self.evaluate(operand, calling_env)

        # `,name` naming a suspended binding forwards that SuspendedForm as is;
        # a wrapper would re-read `name` after this call rebinds it.
        if isinstance(operand, Unquote) and isinstance(operand.expression, Symbol):
            name = operand.expression.name
            if calling_env.is_bound(name):
                binding = calling_env.lookup(name)
                if isinstance(binding, SuspendedForm):
                    return binding
        return SuspendedForm(operand, calling_env)
