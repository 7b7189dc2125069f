"""
Processor for Crisp primitives.
Contains the PrimitiveProcessor class, which centralizes the application
logic for the builtin forms that evaluate all of their operands
left-to-right before acting on the values.
"""
import logging
from typing import TYPE_CHECKING, Any, List, Sequence

from crisp.system.errors import CrispEvaluationError, MalformedFormError, TypeMismatchError
from crisp.system.types import NIL, T, Expression, ListExpr, Number, make_list
from .environment import CrispEnvironment
from .printer import render

if TYPE_CHECKING:
    from .evaluator import CrispEvaluator # Forward reference for type hinting

logger = logging.getLogger(__name__)


class PrimitiveProcessor:
    """
    Applies primitives for the CrispEvaluator.
    Each method evaluates its operands in the caller's environment and
    performs the primitive's action on the resulting values.
    """
    def __init__(self, evaluator_instance: 'CrispEvaluator'):
        """
        Initializes the PrimitiveProcessor.

        Args:
            evaluator_instance: The CrispEvaluator used to evaluate operands.
        """
        self.evaluator = evaluator_instance
        logger.debug("PrimitiveProcessor initialized.")

    # --- Arithmetic ---

    def apply_add_primitive(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Number:
        """Applies '+': (+ n1 n2 ...), at least one operand."""
        numbers = self._eval_numbers("+", arg_exprs, env, original_expr_str)
        result = Number(sum(numbers))
        logger.debug(f"  '+': Result -> {result.value}")
        return result

    def apply_subtract_primitive(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Number:
        """Applies '-': unary negation, otherwise left-fold subtraction."""
        numbers = self._eval_numbers("-", arg_exprs, env, original_expr_str)
        if len(numbers) == 1:
            return Number(-numbers[0])
        total = numbers[0]
        for n in numbers[1:]:
            total -= n
        return Number(total)

    def apply_multiply_primitive(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Number:
        numbers = self._eval_numbers("*", arg_exprs, env, original_expr_str)
        total = 1
        for n in numbers:
            total *= n
        return Number(total)

    def apply_divide_primitive(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Number:
        """Applies '/': left-fold integer division, truncating toward zero."""
        numbers = self._eval_numbers("/", arg_exprs, env, original_expr_str)
        total = numbers[0]
        for n in numbers[1:]:
            if n == 0:
                raise CrispEvaluationError("Division by zero", original_expr_str)
            quotient = abs(total) // abs(n)
            total = quotient if (total < 0) == (n < 0) else -quotient
        return Number(total)

    # --- Comparison ---

    def apply_eq_primitive(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        """Applies '=': t when every operand equals the first, else nil."""
        if not arg_exprs:
            raise MalformedFormError("'=' requires at least one argument.", original_expr_str)
        values = self._eval_all(arg_exprs, env)
        first = values[0]
        return T if all(v == first for v in values[1:]) else NIL

    def apply_neq_primitive(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        return NIL if self.apply_eq_primitive(arg_exprs, env, original_expr_str) is T else T

    # --- Lists ---

    def apply_list_primitive(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        """Applies 'list': (list expr...), nil when called without operands."""
        return make_list(self._eval_all(arg_exprs, env))

    def apply_car_primitive(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        items = self._eval_list_operand("car", arg_exprs, env, original_expr_str)
        return items[0] if items else NIL

    def apply_cdr_primitive(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        items = self._eval_list_operand("cdr", arg_exprs, env, original_expr_str)
        return make_list(items[1:])

    # --- Output ---

    def apply_debug_primitive(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        """Applies 'debug': prints the rendering of one value and passes it through."""
        if len(arg_exprs) != 1:
            raise MalformedFormError("'debug' requires exactly one argument.", original_expr_str)
        value = self.evaluator.evaluate(arg_exprs[0], env)
        self.evaluator.emit(render(value))
        return value

    # --- Helpers ---

    def _eval_all(self, arg_exprs: Sequence[Expression], env: CrispEnvironment) -> List[Any]:
        return [self.evaluator.evaluate(arg, env) for arg in arg_exprs]

    def _eval_numbers(self, op_name: str, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> List[int]:
        """Evaluates operands left to right, stopping at the first non-number."""
        if not arg_exprs:
            raise MalformedFormError(f"'{op_name}' requires at least one numeric argument.", original_expr_str)

        numbers = []
        for i, arg_expr in enumerate(arg_exprs):
            value = self.evaluator.evaluate(arg_expr, env)
            if not isinstance(value, Number):
                raise TypeMismatchError(
                    f"'{op_name}' argument {i+1} must be a number, got {render(value)}.",
                    original_expr_str,
                )
            numbers.append(value.value)
        return numbers

    def _eval_list_operand(self, op_name: str, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str):
        if len(arg_exprs) != 1:
            raise MalformedFormError(f"'{op_name}' requires exactly one argument.", original_expr_str)
        value = self.evaluator.evaluate(arg_exprs[0], env)
        if value is NIL:
            return ()
        if not isinstance(value, ListExpr):
            raise TypeMismatchError(f"'{op_name}' argument must be a list, got {render(value)}.", original_expr_str)
        return value.items
