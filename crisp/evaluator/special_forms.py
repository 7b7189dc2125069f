"""
Processor for Crisp special forms.
Contains the SpecialFormProcessor class, which centralizes the handling
logic for the builtin forms that control evaluation order or bindings.
"""
import logging
from typing import TYPE_CHECKING, Any, List, Sequence

from crisp.system.errors import MalformedFormError
from crisp.system.types import NIL, Expression, ListExpr, Quote, Symbol, is_nil
from .combiners import ParamSpec, UserFexpr
from .environment import CrispEnvironment
from .printer import render

if TYPE_CHECKING:
    from .evaluator import CrispEvaluator # Forward reference for type hinting

logger = logging.getLogger(__name__)

REST_SUFFIX = "..."


class SpecialFormProcessor:
    """
    Processes special forms for the CrispEvaluator.
    Each method receives the unevaluated operands and the current environment
    and is responsible for the form's evaluation order and environment
    manipulation.
    """
    def __init__(self, evaluator_instance: 'CrispEvaluator'):
        """
        Initializes the SpecialFormProcessor.

        Args:
            evaluator_instance: The CrispEvaluator used for recursive
                                evaluation of sub-expressions.
        """
        self.evaluator = evaluator_instance
        logger.debug("SpecialFormProcessor initialized.")

    def handle_if_form(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        """Handles 'if': (if test then else...)

        Exactly one branch is evaluated. The else part may be omitted
        (result nil) or hold several expressions, run as a progn.
        """
        if len(arg_exprs) < 2:
            raise MalformedFormError("'if' requires a test and a then branch: (if test then else...)", original_expr_str)

        test_expr, then_expr = arg_exprs[0], arg_exprs[1]
        else_exprs = arg_exprs[2:]

        condition = self.evaluator.evaluate(test_expr, env)
        logger.debug(f"  'if' test {render(test_expr)} evaluated to: {render(condition)}")
        if not is_nil(condition):
            return self.evaluator.evaluate(then_expr, env)
        return self.evaluator.evaluate_sequence(else_exprs, env)

    def handle_let_form(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        """Handles 'let': (let 'symbol value-expr), defining in the *current* frame."""
        if len(arg_exprs) != 2:
            raise MalformedFormError("'let' requires a symbol and a value expression: (let 'symbol expression)", original_expr_str)

        name = self.resolve_binding_name(arg_exprs[0], env, "let", original_expr_str)
        value = self.evaluator.evaluate(arg_exprs[1], env)
        env.define(name, value)
        logger.debug(f"  'let' defined '{name}' = {render(value)} in env {id(env)}")
        return value

    def handle_set_form(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        """Handles 'set': (set 'symbol value-expr), updating the nearest existing binding."""
        if len(arg_exprs) != 2:
            raise MalformedFormError("'set' requires a symbol and a value expression: (set 'symbol expression)", original_expr_str)

        name = self.resolve_binding_name(arg_exprs[0], env, "set", original_expr_str)
        value = self.evaluator.evaluate(arg_exprs[1], env)
        env.assign(name, value)
        logger.debug(f"  'set' updated '{name}' to {render(value)}")
        return value

    def handle_defun_form(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> UserFexpr:
        """Handles 'defun': (defun name [param 'param rest...] body...)

        Nothing is evaluated at definition time. Parameters written with a
        leading quote are suspended, bare ones are eager, and a final
        parameter ending in '...' collects the remaining operands.
        """
        if len(arg_exprs) < 3:
            raise MalformedFormError(
                "'defun' requires a name, a parameter list and at least one body expression: (defun name [params] body...)",
                original_expr_str,
            )

        name_node, params_node = arg_exprs[0], arg_exprs[1]
        body = list(arg_exprs[2:])

        if isinstance(name_node, Quote):
            name_node = name_node.expression
        if not isinstance(name_node, Symbol):
            raise MalformedFormError(f"'defun' name must be a symbol, got {render(name_node)}", original_expr_str)

        params = self.parse_param_specs(params_node, original_expr_str)
        fexpr = UserFexpr(name_node.name, params, body, env)
        env.define(name_node.name, fexpr)
        logger.debug(f"  'defun' defined {fexpr!r} in env {id(env)}")
        return fexpr

    def handle_progn_form(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        """Handles 'progn': (progn expr...), nil when empty."""
        return self.evaluator.evaluate_sequence(arg_exprs, env)

    def handle_when_form(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        """Handles 'when': (when test body...)"""
        if len(arg_exprs) < 2:
            raise MalformedFormError("'when' requires a test and at least one body expression", original_expr_str)

        if is_nil(self.evaluator.evaluate(arg_exprs[0], env)):
            return NIL
        return self.evaluator.evaluate_sequence(arg_exprs[1:], env)

    def handle_while_form(self, arg_exprs: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        """Handles 'while': (while test body...), always nil."""
        if len(arg_exprs) < 2:
            raise MalformedFormError("'while' requires a test and at least one body expression", original_expr_str)

        test_expr, body = arg_exprs[0], arg_exprs[1:]
        iterations = 0
        while not is_nil(self.evaluator.evaluate(test_expr, env)):
            self.evaluator.evaluate_sequence(body, env)
            iterations += 1
        logger.debug(f"  'while' finished after {iterations} iterations")
        return NIL

    # --- Helpers ---

    def resolve_binding_name(self, operand: Expression, env: CrispEnvironment, form_name: str, original_expr_str: str) -> str:
        """
        Returns the symbol name targeted by 'let' or 'set'.

        `x` and `'x` name x directly; any other operand is evaluated and
        must produce a symbol datum.
        """
        if isinstance(operand, Symbol):
            return operand.name
        if isinstance(operand, Quote) and isinstance(operand.expression, Symbol):
            return operand.expression.name

        target = self.evaluator.evaluate(operand, env)
        if not isinstance(target, Symbol):
            raise MalformedFormError(
                f"'{form_name}' target must be a symbol, got {render(target)}",
                original_expr_str,
            )
        return target.name

    def parse_param_specs(self, params_node: Expression, original_expr_str: str) -> List[ParamSpec]:
        if params_node is NIL:
            return []
        if not isinstance(params_node, ListExpr):
            raise MalformedFormError(
                f"'defun' parameters must be a list, got {render(params_node)}",
                original_expr_str,
            )

        params: List[ParamSpec] = []
        seen = set()
        for index, item in enumerate(params_node.items):
            suspended = isinstance(item, Quote)
            symbol = item.expression if suspended else item
            if not isinstance(symbol, Symbol):
                raise MalformedFormError(
                    f"'defun' parameter must be a symbol or a quoted symbol, got {render(item)}",
                    original_expr_str,
                )

            name = symbol.name
            rest = name.endswith(REST_SUFFIX) and len(name) > len(REST_SUFFIX)
            if rest:
                name = name[:-len(REST_SUFFIX)]
                if index != len(params_node.items) - 1:
                    raise MalformedFormError(
                        f"Rest parameter '{render(item)}' must be the last parameter",
                        original_expr_str,
                    )
            if name in seen:
                raise MalformedFormError(f"Duplicate parameter name '{name}'", original_expr_str)
            seen.add(name)
            params.append(ParamSpec(name, suspended=suspended, rest=rest))
        return params
