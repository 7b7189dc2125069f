"""
Defines the combiner types stored in Crisp environments and the
SuspendedForm pairing used for unevaluated fexpr arguments.
"""
import logging
from typing import Any, Callable, List, Optional, Sequence

from crisp.system.types import Expression
from .environment import CrispEnvironment
from .printer import render

logger = logging.getLogger(__name__)

# handler(operands, env, original_expr_str) -> Value
BuiltinHandler = Callable[[Sequence[Expression], CrispEnvironment, str], Any]


class SuspendedForm:
    """
    An unevaluated argument expression paired with the caller's environment.

    Forcing never caches: every force re-evaluates `expression` in
    `environment`, so side effects run once per forcing.

    With `sequence` set, `expression` is a list of operands (nil when
    empty) that forcing runs in order, yielding the last value.
    """

    def __init__(self, expression: Expression, environment: CrispEnvironment, sequence: bool = False):
        self.expression = expression
        self.environment = environment
        self.sequence = sequence

    def __repr__(self):
        return f"<SuspendedForm expr={self.expression!r} env_id={id(self.environment)}>"

    def __str__(self):
        return f"<suspended {render(self.expression)}>"


class ParamSpec:
    """
    One formal parameter of a user fexpr.

    Attributes:
        name: The name bound in the caller environment during the call.
        suspended: True for `'name` parameters (receive a SuspendedForm),
                   False for bare parameters (receive the evaluated value).
        rest: True for a trailing `name...` parameter collecting remaining operands.
    """

    def __init__(self, name: str, suspended: bool = False, rest: bool = False):
        self.name = name
        self.suspended = suspended
        self.rest = rest

    def __repr__(self):
        return f"ParamSpec({self.name!r}, suspended={self.suspended}, rest={self.rest})"

    def __eq__(self, other):
        return (
            isinstance(other, ParamSpec)
            and (self.name, self.suspended, self.rest) == (other.name, other.suspended, other.rest)
        )

    def __hash__(self):
        return hash((self.name, self.suspended, self.rest))

    def __str__(self):
        prefix = "'" if self.suspended else ""
        suffix = "..." if self.rest else ""
        return f"{prefix}{self.name}{suffix}"


class BuiltinForm:
    """A combiner implemented natively; it receives its operands unevaluated."""

    def __init__(self, name: str, handler: BuiltinHandler):
        self.name = name
        self.handler = handler

    def __call__(self, operands: Sequence[Expression], env: CrispEnvironment, original_expr_str: str) -> Any:
        return self.handler(operands, env, original_expr_str)

    def __repr__(self):
        return f"<BuiltinForm {self.name}>"

    def __str__(self):
        return f"<builtin {self.name}>"


class UserFexpr:
    def __init__(
        self,
        name: str,
        params: List[ParamSpec],
        body: List[Expression],
        definition_env: CrispEnvironment,
    ):
        """
        Represents a combiner created by 'defun'.

        Args:
            name: The name the fexpr was defined under.
            params: Ordered parameter specs; at most one rest spec, in last position.
            body: Body expressions, evaluated in order in the caller's environment.
            definition_env: The environment active at definition time. Recorded
                            for introspection only; bodies never run in it.
        """
        self.name = name
        self.params = params
        self.body = body
        self.definition_env = definition_env
        logger.debug(f"UserFexpr created: name={name}, params=({', '.join(map(str, params))}), num_body_exprs={len(body)}")

    @property
    def rest_param(self) -> Optional[ParamSpec]:
        if self.params and self.params[-1].rest:
            return self.params[-1]
        return None

    @property
    def required_params(self) -> List[ParamSpec]:
        return [p for p in self.params if not p.rest]

    def __repr__(self):
        return f"<UserFexpr {self.name} params=({' '.join(map(str, self.params))}) body_exprs#={len(self.body)}>"

    def __str__(self):
        return f"<fexpr {self.name}>"
