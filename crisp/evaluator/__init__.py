"""Evaluator component for Crisp programs.

Dispatches on expression shape, applies builtin forms and user fexprs, and
forces suspended arguments in the caller's environment.
"""

from .combiners import BuiltinForm, ParamSpec, SuspendedForm, UserFexpr
from .environment import CrispEnvironment
from .evaluator import CrispEvaluator
from .printer import render

__all__ = [
    "BuiltinForm",
    "CrispEnvironment",
    "CrispEvaluator",
    "ParamSpec",
    "SuspendedForm",
    "UserFexpr",
    "render",
]
