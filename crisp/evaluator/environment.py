"""
Binding environments for Crisp evaluation.
An environment is a chain of mutable frames; lookups walk from the current
frame toward the root.
"""

import logging
from typing import Any, Dict, Optional

from crisp.system.errors import UnboundSymbolError

logger = logging.getLogger(__name__)


class CrispEnvironment:
    """
    A frame of symbol bindings with an optional parent frame.

    Bindings map symbol names to values, combiners or suspended forms.
    Fexpr application never creates a frame; frames exist only where the
    host introduces them (the global frame, or sandboxes built with `extend`).
    """

    def __init__(
        self,
        bindings: Optional[Dict[str, Any]] = None,
        parent: Optional['CrispEnvironment'] = None
    ):
        """
        Initializes a new CrispEnvironment.

        Args:
            bindings: An optional dictionary of initial bindings for this frame.
            parent: An optional parent environment for creating nested scopes.
                    Defaults to None, indicating a top-level frame.
        """
        self._bindings: Dict[str, Any] = bindings if bindings is not None else {}
        self._parent: Optional['CrispEnvironment'] = parent
        logger.debug(f"Initialized CrispEnvironment (Parent: {parent is not None}, Bindings: {list(self._bindings.keys())})")

    @property
    def parent(self) -> Optional['CrispEnvironment']:
        return self._parent

    def lookup(self, name: str) -> Any:
        """
        Looks up a symbol in this frame and then in its ancestors.

        Args:
            name: The symbol name to look up.

        Returns:
            The binding associated with the name.

        Raises:
            UnboundSymbolError: If no frame in the chain binds the name.
        """
        env: Optional[CrispEnvironment] = self
        while env is not None:
            if name in env._bindings:
                value = env._bindings[name]
                logger.debug(f"  Found '{name}' in env {id(env)}. Value type: {type(value).__name__}")
                return value
            env = env._parent
        logger.debug(f"  '{name}' not found in env chain starting at {id(self)}.")
        raise UnboundSymbolError(name)

    def is_bound(self, name: str) -> bool:
        env: Optional[CrispEnvironment] = self
        while env is not None:
            if name in env._bindings:
                return True
            env = env._parent
        return False

    def define(self, name: str, value: Any) -> None:
        """
        Defines or redefines a binding in the *current* frame.
        Parent frames are never affected.

        Args:
            name: The symbol name to bind.
            value: The value, combiner or suspended form to bind.
        """
        logger.debug(f"Defining '{name}' = {type(value).__name__} in env {id(self)}")
        self._bindings[name] = value

    def assign(self, name: str, value: Any) -> None:
        """Overwrites an *existing* binding in the nearest frame that defines it.

        Searches from the current frame up the parent chain and updates the
        first binding found.

        Args:
            name: The symbol name to update.
            value: The new value.

        Raises:
            UnboundSymbolError: If no frame defines the name. No binding is
                                created in that case.
        """
        env: Optional[CrispEnvironment] = self
        while env is not None:
            if name in env._bindings:
                logger.debug(f"Found '{name}' in env {id(env)}, updating value.")
                env._bindings[name] = value
                return
            env = env._parent

        logger.debug(f"Cannot assign unbound symbol '{name}'.")
        raise UnboundSymbolError(name, error_details="set only updates existing bindings; use let to create one")

    def extend(self, bindings: Optional[Dict[str, Any]] = None) -> 'CrispEnvironment':
        """
        Creates a child frame whose parent is this environment.

        Args:
            bindings: Initial bindings for the child frame.

        Returns:
            The new child CrispEnvironment.
        """
        logger.debug(f"Extending env {id(self)} with bindings: {list((bindings or {}).keys())}")
        return CrispEnvironment(bindings=dict(bindings or {}), parent=self)

    def get_local_bindings(self) -> Dict[str, Any]:
        """Returns a copy of the bindings defined directly in this frame."""
        return self._bindings.copy()

    def __repr__(self) -> str:
        parent_id = id(self._parent) if self._parent else None
        return f"<CrispEnvironment id={id(self)} parent={parent_id} bindings={list(self._bindings.keys())}>"
