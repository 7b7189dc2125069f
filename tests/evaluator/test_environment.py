"""
Unit tests for the CrispEnvironment class.
"""

import pytest

from crisp.evaluator.environment import CrispEnvironment
from crisp.system.errors import UnboundSymbolError

# --- Test Initialization ---

def test_init_no_parent():
    """Test creating a top-level environment."""
    env = CrispEnvironment()
    assert env.parent is None
    assert env.get_local_bindings() == {}

def test_init_with_bindings():
    env = CrispEnvironment(bindings={"x": 1})
    assert env.lookup("x") == 1

# --- Test define / lookup ---

def test_define_and_redefine():
    env = CrispEnvironment()
    env.define("x", 10)
    env.define("x", 20)
    assert env.lookup("x") == 20
    assert env.get_local_bindings() == {"x": 20}

def test_lookup_walks_parent_chain():
    """Test looking up names defined one and two levels up."""
    grandparent = CrispEnvironment()
    grandparent.define("a", 1)
    parent = grandparent.extend({"b": 2})
    child = parent.extend()
    assert child.lookup("a") == 1
    assert child.lookup("b") == 2

def test_define_shadows_parent_without_touching_it():
    parent = CrispEnvironment()
    parent.define("x", "outer")
    child = parent.extend()
    child.define("x", "inner")
    assert child.lookup("x") == "inner"
    assert parent.lookup("x") == "outer"

def test_lookup_unbound_raises():
    env = CrispEnvironment().extend()
    with pytest.raises(UnboundSymbolError, match="Unbound symbol: 'missing'"):
        env.lookup("missing")

def test_is_bound():
    parent = CrispEnvironment({"x": 1})
    child = parent.extend()
    assert child.is_bound("x")
    assert not child.is_bound("y")
    assert not parent.is_bound("y")

# --- Test assign ---

def test_assign_updates_nearest_defining_frame():
    parent = CrispEnvironment({"x": 1})
    child = parent.extend()
    child.assign("x", 2)
    assert parent.lookup("x") == 2
    assert "x" not in child.get_local_bindings()

def test_assign_prefers_shadowing_binding():
    parent = CrispEnvironment({"x": 1})
    child = parent.extend({"x": 5})
    child.assign("x", 6)
    assert child.lookup("x") == 6
    assert parent.lookup("x") == 1

def test_assign_unbound_creates_nothing():
    env = CrispEnvironment()
    with pytest.raises(UnboundSymbolError) as exc_info:
        env.assign("ghost", 1)
    assert "use let" in exc_info.value.error_details
    assert not env.is_bound("ghost")

# --- Test extend ---

def test_extend_copies_initial_bindings():
    initial = {"a": 1}
    parent = CrispEnvironment()
    child = parent.extend(initial)
    child.define("b", 2)
    assert initial == {"a": 1}
    assert child.parent is parent

def test_get_local_bindings_is_a_copy():
    env = CrispEnvironment({"a": 1})
    local = env.get_local_bindings()
    local["b"] = 2
    assert not env.is_bound("b")
