"""Tests for the primitive builtins (arithmetic, comparison, lists, debug)."""

import pytest

from crisp.system.errors import CrispEvaluationError, MalformedFormError, TypeMismatchError
from crisp.system.types import NIL, T, ListExpr, Number, Symbol


class TestArithmetic:
    def test_add(self, run):
        assert run("(+ 1 2 3)") == Number(6)
        assert run("(+ 5)") == Number(5)

    def test_subtract(self, run):
        assert run("(- 10 3 2)") == Number(5)
        assert run("(- 4)") == Number(-4)

    def test_multiply(self, run):
        assert run("(* 2 3 4)") == Number(24)

    @pytest.mark.parametrize("source, expected", [
        ("(/ 7 2)", 3),
        ("(/ -7 2)", -3),
        ("(/ 7 -2)", -3),
        ("(/ -7 -2)", 3),
        ("(/ 100 5 2)", 10),
    ])
    def test_divide_truncates_toward_zero(self, run, source, expected):
        assert run(source) == Number(expected)

    def test_divide_by_zero(self, run):
        with pytest.raises(CrispEvaluationError, match="Division by zero"):
            run("(/ 1 0)")

    def test_non_number_operand(self, run):
        """(+ 1 'a) fails with TypeMismatch."""
        with pytest.raises(TypeMismatchError, match="argument 2 must be a number"):
            run("(+ 1 'a)")

    def test_stops_at_first_bad_operand(self, run, global_env):
        run("(let 'x 0)")
        with pytest.raises(TypeMismatchError):
            run("(+ nil (set 'x 1))")
        assert global_env.lookup("x") == Number(0)

    def test_requires_an_operand(self, run):
        with pytest.raises(MalformedFormError):
            run("(+)")


class TestComparison:
    def test_equal_numbers(self, run):
        assert run("(= 2 2 2)") is T
        assert run("(= 2 3)") is NIL

    def test_equal_structures(self, run):
        assert run("(= '(a 1) (list 'a 1))") is T
        assert run("(= 'a 'b)") is NIL
        assert run("(= nil nil)") is T

    def test_not_equal(self, run):
        assert run("(/= 1 2)") is T
        assert run("(/= 1 1)") is NIL


class TestLists:
    def test_list(self, run):
        assert run("(list 1 (+ 1 1) 'x)") == ListExpr([Number(1), Number(2), Symbol("x")])
        assert run("(list)") is NIL

    def test_car_cdr(self, run):
        assert run("(car '(a b c))") == Symbol("a")
        assert run("(cdr '(a b c))") == ListExpr([Symbol("b"), Symbol("c")])
        assert run("(cdr '(a))") is NIL
        assert run("(car nil)") is NIL
        assert run("(cdr nil)") is NIL

    def test_car_of_non_list(self, run):
        with pytest.raises(TypeMismatchError):
            run("(car 5)")


class TestDebug:
    def test_debug_prints_and_returns_value(self, run, output):
        assert run("(debug (+ 1 2))") == Number(3)
        assert output.getvalue() == "3\n"

    def test_debug_renderings(self, run, output):
        run("(debug nil)")
        run("(debug '(a (1 b)))")
        run("(debug 'sym)")
        assert output.getvalue().splitlines() == ["nil", "(a (1 b))", "sym"]

    def test_debug_arity(self, run):
        with pytest.raises(MalformedFormError):
            run("(debug 1 2)")
