from fractions import Fraction

import pytest

from mexpr.mexpr_answer import Answer
from mexpr.mexpr_context import Config, Context
from mexpr.mexpr_errors import (
    DivisionByZero, DomainError, UndefinedFunction, UndefinedVariable, Unimplemented
)
from mexpr.mexpr_evaluator import ARITY, Evaluator
from mexpr.mexpr_numbers import Complex, Float, Rational
from mexpr.mexpr_runtime import evaluate_text, parse
from mexpr.mexpr_terms import FunctionCall, Number, Op, Operation, Variable


def F(v):
    return Float(float(v))


def ev(source, ctx=None):
    return evaluate_text(source, ctx or Context())


# Each entry: (test_id, source, expected Answer)
VALUE_CASES = [
    ("number", "42", Answer.single(F(42))),
    ("sum", "1 + 2", Answer.single(F(3))),
    ("precedence", "1 + 2 * 3", Answer.single(F(7))),
    ("left_assoc_div", "8 / 4 / 2", Answer.single(F(1))),
    ("neg_outside_power", "-2^2", Answer.single(F(-4))),
    ("power_right_assoc", "2^3^2", Answer.single(F(512))),
    ("negative_exponent", "2^-1", Answer.single(F(0.5))),
    ("grouping", "(1 + 2) * 3", Answer.single(F(9))),
    ("factorial", "3! + 1", Answer.single(F(7))),
    ("power_of_factorial", "2^3!", Answer.single(F(64))),
    ("neg_factorial", "-3!", Answer.single(F(-6))),
    ("percent", "50% * 8", Answer.single(F(4))),
    ("aliases", "6 × 2 ÷ 4", Answer.single(F(3))),
    ("unary_plus", "+3 - +1", Answer.single(F(2))),
    ("double_negation", "--2", Answer.single(F(2))),
    ("implicit_group", "2(3 + 4)", Answer.single(F(14))),
    ("implicit_groups", "(1 + 1)(2 + 2)", Answer.single(F(8))),
    ("unary_plus_minus", "±5", Answer.multiple([F(5), F(-5)])),
    ("binary_plus_minus", "10 ± 2", Answer.multiple([F(12), F(8)])),
    ("plus_minus_pairs", "±2 + ±3", Answer.multiple([F(5), F(-1), F(1), F(-5)])),
    ("plus_minus_then_multiply", "2 * ±3", Answer.multiple([F(6), F(-6)])),
]


@pytest.mark.parametrize("test_id, source, expected", VALUE_CASES, ids=[t[0] for t in VALUE_CASES])
def test_values(test_id, source, expected):
    assert ev(source) == expected


def test_implicit_multiplication_with_variable():
    ctx = Context()
    ctx.set_var("x", 8)
    assert ev("3x", ctx) == Answer.single(F(24))


def test_variable_times_group_when_not_a_function():
    ctx = Context()
    ctx.set_var("foo", 2)
    assert ev("foo(3 + 5)", ctx) == Answer.single(F(16))


def test_function_call_when_name_is_a_function():
    ctx = Context()
    ctx.set_var("foo", 2)
    ctx.set_func("foo", lambda args, c: args[0].evaluate(c).map(lambda n: n.mul(n, c)))
    assert ev("foo(3 + 5)", ctx) == Answer.single(F(64))


def test_undefined_variable():
    with pytest.raises(UndefinedVariable) as excinfo:
        ev("1 + y")
    err = excinfo.value
    assert err.name == "y" and err.kind == "undefined-variable"
    assert err.loc['col'] == 5


def test_undefined_function():
    ctx = Context(config=Config(implicit_multiplication=False))
    with pytest.raises(UndefinedFunction) as excinfo:
        ev("nope(1)", ctx)
    assert excinfo.value.name == "nope"
    assert excinfo.value.loc['col'] == 1


def test_division_by_zero_carries_operator_location():
    with pytest.raises(DivisionByZero) as excinfo:
        ev("1 + 1/0")
    assert excinfo.value.loc['col'] == 6


def test_error_in_any_combination_aborts():
    # the second value of d divides by zero
    ctx = Context()
    ctx.set_var("d", Answer.multiple([F(1), F(0)]))
    with pytest.raises(DivisionByZero):
        ev("1/d", ctx)


def test_backend_partiality_is_reported():
    with pytest.raises(Unimplemented):
        ev("sin(1)", Context(Rational))


def test_rational_arithmetic_stays_exact():
    assert ev("1/3 + 1/6", Context(Rational)).value == Fraction(1, 2)
    with pytest.raises(DomainError):
        ev("sqrt(2)", Context(Rational))


# =================================================================
# Variable bindings
# =================================================================

def test_variable_bound_to_python_number_uses_context_backend():
    ctx = Context(Rational)
    ctx.set_var("x", Fraction(1, 3))
    assert ev("3x", ctx).value == Rational(Fraction(1))


@pytest.mark.parametrize("backend", [Float, Complex], ids=["float", "complex"])
def test_variable_bound_to_oversized_int_is_a_domain_error(backend):
    ctx = Context(backend)
    ctx.set_var("x", 10**400)
    with pytest.raises(DomainError):
        ev("x + 1", ctx)


def test_variable_bound_to_oversized_int_is_exact_under_rational():
    ctx = Context(Rational)
    ctx.set_var("x", 10**400)
    assert ev("x + 1", ctx).value == Rational(Fraction(10**400 + 1))


def test_variable_bound_to_answer():
    ctx = Context()
    ctx.set_var("r", Answer.multiple([F(1), F(-1)]))
    assert ev("r + 10", ctx) == Answer.multiple([F(11), F(9)])


def test_variable_bound_to_expression_is_evaluated_lazily():
    ctx = Context()
    ctx.set_var("y", 3)
    ctx.set_var("x", parse("2y", ctx))
    assert ev("x + 1", ctx).value == 7.0
    ctx.set_var("y", 10)
    assert ev("x + 1", ctx).value == 21.0


def test_constants_follow_the_backend():
    assert ev("2pi").value.value == pytest.approx(6.283185307179586)
    with pytest.raises(Unimplemented):
        ev("pi", Context(Rational))


# =================================================================
# Expressions
# =================================================================

def test_idempotence():
    ctx = Context()
    ctx.set_var("x", 2)
    expr = parse("±x^2 + sqrt(x)", ctx)
    assert expr.evaluate() == expr.evaluate()


def test_parse_then_evaluate_matches_evaluate_text():
    ctx = Context()
    ctx.set_var("x", 1.5)
    for source in ("3x + 1", "±x", "max(x, 2) * 2", "x!"):
        assert parse(source, ctx).evaluate() == evaluate_text(source, ctx)


def test_context_mutation_is_visible_to_existing_expressions():
    ctx = Context()
    ctx.set_var("x", 4.0)
    expr = parse("x * 2", ctx)
    assert expr.evaluate() == Answer.single(F(8))
    ctx.set_var("x", 10.0)
    assert expr.evaluate() == Answer.single(F(20))


def test_evaluate_with_another_context():
    ctx = Context()
    expr = parse("1/4 + 1/4", ctx)
    assert expr.evaluate_with(Context(Rational)).value == Fraction(1, 2)


def test_evaluation_does_not_mutate_the_tree():
    term = Operation(Op.ADD, [Number("1"), Variable("x")])
    ctx = Context()
    ctx.set_var("x", 1)
    before = repr(term)
    Evaluator().eval(term, ctx)
    assert repr(term) == before
    with pytest.raises(AttributeError):
        term.op = Op.SUB


def test_operation_arity_is_checked():
    with pytest.raises(TypeError):
        Evaluator().eval(Operation(Op.ADD, [Number("1")]), Context())
    assert ARITY[Op.PLUS_MINUS] == (1, 2)


def test_function_call_node_evaluates_directly():
    assert FunctionCall("sqrt", [Number("9")]).evaluate(Context()) == Answer.single(F(3))
