import pytest

from mexpr.mexpr_answer import Answer
from mexpr.mexpr_context import Context
from mexpr.mexpr_numbers import Complex, Float
from mexpr.mexpr_parser import parse_term
from mexpr.mexpr_printer import Printer
from mexpr.mexpr_terms import FunctionCall, Number, Op, Operation, Variable


@pytest.fixture
def printer():
    return Printer()


@pytest.fixture(scope="module")
def ctx():
    return Context()


# Test cases: (id, object, expected_string)
FORMAT_TEST_CASES = [
    ("number", Number("2.50"), "2.50"),
    ("variable", Variable("x"), "x"),
    ("sum", Operation(Op.ADD, [Number("1"), Variable("x")]), "(1 + x)"),
    ("negation", Operation(Op.NEG, [Variable("x")]), "(-x)"),
    ("unary_plus_minus", Operation(Op.PLUS_MINUS, [Number("2")]), "(±2)"),
    ("binary_plus_minus", Operation(Op.PLUS_MINUS, [Number("1"), Number("2")]), "(1 ± 2)"),
    ("factorial", Operation(Op.FACTORIAL, [Number("3")]), "(3!)"),
    ("percent", Operation(Op.PERCENT, [Number("5")]), "(5%)"),
    ("call", FunctionCall("max", [Number("1"), Variable("y")]), "max(1, y)"),
    ("empty_call", FunctionCall("f", []), "f()"),
    ("float", Float(2.0), "2.0"),
    ("complex", Complex(1 + 2j), "(1.0 + 2.0i)"),
    ("single_answer", Answer.single(Float(2.0)), "2.0"),
    ("multiple_answer", Answer.multiple([Float(2.0), Float(-2.0)]), "S = {2.0, -2.0}"),
]


@pytest.mark.parametrize(
    "test_id, obj, expected",
    FORMAT_TEST_CASES,
    ids=[t[0] for t in FORMAT_TEST_CASES]
)
def test_pformat(printer, test_id, obj, expected):
    assert printer.pformat(obj) == expected


def test_str_uses_printer():
    assert str(Operation(Op.POW, [Number("2"), Number("3")])) == "(2 ^ 3)"
    assert str(Answer.multiple([Float(1.0), Float(2.0)])) == "S = {1.0, 2.0}"


@pytest.mark.parametrize("source", [
    "-2^2",
    "2^3^2",
    "3x + 4",
    "±2 + ±3",
    "1 ± 2",
    "sin(x)^2 + cos(x)^2",
    "max(1, 2, 3)!",
    "50% - 1",
])
def test_printed_terms_parse_back_to_the_same_tree(ctx, source):
    term = parse_term(source, ctx)
    assert parse_term(str(term), ctx) == term


def test_unknown_objects_fall_back_to_repr(printer):
    assert printer.pformat([1]) == "[1]"
