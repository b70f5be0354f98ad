import pytest

from mexpr.mexpr_answer import Answer
from mexpr.mexpr_context import Context
from mexpr.mexpr_errors import LexError, MathError, ParseError, UndefinedVariable, source_context
from mexpr.mexpr_numbers import Float
from mexpr.mexpr_runtime import EvaluationResult, Expression, evaluate_text, parse, try_evaluate


def assert_ok(res, expected=None):
    assert res.status == "success", f"expected success, got {res}"
    if expected is not None:
        assert res.value == expected, f"expected {expected!r}, got {res.value!r}"


def assert_error(res, kind):
    assert res.status == "error", f"expected error, got {res}"
    assert res.error.kind == kind


def test_parse_without_context_uses_defaults():
    expr = parse("sqrt(16) + 1")
    assert isinstance(expr, Expression)
    assert isinstance(expr.context, Context)
    assert expr.evaluate() == Answer.single(Float(5.0))


def test_evaluate_text_without_context():
    assert evaluate_text("2 + 2") == Answer.single(Float(4.0))


def test_expression_str_and_equality():
    ctx = Context()
    a = parse("1+x", ctx)
    b = parse("1 + x", ctx)
    assert a == b and hash(a) == hash(b)
    assert str(a) == "(1 + x)"
    assert repr(a) == "Expression(Operation(ADD, [Number('1'), Variable('x')]))"
    assert a != parse("1 + x", Context())


def test_try_evaluate_success():
    assert_ok(try_evaluate("±1"), Answer.multiple([Float(1.0), Float(-1.0)]))
    assert try_evaluate("1").format_error() == ""


@pytest.mark.parametrize("source, kind", [
    ("1 $ 2", "lex"),
    ("1 +", "parse"),
    ("q + 1", "undefined-variable"),
    ("1/0", "division-by-zero"),
    ("sqrt(-1)", "domain"),
    ("sin(1, 2)", "incorrect-arguments"),
])
def test_try_evaluate_captures_math_errors(source, kind):
    assert_error(try_evaluate(source), kind)


def test_try_evaluate_propagates_host_errors():
    ctx = Context()
    ctx.set_func("broken", lambda args, c: "not a number")
    with pytest.raises(TypeError):
        try_evaluate("broken(1)", ctx)


def test_format_error_shows_location_and_caret():
    res = try_evaluate("1 +\n  2 * y")
    assert isinstance(res, EvaluationResult)
    text = res.format_error()
    assert text.startswith("Error on line 2, col 7: UndefinedVariable: variable 'y' is not defined")
    assert "> 2 |   2 * y" in text
    assert text.splitlines()[-1] == "    |       ^"


def test_format_without_location():
    err = MathError("boom")
    assert err.format() == "MathError: boom"
    assert err.format("1 + 1") == "MathError: boom"


def test_errors_share_a_base_class():
    for exc in (LexError, ParseError, UndefinedVariable):
        assert issubclass(exc, MathError)


def test_source_context_bounds():
    assert source_context("1 + 1", 5, 1) == ""
    assert source_context("a\nb\nc", 2, None) == "  1 | a\n> 2 | b\n  3 | c"
