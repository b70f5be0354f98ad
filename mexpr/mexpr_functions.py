"""
Function dispatch and the built-in function library.

A function receives its argument terms unevaluated, together with the
active Context. It checks its own argument count before evaluating
anything, and decides which arguments to evaluate and in what order.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence, TYPE_CHECKING

from mexpr.mexpr_answer import Answer
from mexpr.mexpr_errors import IncorrectArguments
from mexpr.mexpr_numbers import Num, PYTHON_NUMBERS
from mexpr.mexpr_terms import Term

if TYPE_CHECKING:
    from mexpr.mexpr_context import Context


class Func(ABC):
    """Abstract base class for anything bindable as a function in a Context."""

    @abstractmethod
    def call(self, args: Sequence[Term], ctx: 'Context') -> Answer:
        """Evaluates the call. Raise IncorrectArguments for a bad argument list."""


class CallableFunc(Func):
    """Adapts a plain callable `(args, ctx) -> result` to the Func interface.

    The callable may return an Answer, a backend number, or a plain Python
    number, which is converted with the context's backend.
    """
    def __init__(self, fn: Callable[[Sequence[Term], 'Context'], Any], name: Optional[str] = None):
        self.fn = fn
        self.name = name or getattr(fn, '__name__', None)

    def call(self, args: Sequence[Term], ctx: 'Context') -> Answer:
        return as_answer(self.fn(args, ctx), ctx)

    def __repr__(self) -> str:
        return f"<CallableFunc name={self.name!r}>"


class Constant:
    """A named constant whose value is supplied by the active backend.

    Resolving it at lookup time keeps it in step with the context's
    backend and precision.
    """
    def __init__(self, name: str):
        self.name = name

    def evaluate(self, ctx: 'Context') -> Answer:
        return Answer.single(ctx.number.constant(self.name, ctx))

    def __repr__(self) -> str:
        return f"Constant({self.name!r})"

    def __eq__(self, other):
        return isinstance(other, Constant) and self.name == other.name

    def __hash__(self):
        return hash(('constant', self.name))


def as_answer(result: Any, ctx: 'Context') -> Answer:
    """Normalizes a function's return value to an Answer."""
    if isinstance(result, Answer):
        return result
    if isinstance(result, Num):
        return Answer.single(result)
    if isinstance(result, PYTHON_NUMBERS) and not isinstance(result, bool):
        return Answer.single(ctx.number.from_python(result, ctx))
    raise TypeError(f"Function returned unsupported value of type {type(result).__name__}")


def expect_args(name: str, args: Sequence[Term], minimum: int, maximum: Optional[int] = None):
    """Raises IncorrectArguments unless minimum <= len(args) <= maximum.

    With maximum omitted the count must equal minimum; pass -1 for no upper bound.
    """
    maximum = minimum if maximum is None else maximum
    count = len(args)
    if count < minimum or (maximum >= 0 and count > maximum):
        if maximum == minimum:
            expected = f"exactly {minimum}"
        elif maximum < 0:
            expected = f"at least {minimum}"
        else:
            expected = f"{minimum} to {maximum}"
        plural = "" if expected.endswith(" 1") else "s"
        raise IncorrectArguments(name, f"expected {expected} argument{plural}, got {count}")


def _unary(name: str, args: Sequence[Term], ctx: 'Context') -> Answer:
    expect_args(name, args, 1)
    return args[0].evaluate(ctx).map(lambda n: getattr(n, name)(ctx))


def _binary(name: str, args: Sequence[Term], ctx: 'Context') -> Answer:
    expect_args(name, args, 2)
    left = args[0].evaluate(ctx)
    right = args[1].evaluate(ctx)
    return left.op(right, lambda a, b: getattr(a, name)(b, ctx))


def _extreme(name: str, args: Sequence[Term], ctx: 'Context', sign: int) -> Answer:
    expect_args(name, args, 1, -1)
    best = None
    for arg in args:
        for candidate in arg.evaluate(ctx):
            if best is None or candidate.compare(best, ctx) == sign:
                best = candidate
    return Answer.single(best)


class Builtins:
    """Python implementations of the built-in functions.

    Every method named `_<name>` is registered as function `<name>`.
    """

    def install(self, ctx: 'Context'):
        for name, member in inspect.getmembers(self):
            if name.startswith('_') and not name.startswith('__') and callable(member):
                ctx.set_func(name[1:], CallableFunc(member, name[1:]))

    # --- Trigonometry ---
    def _sin(self, args, ctx): return _unary('sin', args, ctx)
    def _cos(self, args, ctx): return _unary('cos', args, ctx)
    def _tan(self, args, ctx): return _unary('tan', args, ctx)
    def _asin(self, args, ctx): return _unary('asin', args, ctx)
    def _acos(self, args, ctx): return _unary('acos', args, ctx)
    def _atan(self, args, ctx): return _unary('atan', args, ctx)
    def _atan2(self, args, ctx): return _binary('atan2', args, ctx)

    # --- Roots and magnitude ---
    def _sqrt(self, args, ctx): return _unary('sqrt', args, ctx)
    def _nrt(self, args, ctx): return _binary('nrt', args, ctx)
    def _abs(self, args, ctx): return _unary('abs', args, ctx)

    # --- Rounding ---
    def _floor(self, args, ctx): return _unary('floor', args, ctx)
    def _ceil(self, args, ctx): return _unary('ceil', args, ctx)
    def _round(self, args, ctx): return _unary('round', args, ctx)

    # --- Exponentials ---
    def _exp(self, args, ctx): return _unary('exp', args, ctx)
    def _ln(self, args, ctx): return _unary('ln', args, ctx)

    def _log(self, args, ctx):
        # log(x) is base 10; log(x, b) is base b.
        expect_args('log', args, 1, 2)
        value = args[0].evaluate(ctx)
        if len(args) == 2:
            base = args[1].evaluate(ctx)
        else:
            base = Answer.single(ctx.number.from_python(10, ctx))
        return value.op(base, lambda a, b: a.log(b, ctx))

    # --- Comparison ---
    def _max(self, args, ctx): return _extreme('max', args, ctx, 1)
    def _min(self, args, ctx): return _extreme('min', args, ctx, -1)


CONSTANTS = ('pi', 'e')
COMPLEX_CONSTANTS = ('i',)


__all__ = [
    "Func",
    "CallableFunc",
    "Constant",
    "Builtins",
    "as_answer",
    "expect_args",
    "CONSTANTS",
    "COMPLEX_CONSTANTS",
]
