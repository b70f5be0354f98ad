"""
The numeric capability and the standard-library number backends.

A backend subclasses Num and overrides the operations its representation
supports. Every operation on the base class raises Unimplemented, so a
partial backend is still a complete Num: asking a Rational for `sin`
fails at call time with a typed error instead of at import time.

Operations take the active Context (for precision and root policy) and
return an Answer, since some of them are multi-valued.
"""

import cmath
import math
from abc import ABC, abstractmethod
from fractions import Fraction
from typing import Any, Dict, Type, TYPE_CHECKING

from mexpr.mexpr_answer import Answer
from mexpr.mexpr_errors import DivisionByZero, DomainError, Unimplemented

if TYPE_CHECKING:
    from mexpr.mexpr_context import Context

PYTHON_NUMBERS = (int, float, complex, Fraction)


class Num(ABC):
    """Abstract base for every number representation the evaluator can use."""
    typename = "Num"
    is_complex = False

    def __init__(self, value: Any):
        self.value = value

    # --- Construction ---
    @classmethod
    @abstractmethod
    def from_literal(cls, text: str, ctx: 'Context') -> 'Num':
        """Builds a number from a lexed literal such as '12' or '0.25'."""

    @classmethod
    @abstractmethod
    def from_python(cls, value: Any, ctx: 'Context') -> 'Num':
        """Converts a plain Python number bound by a host program."""

    @classmethod
    def constant(cls, name: str, ctx: 'Context') -> 'Num':
        raise Unimplemented(f"constant {name}", cls.typename)

    # --- Helpers ---
    def _unimplemented(self, operation: str):
        raise Unimplemented(operation, self.typename)

    def _single(self, value: Any) -> Answer:
        return Answer.single(type(self)(value))

    def _roots(self, root: Any, ctx: 'Context') -> Answer:
        """Principal root, or both signs of it under the 'all' policy."""
        if ctx.config.root_policy == 'all' and root != 0:
            return Answer.multiple([type(self)(root), type(self)(-root)])
        return self._single(root)

    # --- Ordering ---
    def compare(self, other: 'Num', ctx: 'Context') -> int:
        """Returns -1, 0 or 1."""
        self._unimplemented("compare")

    # --- Arithmetic ---
    def add(self, other: 'Num', ctx: 'Context') -> Answer: self._unimplemented("add")
    def sub(self, other: 'Num', ctx: 'Context') -> Answer: self._unimplemented("sub")
    def mul(self, other: 'Num', ctx: 'Context') -> Answer: self._unimplemented("mul")
    def div(self, other: 'Num', ctx: 'Context') -> Answer: self._unimplemented("div")
    def pow(self, other: 'Num', ctx: 'Context') -> Answer: self._unimplemented("pow")

    def neg(self, ctx: 'Context') -> Answer:
        return type(self).from_python(0, ctx).sub(self, ctx)

    def percent(self, ctx: 'Context') -> Answer:
        return self.div(type(self).from_python(100, ctx), ctx)

    def factorial(self, ctx: 'Context') -> Answer: self._unimplemented("factorial")

    # --- Roots ---
    def sqrt(self, ctx: 'Context') -> Answer: self._unimplemented("sqrt")
    def nrt(self, other: 'Num', ctx: 'Context') -> Answer: self._unimplemented("nrt")

    # --- Transcendental and rounding ---
    def abs(self, ctx: 'Context') -> Answer: self._unimplemented("abs")
    def sin(self, ctx: 'Context') -> Answer: self._unimplemented("sin")
    def cos(self, ctx: 'Context') -> Answer: self._unimplemented("cos")
    def tan(self, ctx: 'Context') -> Answer: self._unimplemented("tan")
    def asin(self, ctx: 'Context') -> Answer: self._unimplemented("asin")
    def acos(self, ctx: 'Context') -> Answer: self._unimplemented("acos")
    def atan(self, ctx: 'Context') -> Answer: self._unimplemented("atan")
    def atan2(self, other: 'Num', ctx: 'Context') -> Answer: self._unimplemented("atan2")
    def floor(self, ctx: 'Context') -> Answer: self._unimplemented("floor")
    def ceil(self, ctx: 'Context') -> Answer: self._unimplemented("ceil")
    def round(self, ctx: 'Context') -> Answer: self._unimplemented("round")
    def ln(self, ctx: 'Context') -> Answer: self._unimplemented("ln")
    def log(self, other: 'Num', ctx: 'Context') -> Answer: self._unimplemented("log")
    def exp(self, ctx: 'Context') -> Answer: self._unimplemented("exp")

    # --- Python protocol ---
    def __eq__(self, other):
        if isinstance(other, Num):
            return type(self) is type(other) and self.value == other.value
        if isinstance(other, PYTHON_NUMBERS):
            return self.value == other
        return NotImplemented

    def __hash__(self):
        return hash(self.value)

    def __repr__(self) -> str:
        return f"{self.typename}({self.value!r})"

    def __str__(self) -> str:
        return str(self.value)


def _guarded(operation: str, fn, *args):
    """Runs a math/cmath call, mapping its exceptions to domain errors."""
    try:
        return fn(*args)
    except ZeroDivisionError:
        raise DivisionByZero(operation)
    except OverflowError:
        raise DomainError(operation, "result out of range")
    except ValueError as e:
        raise DomainError(operation, str(e))


def _round_half_away(x):
    return math.copysign(math.floor(abs(x) + 0.5), x)


# =================================================================
# Float: Python float with the math module
# =================================================================

class Float(Num):
    typename = "Float"

    @classmethod
    def from_literal(cls, text: str, ctx: 'Context') -> 'Float':
        try:
            return cls(float(text))
        except ValueError:
            raise DomainError("literal", f"cannot read {text!r} as a number")

    @classmethod
    def from_python(cls, value: Any, ctx: 'Context') -> 'Float':
        if isinstance(value, complex):
            if value.imag != 0:
                raise DomainError("convert", f"{cls.typename} cannot hold complex value {value!r}")
            value = value.real
        if not isinstance(value, PYTHON_NUMBERS):
            raise TypeError(f"Cannot convert {type(value).__name__} to {cls.typename}")
        try:
            return cls(float(value))
        except (ValueError, OverflowError):
            raise DomainError("convert", f"{type(value).__name__} value is out of range for {cls.typename}")

    @classmethod
    def constant(cls, name: str, ctx: 'Context') -> 'Float':
        match name:
            case 'pi':
                return cls(math.pi)
            case 'e':
                return cls(math.e)
        raise Unimplemented(f"constant {name}", cls.typename)

    def compare(self, other, ctx):
        a, b = self.value, other.value
        if math.isnan(a) or math.isnan(b):
            raise DomainError("compare", "cannot order NaN")
        return (a > b) - (a < b)

    def add(self, other, ctx): return self._single(self.value + other.value)
    def sub(self, other, ctx): return self._single(self.value - other.value)
    def mul(self, other, ctx): return self._single(self.value * other.value)

    def div(self, other, ctx):
        if other.value == 0:
            raise DivisionByZero("div")
        return self._single(self.value / other.value)

    def pow(self, other, ctx):
        a, b = self.value, other.value
        if a == 0 and b < 0:
            raise DivisionByZero("pow")
        if a < 0 and not b.is_integer():
            raise DomainError("pow", "negative base with a fractional exponent has no real value")
        return self._single(_guarded("pow", math.pow, a, b))

    def neg(self, ctx): return self._single(-self.value)

    def factorial(self, ctx):
        a = self.value
        if a.is_integer():
            if a < 0:
                raise DomainError("factorial", "undefined for negative integers")
            if a > 170:
                raise DomainError("factorial", "result out of range")
            return self._single(float(math.factorial(int(a))))
        return self._single(_guarded("factorial", math.gamma, a + 1))

    def sqrt(self, ctx):
        if self.value < 0:
            raise DomainError("sqrt", "square root of a negative number has no real value")
        return self._roots(math.sqrt(self.value), ctx)

    def nrt(self, other, ctx):
        a, n = self.value, other.value
        if n == 0:
            raise DomainError("nrt", "zeroth root is undefined")
        if a == 0 and n < 0:
            raise DivisionByZero("nrt")
        odd = n.is_integer() and int(n) % 2 == 1
        even = n.is_integer() and int(n) % 2 == 0
        if a < 0:
            if not odd:
                raise DomainError("nrt", "even root of a negative number has no real value")
            return self._single(-_guarded("nrt", math.pow, -a, 1.0 / n))
        root = _guarded("nrt", math.pow, a, 1.0 / n)
        if even:
            return self._roots(root, ctx)
        return self._single(root)

    def abs(self, ctx): return self._single(abs(self.value))
    def sin(self, ctx): return self._single(_guarded("sin", math.sin, self.value))
    def cos(self, ctx): return self._single(_guarded("cos", math.cos, self.value))
    def tan(self, ctx): return self._single(_guarded("tan", math.tan, self.value))
    def asin(self, ctx): return self._single(_guarded("asin", math.asin, self.value))
    def acos(self, ctx): return self._single(_guarded("acos", math.acos, self.value))
    def atan(self, ctx): return self._single(math.atan(self.value))
    def atan2(self, other, ctx): return self._single(math.atan2(self.value, other.value))
    def floor(self, ctx): return self._single(float(_guarded("floor", math.floor, self.value)))
    def ceil(self, ctx): return self._single(float(_guarded("ceil", math.ceil, self.value)))
    def round(self, ctx): return self._single(_guarded("round", _round_half_away, self.value))

    def ln(self, ctx):
        if self.value <= 0:
            raise DomainError("ln", "logarithm of a non-positive number has no real value")
        return self._single(math.log(self.value))

    def log(self, other, ctx):
        if self.value <= 0 or other.value <= 0:
            raise DomainError("log", "logarithm requires positive operands")
        if other.value == 1:
            raise DivisionByZero("log")
        return self._single(math.log(self.value, other.value))

    def exp(self, ctx): return self._single(_guarded("exp", math.exp, self.value))


# =================================================================
# Complex: Python complex with the cmath module
# =================================================================

class Complex(Num):
    typename = "Complex"
    is_complex = True

    @classmethod
    def from_literal(cls, text: str, ctx: 'Context') -> 'Complex':
        try:
            return cls(complex(float(text)))
        except ValueError:
            raise DomainError("literal", f"cannot read {text!r} as a number")

    @classmethod
    def from_python(cls, value: Any, ctx: 'Context') -> 'Complex':
        if not isinstance(value, PYTHON_NUMBERS):
            raise TypeError(f"Cannot convert {type(value).__name__} to {cls.typename}")
        try:
            return cls(complex(value))
        except (ValueError, OverflowError):
            raise DomainError("convert", f"{type(value).__name__} value is out of range for {cls.typename}")

    @classmethod
    def constant(cls, name: str, ctx: 'Context') -> 'Complex':
        match name:
            case 'pi':
                return cls(complex(math.pi))
            case 'e':
                return cls(complex(math.e))
            case 'i':
                return cls(1j)
        raise Unimplemented(f"constant {name}", cls.typename)

    def compare(self, other, ctx):
        # Ordered by real part, as complex numbers have no total order.
        a, b = self.value.real, other.value.real
        if math.isnan(a) or math.isnan(b):
            raise DomainError("compare", "cannot order NaN")
        return (a > b) - (a < b)

    def add(self, other, ctx): return self._single(self.value + other.value)
    def sub(self, other, ctx): return self._single(self.value - other.value)
    def mul(self, other, ctx): return self._single(self.value * other.value)

    def div(self, other, ctx):
        if other.value == 0:
            raise DivisionByZero("div")
        return self._single(self.value / other.value)

    def pow(self, other, ctx):
        return self._single(_guarded("pow", lambda a, b: a ** b, self.value, other.value))

    def neg(self, ctx):
        # A zero imaginary part stays +0.0, so sqrt(-1) lands on the upper branch.
        v = self.value
        return self._single(complex(-v.real, 0.0 - v.imag))

    def factorial(self, ctx):
        if self.value.imag != 0:
            self._unimplemented("factorial of a non-real value")
        answer = Float(self.value.real).factorial(ctx)
        return self._single(complex(answer.value.value))

    def sqrt(self, ctx):
        return self._roots(cmath.sqrt(self.value), ctx)

    def nrt(self, other, ctx):
        a, n = self.value, other.value
        if n == 0:
            raise DomainError("nrt", "zeroth root is undefined")
        principal = _guarded("nrt", lambda x, y: x ** (1 / y), a, n)
        whole = n.imag == 0 and n.real.is_integer() and n.real > 0
        if ctx.config.root_policy == 'all' and whole and a != 0:
            k = int(n.real)
            return Answer.multiple([
                Complex(principal * cmath.exp(2j * math.pi * i / k)) for i in range(k)
            ])
        return self._single(principal)

    def abs(self, ctx): return self._single(complex(abs(self.value)))
    def sin(self, ctx): return self._single(_guarded("sin", cmath.sin, self.value))
    def cos(self, ctx): return self._single(_guarded("cos", cmath.cos, self.value))
    def tan(self, ctx): return self._single(_guarded("tan", cmath.tan, self.value))
    def asin(self, ctx): return self._single(_guarded("asin", cmath.asin, self.value))
    def acos(self, ctx): return self._single(_guarded("acos", cmath.acos, self.value))
    def atan(self, ctx): return self._single(_guarded("atan", cmath.atan, self.value))

    def atan2(self, other, ctx):
        if self.value.imag != 0 or other.value.imag != 0:
            raise DomainError("atan2", "defined for real operands only")
        return self._single(complex(math.atan2(self.value.real, other.value.real)))

    def floor(self, ctx):
        v = self.value
        return self._single(complex(_guarded("floor", math.floor, v.real),
                                    _guarded("floor", math.floor, v.imag)))

    def ceil(self, ctx):
        v = self.value
        return self._single(complex(_guarded("ceil", math.ceil, v.real),
                                    _guarded("ceil", math.ceil, v.imag)))

    def round(self, ctx):
        v = self.value
        return self._single(complex(_guarded("round", _round_half_away, v.real),
                                    _guarded("round", _round_half_away, v.imag)))

    def ln(self, ctx):
        if self.value == 0:
            raise DomainError("ln", "logarithm of zero is undefined")
        return self._single(cmath.log(self.value))

    def log(self, other, ctx):
        if self.value == 0 or other.value == 0:
            raise DomainError("log", "logarithm of zero is undefined")
        if other.value == 1:
            raise DivisionByZero("log")
        return self._single(cmath.log(self.value) / cmath.log(other.value))

    def exp(self, ctx): return self._single(_guarded("exp", cmath.exp, self.value))

    def __str__(self) -> str:
        v = self.value
        if v.imag == 0:
            return str(v.real)
        if v.real == 0:
            return f"{v.imag}i"
        return f"({v.real} + {v.imag}i)"


# =================================================================
# Rational: exact fractions.Fraction arithmetic
# =================================================================

def _iroot(k: int, n: int) -> int:
    """Largest integer r with r**n <= k, for k >= 0."""
    if k < 2:
        return k
    x = 1 << ((k.bit_length() + n - 1) // n)
    while True:
        y = ((n - 1) * x + k // x ** (n - 1)) // n
        if y >= x:
            return x
        x = y


def _exact_root(value: Fraction, n: int, operation: str) -> Fraction:
    negative = value < 0
    if negative and n % 2 == 0:
        raise DomainError(operation, "even root of a negative number has no real value")
    num, den = abs(value.numerator), value.denominator
    rn, rd = _iroot(num, n), _iroot(den, n)
    if rn ** n != num or rd ** n != den:
        raise DomainError(operation, f"root of {value} is not rational")
    root = Fraction(rn, rd)
    return -root if negative else root


class Rational(Num):
    typename = "Rational"

    @classmethod
    def from_literal(cls, text: str, ctx: 'Context') -> 'Rational':
        try:
            return cls(Fraction(text))
        except ValueError:
            raise DomainError("literal", f"cannot read {text!r} as a number")

    @classmethod
    def from_python(cls, value: Any, ctx: 'Context') -> 'Rational':
        if isinstance(value, complex):
            if value.imag != 0:
                raise DomainError("convert", f"{cls.typename} cannot hold complex value {value!r}")
            value = value.real
        if not isinstance(value, PYTHON_NUMBERS):
            raise TypeError(f"Cannot convert {type(value).__name__} to {cls.typename}")
        try:
            return cls(Fraction(value))
        except (ValueError, OverflowError):
            raise DomainError("convert", f"{value!r} is not a finite number")

    def compare(self, other, ctx):
        a, b = self.value, other.value
        return (a > b) - (a < b)

    def add(self, other, ctx): return self._single(self.value + other.value)
    def sub(self, other, ctx): return self._single(self.value - other.value)
    def mul(self, other, ctx): return self._single(self.value * other.value)

    def div(self, other, ctx):
        if other.value == 0:
            raise DivisionByZero("div")
        return self._single(self.value / other.value)

    def pow(self, other, ctx):
        base, exponent = self.value, other.value
        if base == 0 and exponent < 0:
            raise DivisionByZero("pow")
        if exponent.denominator == 1:
            return self._single(base ** exponent.numerator)
        root = _exact_root(base, exponent.denominator, "pow")
        if root == 0:
            return self._single(Fraction(0))
        return self._single(root ** exponent.numerator)

    def neg(self, ctx): return self._single(-self.value)

    def factorial(self, ctx):
        v = self.value
        if v.denominator != 1 or v < 0:
            raise DomainError("factorial", "defined for non-negative integers only")
        return self._single(Fraction(math.factorial(v.numerator)))

    def sqrt(self, ctx):
        return self._roots(_exact_root(self.value, 2, "sqrt"), ctx)

    def nrt(self, other, ctx):
        n = other.value
        if n.denominator != 1 or n <= 0:
            raise DomainError("nrt", "root degree must be a positive integer")
        n = n.numerator
        root = _exact_root(self.value, n, "nrt")
        if n % 2 == 0:
            return self._roots(root, ctx)
        return self._single(root)

    def abs(self, ctx): return self._single(abs(self.value))
    def floor(self, ctx): return self._single(Fraction(math.floor(self.value)))
    def ceil(self, ctx): return self._single(Fraction(math.ceil(self.value)))

    def round(self, ctx):
        v = self.value
        r = Fraction(math.floor(abs(v) + Fraction(1, 2)))
        return self._single(-r if v < 0 else r)


BACKENDS: Dict[str, str] = {
    'float': 'Float',
    'complex': 'Complex',
    'rational': 'Rational',
    'mpreal': 'MpReal',
    'mpcomplex': 'MpComplex',
}


def get_backend(name: str) -> Type[Num]:
    """Looks up a backend class by its configuration name."""
    key = name.lower()
    if key not in BACKENDS:
        raise ValueError(f"Unknown numeric backend {name!r}; expected one of {sorted(BACKENDS)}")
    if key in ('mpreal', 'mpcomplex'):
        from mexpr import mexpr_precise  # mpmath is only loaded when asked for
        return getattr(mexpr_precise, BACKENDS[key])
    return globals()[BACKENDS[key]]


__all__ = [
    "Num",
    "Float",
    "Complex",
    "Rational",
    "BACKENDS",
    "get_backend",
]
