"""
Arbitrary precision backends built on mpmath.

Every operation runs under `mpmath.workprec(ctx.config.precision)`, so the
precision hint on the Context (in bits) controls the working precision of
each evaluation rather than mpmath's global state.
"""

from fractions import Fraction
from typing import Any, TYPE_CHECKING

import mpmath

from mexpr.mexpr_answer import Answer
from mexpr.mexpr_errors import DivisionByZero, DomainError, Unimplemented
from mexpr.mexpr_numbers import Num, PYTHON_NUMBERS

if TYPE_CHECKING:
    from mexpr.mexpr_context import Context


def _prec(ctx: 'Context'):
    return mpmath.workprec(ctx.config.precision)


def _round_half_away(x):
    r = mpmath.floor(abs(x) + mpmath.mpf(0.5))
    return -r if x < 0 else r


def _guarded(operation: str, fn, *args):
    try:
        return fn(*args)
    except ZeroDivisionError:
        raise DivisionByZero(operation)
    except ValueError as e:
        raise DomainError(operation, str(e))


class MpReal(Num):
    typename = "MpReal"

    @classmethod
    def from_literal(cls, text: str, ctx: 'Context') -> 'MpReal':
        with _prec(ctx):
            try:
                return cls(mpmath.mpf(text))
            except ValueError:
                raise DomainError("literal", f"cannot read {text!r} as a number")

    @classmethod
    def from_python(cls, value: Any, ctx: 'Context') -> 'MpReal':
        if isinstance(value, complex):
            if value.imag != 0:
                raise DomainError("convert", f"{cls.typename} cannot hold complex value {value!r}")
            value = value.real
        if not isinstance(value, PYTHON_NUMBERS):
            raise TypeError(f"Cannot convert {type(value).__name__} to {cls.typename}")
        with _prec(ctx):
            if isinstance(value, Fraction):
                return cls(mpmath.mpf(value.numerator) / value.denominator)
            return cls(mpmath.mpf(value))

    @classmethod
    def constant(cls, name: str, ctx: 'Context') -> 'MpReal':
        with _prec(ctx):
            match name:
                case 'pi':
                    return cls(+mpmath.pi)
                case 'e':
                    return cls(+mpmath.e)
        raise Unimplemented(f"constant {name}", cls.typename)

    def compare(self, other, ctx):
        a, b = self.value, other.value
        if mpmath.isnan(a) or mpmath.isnan(b):
            raise DomainError("compare", "cannot order NaN")
        return (a > b) - (a < b)

    def add(self, other, ctx):
        with _prec(ctx):
            return self._single(self.value + other.value)

    def sub(self, other, ctx):
        with _prec(ctx):
            return self._single(self.value - other.value)

    def mul(self, other, ctx):
        with _prec(ctx):
            return self._single(self.value * other.value)

    def div(self, other, ctx):
        if other.value == 0:
            raise DivisionByZero("div")
        with _prec(ctx):
            return self._single(self.value / other.value)

    def pow(self, other, ctx):
        a, b = self.value, other.value
        if a == 0 and b < 0:
            raise DivisionByZero("pow")
        if a < 0 and not mpmath.isint(b):
            raise DomainError("pow", "negative base with a fractional exponent has no real value")
        with _prec(ctx):
            return self._single(mpmath.power(a, b))

    def neg(self, ctx):
        with _prec(ctx):
            return self._single(-self.value)

    def factorial(self, ctx):
        with _prec(ctx):
            return self._single(_guarded("factorial", mpmath.factorial, self.value))

    def sqrt(self, ctx):
        if self.value < 0:
            raise DomainError("sqrt", "square root of a negative number has no real value")
        with _prec(ctx):
            return self._roots(mpmath.sqrt(self.value), ctx)

    def nrt(self, other, ctx):
        a, n = self.value, other.value
        if n == 0:
            raise DomainError("nrt", "zeroth root is undefined")
        whole = mpmath.isint(n)
        odd = whole and int(n) % 2 == 1
        with _prec(ctx):
            if a < 0:
                if not odd:
                    raise DomainError("nrt", "even root of a negative number has no real value")
                return self._single(-mpmath.root(-a, int(n)))
            if not whole:
                return self._single(mpmath.power(a, 1 / n))
            root = mpmath.root(a, int(n))
            if odd:
                return self._single(root)
            return self._roots(root, ctx)

    def abs(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.fabs(self.value))

    def sin(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.sin(self.value))

    def cos(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.cos(self.value))

    def tan(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.tan(self.value))

    def asin(self, ctx):
        if abs(self.value) > 1:
            raise DomainError("asin", "math domain error")
        with _prec(ctx):
            return self._single(mpmath.asin(self.value))

    def acos(self, ctx):
        if abs(self.value) > 1:
            raise DomainError("acos", "math domain error")
        with _prec(ctx):
            return self._single(mpmath.acos(self.value))

    def atan(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.atan(self.value))

    def atan2(self, other, ctx):
        with _prec(ctx):
            return self._single(mpmath.atan2(self.value, other.value))

    def floor(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.floor(self.value))

    def ceil(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.ceil(self.value))

    def round(self, ctx):
        with _prec(ctx):
            return self._single(_round_half_away(self.value))

    def ln(self, ctx):
        if self.value <= 0:
            raise DomainError("ln", "logarithm of a non-positive number has no real value")
        with _prec(ctx):
            return self._single(mpmath.ln(self.value))

    def log(self, other, ctx):
        if self.value <= 0 or other.value <= 0:
            raise DomainError("log", "logarithm requires positive operands")
        if other.value == 1:
            raise DivisionByZero("log")
        with _prec(ctx):
            return self._single(mpmath.log(self.value, other.value))

    def exp(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.exp(self.value))


class MpComplex(Num):
    typename = "MpComplex"
    is_complex = True

    @classmethod
    def from_literal(cls, text: str, ctx: 'Context') -> 'MpComplex':
        with _prec(ctx):
            try:
                return cls(mpmath.mpc(mpmath.mpf(text)))
            except ValueError:
                raise DomainError("literal", f"cannot read {text!r} as a number")

    @classmethod
    def from_python(cls, value: Any, ctx: 'Context') -> 'MpComplex':
        if not isinstance(value, PYTHON_NUMBERS):
            raise TypeError(f"Cannot convert {type(value).__name__} to {cls.typename}")
        with _prec(ctx):
            if isinstance(value, Fraction):
                return cls(mpmath.mpc(mpmath.mpf(value.numerator) / value.denominator))
            if isinstance(value, complex):
                return cls(mpmath.mpc(value.real, value.imag))
            return cls(mpmath.mpc(value))

    @classmethod
    def constant(cls, name: str, ctx: 'Context') -> 'MpComplex':
        with _prec(ctx):
            match name:
                case 'pi':
                    return cls(mpmath.mpc(+mpmath.pi))
                case 'e':
                    return cls(mpmath.mpc(+mpmath.e))
                case 'i':
                    return cls(mpmath.mpc(0, 1))
        raise Unimplemented(f"constant {name}", cls.typename)

    def compare(self, other, ctx):
        a, b = self.value.real, other.value.real
        if mpmath.isnan(a) or mpmath.isnan(b):
            raise DomainError("compare", "cannot order NaN")
        return (a > b) - (a < b)

    def add(self, other, ctx):
        with _prec(ctx):
            return self._single(self.value + other.value)

    def sub(self, other, ctx):
        with _prec(ctx):
            return self._single(self.value - other.value)

    def mul(self, other, ctx):
        with _prec(ctx):
            return self._single(self.value * other.value)

    def div(self, other, ctx):
        if other.value == 0:
            raise DivisionByZero("div")
        with _prec(ctx):
            return self._single(self.value / other.value)

    def pow(self, other, ctx):
        if self.value == 0 and other.value.real < 0:
            raise DivisionByZero("pow")
        with _prec(ctx):
            return self._single(mpmath.power(self.value, other.value))

    def neg(self, ctx):
        with _prec(ctx):
            return self._single(-self.value)

    def factorial(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.mpc(_guarded("factorial", mpmath.factorial, self.value)))

    def sqrt(self, ctx):
        with _prec(ctx):
            return self._roots(mpmath.sqrt(self.value), ctx)

    def nrt(self, other, ctx):
        a, n = self.value, other.value
        if n == 0:
            raise DomainError("nrt", "zeroth root is undefined")
        whole = n.imag == 0 and mpmath.isint(n.real) and n.real > 0
        with _prec(ctx):
            if not whole:
                return self._single(mpmath.power(a, 1 / n))
            k = int(n.real)
            if ctx.config.root_policy == 'all' and a != 0:
                return Answer.multiple([MpComplex(mpmath.mpc(mpmath.root(a, k, j))) for j in range(k)])
            return self._single(mpmath.mpc(mpmath.root(a, k)))

    def abs(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.mpc(abs(self.value)))

    def sin(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.sin(self.value))

    def cos(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.cos(self.value))

    def tan(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.tan(self.value))

    def asin(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.mpc(mpmath.asin(self.value)))

    def acos(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.mpc(mpmath.acos(self.value)))

    def atan(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.mpc(mpmath.atan(self.value)))

    def atan2(self, other, ctx):
        if self.value.imag != 0 or other.value.imag != 0:
            raise DomainError("atan2", "defined for real operands only")
        with _prec(ctx):
            return self._single(mpmath.mpc(mpmath.atan2(self.value.real, other.value.real)))

    def floor(self, ctx):
        v = self.value
        with _prec(ctx):
            return self._single(mpmath.mpc(mpmath.floor(v.real), mpmath.floor(v.imag)))

    def ceil(self, ctx):
        v = self.value
        with _prec(ctx):
            return self._single(mpmath.mpc(mpmath.ceil(v.real), mpmath.ceil(v.imag)))

    def round(self, ctx):
        v = self.value
        with _prec(ctx):
            return self._single(mpmath.mpc(_round_half_away(v.real), _round_half_away(v.imag)))

    def ln(self, ctx):
        if self.value == 0:
            raise DomainError("ln", "logarithm of zero is undefined")
        with _prec(ctx):
            return self._single(mpmath.mpc(mpmath.ln(self.value)))

    def log(self, other, ctx):
        if self.value == 0 or other.value == 0:
            raise DomainError("log", "logarithm of zero is undefined")
        if other.value == 1:
            raise DivisionByZero("log")
        with _prec(ctx):
            return self._single(mpmath.mpc(mpmath.log(self.value, other.value)))

    def exp(self, ctx):
        with _prec(ctx):
            return self._single(mpmath.exp(self.value))

    def __str__(self) -> str:
        v = self.value
        if v.imag == 0:
            return str(v.real)
        if v.real == 0:
            return f"{v.imag}i"
        return f"({v.real} + {v.imag}i)"


__all__ = ["MpReal", "MpComplex"]
