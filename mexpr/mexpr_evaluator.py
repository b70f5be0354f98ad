"""
The tree-walking evaluator.

Evaluation is a pure function of (term, context): it reads variable and
function bindings from the Context, builds literals through the context's
numeric backend, and never writes to the tree or the Context.
"""

import os
import sys
from typing import Any, Callable, Dict, TYPE_CHECKING

from mexpr.mexpr_answer import Answer
from mexpr.mexpr_errors import MathError, UndefinedFunction, UndefinedVariable
from mexpr.mexpr_functions import Constant, as_answer
from mexpr.mexpr_numbers import Num, PYTHON_NUMBERS
from mexpr.mexpr_terms import FunctionCall, Number, Op, Operation, Term, Variable

if TYPE_CHECKING:
    from mexpr.mexpr_context import Context


# Operand counts each operator accepts.
ARITY: Dict[Op, tuple] = {
    Op.ADD: (2,),
    Op.SUB: (2,),
    Op.MUL: (2,),
    Op.DIV: (2,),
    Op.POW: (2,),
    Op.PLUS_MINUS: (1, 2),
    Op.NEG: (1,),
    Op.FACTORIAL: (1,),
    Op.PERCENT: (1,),
}


def _plus_minus(a: Num, b: Num, ctx: 'Context') -> Answer:
    return Answer.multiple([*a.add(b, ctx), *a.sub(b, ctx)])


def _signed(a: Num, ctx: 'Context') -> Answer:
    return Answer.multiple([a, *a.neg(ctx)])


def _apply(op: Op, ctx: 'Context') -> Callable[..., Answer]:
    """The per-value function an operator applies to each combination of operands."""
    match op:
        case Op.ADD:
            return lambda a, b: a.add(b, ctx)
        case Op.SUB:
            return lambda a, b: a.sub(b, ctx)
        case Op.MUL:
            return lambda a, b: a.mul(b, ctx)
        case Op.DIV:
            return lambda a, b: a.div(b, ctx)
        case Op.POW:
            return lambda a, b: a.pow(b, ctx)
        case Op.NEG:
            return lambda a: a.neg(ctx)
        case Op.FACTORIAL:
            return lambda a: a.factorial(ctx)
        case Op.PERCENT:
            return lambda a: a.percent(ctx)
        case Op.PLUS_MINUS:
            return lambda *xs: _signed(xs[0], ctx) if len(xs) == 1 else _plus_minus(xs[0], xs[1], ctx)
    raise TypeError(f"Unknown operator {op!r}")


class Evaluator:
    """Walks a term tree and produces an Answer."""

    def eval(self, term: Term, ctx: 'Context') -> Answer:
        try:
            return self._eval(term, ctx)
        except MathError as err:
            # Innermost located node wins.
            if err.loc is None and term.loc is not None:
                err.loc = term.loc
            raise

    def _eval(self, term: Term, ctx: 'Context') -> Answer:
        match term:
            case Number():
                return Answer.single(ctx.number.from_literal(term.literal, ctx))
            case Variable():
                return self._lookup(term.name, ctx)
            case FunctionCall():
                return self._call(term, ctx)
            case Operation():
                return self._operate(term, ctx)
        raise TypeError(f"Cannot evaluate {type(term).__name__}")

    def _lookup(self, name: str, ctx: 'Context') -> Answer:
        value = ctx.get_var(name)
        if value is None:
            raise UndefinedVariable(name)
        self._dbg("VAR", name, type(value).__name__)
        if isinstance(value, Answer):
            return value
        if isinstance(value, Num):
            return Answer.single(value)
        if isinstance(value, (Term, Constant)):
            return value.evaluate(ctx)
        if isinstance(value, PYTHON_NUMBERS):
            return Answer.single(ctx.number.from_python(value, ctx))
        raise TypeError(f"Variable {name!r} is bound to unsupported {type(value).__name__}")

    def _call(self, term: FunctionCall, ctx: 'Context') -> Answer:
        func = ctx.get_func(term.name)
        if func is None:
            raise UndefinedFunction(term.name)
        self._dbg("CALL", term.name, "argc", len(term.args))
        return as_answer(func.call(term.args, ctx), ctx)

    def _operate(self, term: Operation, ctx: 'Context') -> Answer:
        if len(term.operands) not in ARITY[term.op]:
            raise TypeError(f"{term.op.name} cannot take {len(term.operands)} operands")
        operands = [self.eval(operand, ctx) for operand in term.operands]
        result = Answer.combine(operands, _apply(term.op, ctx))
        self._dbg("OP", term.op.symbol, "->", repr(result))
        return result

    def _dbg(self, *parts: Any):
        if os.environ.get("MEXPR_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)


__all__ = ["Evaluator", "ARITY"]
