"""
Defines the expression tree produced by the parser.

Terms are immutable once built: children are held in tuples, attributes
are set once in __init__, and evaluation never writes to a node. A tree
can therefore be evaluated concurrently or repeatedly against different
contexts.
"""

from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from mexpr.mexpr_answer import Answer
    from mexpr.mexpr_context import Context


class Op(Enum):
    """Operators an Operation node can apply."""
    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    POW = '^'
    PLUS_MINUS = '±'
    NEG = 'neg'
    FACTORIAL = '!'
    PERCENT = '%'

    @property
    def symbol(self) -> str:
        return '-' if self is Op.NEG else self.value


class Term:
    """Base class for all expression tree nodes."""
    loc: Optional[Dict[str, Any]] = None

    def __setattr__(self, name, value):
        if name in self.__dict__:
            raise AttributeError(f"{type(self).__name__}.{name} is read-only")
        super().__setattr__(name, value)

    def evaluate(self, ctx: 'Context') -> 'Answer':
        """Evaluates this term against ctx."""
        from mexpr.mexpr_evaluator import Evaluator
        return Evaluator().eval(self, ctx)

    def __str__(self) -> str:
        from mexpr.mexpr_printer import Printer
        return Printer().pformat(self)


class Number(Term):
    """A numeric literal, kept as text until a backend builds it."""
    def __init__(self, literal: str, loc: Optional[Dict[str, Any]] = None):
        self.literal = literal
        self.loc = loc

    def __repr__(self) -> str:
        return f"Number({self.literal!r})"

    def __eq__(self, other):
        if not isinstance(other, Number):
            return NotImplemented
        return self.literal == other.literal

    def __hash__(self):
        return hash(('number', self.literal))


class Variable(Term):
    def __init__(self, name: str, loc: Optional[Dict[str, Any]] = None):
        self.name = name
        self.loc = loc

    def __repr__(self) -> str:
        return f"Variable({self.name!r})"

    def __eq__(self, other):
        if not isinstance(other, Variable):
            return NotImplemented
        return self.name == other.name

    def __hash__(self):
        return hash(('variable', self.name))


class Operation(Term):
    """An operator applied to one or more operand terms.

    NEG, FACTORIAL and PERCENT take one operand; PLUS_MINUS takes one
    (`±x`) or two (`a ± b`); the remaining operators take two.
    """
    def __init__(self, op: Op, operands: Sequence[Term], loc: Optional[Dict[str, Any]] = None):
        operands = tuple(operands)
        if not operands:
            raise ValueError("Operation must have at least one operand.")
        self.op = op
        self.operands: Tuple[Term, ...] = operands
        self.loc = loc

    def __repr__(self) -> str:
        return f"Operation({self.op.name}, {list(self.operands)!r})"

    def __eq__(self, other):
        if not isinstance(other, Operation):
            return NotImplemented
        return self.op is other.op and self.operands == other.operands

    def __hash__(self):
        return hash(('operation', self.op, self.operands))


class FunctionCall(Term):
    """A call whose arguments are handed to the bound function unevaluated."""
    def __init__(self, name: str, args: Sequence[Term], loc: Optional[Dict[str, Any]] = None):
        self.name = name
        self.args: Tuple[Term, ...] = tuple(args)
        self.loc = loc

    def __repr__(self) -> str:
        return f"FunctionCall({self.name!r}, {list(self.args)!r})"

    def __eq__(self, other):
        if not isinstance(other, FunctionCall):
            return NotImplemented
        return self.name == other.name and self.args == other.args

    def __hash__(self):
        return hash(('call', self.name, self.args))


__all__ = [
    "Op",
    "Term",
    "Number",
    "Variable",
    "Operation",
    "FunctionCall",
]
