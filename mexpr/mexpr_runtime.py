"""
The embedding surface: parse text into reusable Expressions, evaluate text
in one shot, or evaluate with errors captured in a result object.
"""

from dataclasses import dataclass
from typing import Literal, Optional

from mexpr.mexpr_answer import Answer
from mexpr.mexpr_context import Context
from mexpr.mexpr_errors import MathError
from mexpr.mexpr_parser import parse_term
from mexpr.mexpr_terms import Term


class Expression:
    """A term tree bundled with the Context it was parsed against.

    The Context is held by reference: changes made to it after parsing are
    visible to the next `evaluate()`.
    """
    def __init__(self, term: Term, context: Context):
        self.term = term
        self.context = context

    def evaluate(self) -> Answer:
        return self.term.evaluate(self.context)

    def evaluate_with(self, context: Context) -> Answer:
        """Evaluates the same tree against a different Context."""
        return self.term.evaluate(context)

    def __eq__(self, other):
        if not isinstance(other, Expression):
            return NotImplemented
        return self.term == other.term and self.context is other.context

    def __hash__(self):
        return hash(self.term)

    def __str__(self) -> str:
        return str(self.term)

    def __repr__(self) -> str:
        return f"Expression({self.term!r})"


def parse(source: str, context: Optional[Context] = None) -> Expression:
    """Parses source into an Expression. A default Context is created if none is given."""
    if context is None:
        context = Context()
    return Expression(parse_term(source, context), context)


def evaluate_text(source: str, context: Optional[Context] = None) -> Answer:
    return parse(source, context).evaluate()


@dataclass
class EvaluationResult:
    """The structured result of evaluating a piece of text."""
    status: Literal['success', 'error']
    value: Optional[Answer] = None
    error: Optional[MathError] = None
    source: Optional[str] = None

    def format_error(self) -> str:
        """Formats the error with line, column and a source excerpt if available."""
        if self.status != 'error' or self.error is None:
            return ""
        return self.error.format(self.source)


def try_evaluate(source: str, context: Optional[Context] = None) -> EvaluationResult:
    """Like evaluate_text, but returns math errors instead of raising them."""
    try:
        value = evaluate_text(source, context)
    except MathError as err:
        return EvaluationResult(status='error', error=err, source=source)
    return EvaluationResult(status='success', value=value, source=source)


__all__ = ["Expression", "parse", "evaluate_text", "EvaluationResult", "try_evaluate"]
