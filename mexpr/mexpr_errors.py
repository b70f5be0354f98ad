"""
Error types raised by the lexer, parser, evaluator and numeric backends.

Every failure surfaces as a subclass of MathError. The `kind` attribute
names the category so callers can branch on it without importing every
class.
"""

from typing import Any, Dict, Optional


class MathError(Exception):
    """Base class for every error produced while parsing or evaluating."""
    kind = "math"

    def __init__(self, message: str, loc: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.loc = loc

    def format(self, source: Optional[str] = None) -> str:
        """Formats the message with line/column and a source excerpt if known."""
        msg = f"{type(self).__name__}: {self.message}"
        if not self.loc or self.loc.get('line') is None:
            return msg
        line = self.loc['line']
        col = self.loc.get('col')
        col_info = f", col {col}" if col is not None else ""
        out = f"Error on line {line}{col_info}: {msg}"
        if source:
            context = source_context(source, line, col)
            if context:
                out = f"{out}\n{context}"
        return out


class LexError(MathError):
    kind = "lex"

    def __init__(self, char: str, loc: Dict[str, Any], message: Optional[str] = None):
        super().__init__(message or f"invalid character {char!r}", loc)
        self.char = char


class ParseError(MathError):
    kind = "parse"

    def __init__(self, message: str, token: Optional[Any] = None):
        loc = token.loc if token is not None else None
        super().__init__(message, loc)
        self.token = token


class UndefinedVariable(MathError):
    kind = "undefined-variable"

    def __init__(self, name: str):
        super().__init__(f"variable {name!r} is not defined")
        self.name = name


class UndefinedFunction(MathError):
    kind = "undefined-function"

    def __init__(self, name: str):
        super().__init__(f"function {name!r} is not defined")
        self.name = name


class IncorrectArguments(MathError):
    kind = "incorrect-arguments"

    def __init__(self, function: str, message: str):
        super().__init__(f"{function}: {message}")
        self.function = function


class Unimplemented(MathError):
    """The active numeric backend does not provide the requested operation."""
    kind = "unimplemented"

    def __init__(self, operation: str, backend: str):
        super().__init__(f"{operation} is not implemented for {backend}")
        self.operation = operation
        self.backend = backend


class DomainError(MathError):
    """The operation exists but the operands fall outside its domain."""
    kind = "domain"

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class DivisionByZero(DomainError):
    kind = "division-by-zero"

    def __init__(self, operation: str = "div"):
        super().__init__(operation, "division by zero")


def source_context(source: str, line: int, col: Optional[int], radius: int = 2) -> str:
    """Renders the lines around `line`, marking it with '>' and `col` with a caret."""
    lines = source.splitlines()
    if not 1 <= line <= len(lines):
        return ""
    first, last = max(1, line - radius), min(len(lines), line + radius)
    width = len(str(last))
    out = []
    for number, text in enumerate(lines[first - 1:last], start=first):
        marker = ">" if number == line else " "
        out.append(f"{marker} {number:>{width}} | {text}")
        if number == line and col is not None:
            out.append(f"  {'':{width}} | {' ' * max(col - 1, 0)}^")
    return "\n".join(out)


__all__ = [
    "MathError",
    "LexError",
    "ParseError",
    "UndefinedVariable",
    "UndefinedFunction",
    "IncorrectArguments",
    "Unimplemented",
    "DomainError",
    "DivisionByZero",
    "source_context",
]
