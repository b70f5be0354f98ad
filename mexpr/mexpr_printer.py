"""
A printer for terms and answers.
"""

from mexpr.mexpr_answer import Answer
from mexpr.mexpr_numbers import Num
from mexpr.mexpr_terms import FunctionCall, Number, Op, Operation, Variable


class Printer:
    """Formats terms as fully parenthesised source text that parses back to
    the same tree, and answers the way a calculator would display them."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj) -> str:
        """Public entry point to format an object."""
        return self._get_handler(obj)(obj)

    def _get_handler(self, obj):
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, Num):
            return self._pformat_num
        return repr

    def _create_handlers(self):
        return {
            Number: self._pformat_number,
            Variable: self._pformat_variable,
            Operation: self._pformat_operation,
            FunctionCall: self._pformat_call,
            Answer: self._pformat_answer,
        }

    def _pformat_number(self, obj: Number) -> str:
        return obj.literal

    def _pformat_variable(self, obj: Variable) -> str:
        return obj.name

    def _pformat_call(self, obj: FunctionCall) -> str:
        args = ", ".join(self.pformat(arg) for arg in obj.args)
        return f"{obj.name}({args})"

    def _pformat_operation(self, obj: Operation) -> str:
        operands = [self.pformat(operand) for operand in obj.operands]
        match obj.op, operands:
            case (Op.FACTORIAL | Op.PERCENT), [x]:
                return f"({x}{obj.op.symbol})"
            case _, [x]:
                return f"({obj.op.symbol}{x})"
            case _, [a, b]:
                return f"({a} {obj.op.symbol} {b})"
        raise ValueError(f"Cannot format {obj.op.name} with {len(operands)} operands")

    def _pformat_num(self, obj: Num) -> str:
        return str(obj)

    def _pformat_answer(self, obj: Answer) -> str:
        if obj.is_single:
            return self.pformat(obj.value)
        return "S = {" + ", ".join(self.pformat(v) for v in obj) + "}"


__all__ = ["Printer"]
