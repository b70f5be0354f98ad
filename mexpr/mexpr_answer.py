"""
The result of evaluating a term: one value, or an ordered set of values.
"""

import itertools
from typing import Any, Callable, Iterable, List, Sequence


class Answer:
    """Either a single value or an ordered, non-empty sequence of values.

    Multi-valued answers come from operators such as `±` and from root
    functions under the "all roots" policy. Arithmetic over answers expands
    across every combination of operand values (see `combine`).
    """
    def __init__(self, values: Sequence[Any], multiple: bool):
        if not values:
            raise ValueError("Answer must hold at least one value.")
        if not multiple and len(values) != 1:
            raise ValueError("A single Answer holds exactly one value.")
        self._values = tuple(values)
        self._multiple = multiple

    @classmethod
    def single(cls, value: Any) -> 'Answer':
        return cls((value,), False)

    @classmethod
    def multiple(cls, values: Iterable[Any]) -> 'Answer':
        return cls(tuple(values), True)

    @property
    def is_single(self) -> bool:
        return not self._multiple

    @property
    def is_multiple(self) -> bool:
        return self._multiple

    @property
    def value(self) -> Any:
        """The sole value; raises ValueError for a multi-valued answer."""
        if self._multiple:
            raise ValueError(f"Answer has {len(self._values)} values; use .values")
        return self._values[0]

    @property
    def values(self) -> List[Any]:
        return list(self._values)

    def map(self, fn: Callable[[Any], 'Answer']) -> 'Answer':
        return Answer.combine([self], fn)

    def op(self, other: 'Answer', fn: Callable[[Any, Any], 'Answer']) -> 'Answer':
        return Answer.combine([self, other], fn)

    @staticmethod
    def combine(answers: Sequence['Answer'], fn: Callable[..., 'Answer']) -> 'Answer':
        """Applies fn to every combination of operand values.

        Combinations are generated left to right with the leftmost operand
        varying slowest. The result is Single only when exactly one
        combination was evaluated and it produced a Single answer. The first
        error raised by fn propagates unchanged.
        """
        collected: List[Any] = []
        count = 0
        last = None
        for combo in itertools.product(*(a._values for a in answers)):
            last = fn(*combo)
            count += 1
            collected.extend(last._values)
        if count == 1 and last.is_single:
            return last
        return Answer.multiple(collected)

    def __iter__(self):
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other):
        if not isinstance(other, Answer):
            return NotImplemented
        return self._multiple == other._multiple and self._values == other._values

    def __hash__(self):
        return hash((self._multiple, self._values))

    def __repr__(self) -> str:
        if self._multiple:
            return f"Multiple({list(self._values)!r})"
        return f"Single({self._values[0]!r})"

    def __str__(self) -> str:
        from mexpr.mexpr_printer import Printer
        return Printer().pformat(self)
