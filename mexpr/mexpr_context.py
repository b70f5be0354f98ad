"""
The Context: name bindings plus parse and evaluation configuration.

A Context is mutable and shared by reference. Expressions parsed against
it see later changes to its variables and functions the next time they
are evaluated. It does no locking of its own.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Literal, Optional, Type, Union

from mexpr.mexpr_answer import Answer
from mexpr.mexpr_functions import (
    Builtins, CallableFunc, Constant, Func, CONSTANTS, COMPLEX_CONSTANTS
)
from mexpr.mexpr_numbers import Float, Num, PYTHON_NUMBERS
from mexpr.mexpr_terms import Term

RootPolicy = Literal['principal', 'all']
ROOT_POLICIES = ('principal', 'all')


@dataclass(frozen=True)
class Config:
    """Parse and evaluation settings.

    - implicit_multiplication: `3x` means `3 * x`, and a name followed by
      `(` is only a call when the name is a known function.
    - precision: working precision in bits for backends that have one.
    - root_policy: 'principal' returns one root, 'all' returns every root.
    """
    implicit_multiplication: bool = True
    precision: int = 53
    root_policy: RootPolicy = 'principal'

    def __post_init__(self):
        if not isinstance(self.implicit_multiplication, bool):
            raise TypeError("implicit_multiplication must be a bool")
        if isinstance(self.precision, bool) or not isinstance(self.precision, int) or self.precision < 1:
            raise ValueError(f"precision must be a positive int, got {self.precision!r}")
        if self.root_policy not in ROOT_POLICIES:
            raise ValueError(f"root_policy must be one of {ROOT_POLICIES}, got {self.root_policy!r}")


class Context:
    """Variable and function bindings for parsing and evaluation.

    Variables may be bound to a backend number, a plain Python number
    (converted by the backend when looked up), an Answer, a Term, or an
    Expression; terms are evaluated against whichever context is doing the
    lookup. Functions may be Func instances or plain callables taking
    `(args, ctx)`.
    """
    def __init__(self, number: Type[Num] = Float, config: Optional[Config] = None, builtins: bool = True):
        self.number = number
        self.config = config or Config()
        self.vars: Dict[str, Any] = {}
        self.funcs: Dict[str, Func] = {}
        if builtins:
            self._install_builtins()

    @classmethod
    def empty(cls, number: Type[Num] = Float, config: Optional[Config] = None) -> 'Context':
        """A context with no constants or functions registered."""
        return cls(number, config, builtins=False)

    @classmethod
    def from_config(cls, data: Union[str, bytes, Dict[str, Any]], fmt: Optional[str] = None) -> 'Context':
        from mexpr.mexpr_config import load_config
        config, number = load_config(data, fmt=fmt)
        return cls(number, config)

    def _install_builtins(self):
        names = CONSTANTS + (COMPLEX_CONSTANTS if self.number.is_complex else ())
        for name in names:
            self.vars[name] = Constant(name)
        Builtins().install(self)

    # --- Variables ---
    def set_var(self, name: str, value: Any):
        from mexpr.mexpr_runtime import Expression
        self._check_name(name)
        if isinstance(value, Expression):
            value = value.term
        if isinstance(value, bool) or not isinstance(value, (Num, Answer, Term, Constant) + PYTHON_NUMBERS):
            raise TypeError(f"Cannot bind {type(value).__name__} to variable {name!r}")
        self.vars[name] = value

    def get_var(self, name: str, default: Any = None) -> Any:
        return self.vars.get(name, default)

    def del_var(self, name: str):
        del self.vars[name]

    # --- Functions ---
    def set_func(self, name: str, func: Union[Func, Callable[..., Any]]):
        self._check_name(name)
        if not isinstance(func, Func):
            if not callable(func):
                raise TypeError(f"Cannot bind {type(func).__name__} to function {name!r}")
            func = CallableFunc(func, name)
        self.funcs[name] = func

    def get_func(self, name: str, default: Optional[Func] = None) -> Optional[Func]:
        return self.funcs.get(name, default)

    def del_func(self, name: str):
        del self.funcs[name]

    def is_function(self, name: str) -> bool:
        return name in self.funcs

    # --- Configuration ---
    @property
    def implicit_multiplication(self) -> bool:
        return self.config.implicit_multiplication

    @implicit_multiplication.setter
    def implicit_multiplication(self, enabled: bool):
        self.config = replace(self.config, implicit_multiplication=enabled)

    @property
    def precision(self) -> int:
        return self.config.precision

    @precision.setter
    def precision(self, bits: int):
        self.config = replace(self.config, precision=bits)

    @property
    def root_policy(self) -> RootPolicy:
        return self.config.root_policy

    @root_policy.setter
    def root_policy(self, policy: RootPolicy):
        self.config = replace(self.config, root_policy=policy)

    def copy(self) -> 'Context':
        """A new context with the same bindings; later changes are not shared."""
        clone = Context.empty(self.number, self.config)
        clone.vars = dict(self.vars)
        clone.funcs = dict(self.funcs)
        return clone

    @staticmethod
    def _check_name(name: Any):
        if not isinstance(name, str):
            raise TypeError(f"Binding name must be a str, not {type(name).__name__}")
        if not name:
            raise ValueError("Binding name must not be empty.")

    def __repr__(self) -> str:
        return (f"<Context number={self.number.typename} vars=[{', '.join(self.vars)}] "
                f"funcs={len(self.funcs)} config={self.config!r}>")


__all__ = ["Config", "Context", "RootPolicy", "ROOT_POLICIES"]
