"""
Members and function signatures discovered on a native entity.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional, Tuple

from .types import NativeType


class MemberKind(Enum):
    """The kind of member found on a native entity."""
    FUNCTION = auto()
    OTHER = auto()


@dataclass(frozen=True)
class Member:
    """A unit discovered on a native entity. Only functions are exposed."""
    identifier: str
    kind: MemberKind
    obj: Any = field(default=None, compare=False, repr=False)

    @property
    def is_function(self) -> bool:
        return self.kind == MemberKind.FUNCTION


@dataclass(frozen=True)
class FunctionSignature:
    """Return type and ordered parameter types of a native function."""
    return_type: NativeType
    param_types: Tuple[NativeType, ...] = ()
    param_names: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.param_names:
            # Synthetic names for tables that carry types only
            object.__setattr__(
                self, "param_names",
                tuple(f"arg{i}" for i in range(len(self.param_types))),
            )
        if len(self.param_names) != len(self.param_types):
            raise ValueError("param_names and param_types differ in length")

    @property
    def arity(self) -> int:
        return len(self.param_types)

    @property
    def params(self) -> Tuple[Tuple[str, NativeType], ...]:
        return tuple(zip(self.param_names, self.param_types))

    def format(self, name: Optional[str] = None) -> str:
        """Format as `name(a: int, b: int) -> int`."""
        params = ", ".join(f"{n}: {t.name}" for n, t in self.params)
        return f"{name or ''}({params}) -> {self.return_type.name}"

    def __str__(self) -> str:
        return self.format()
