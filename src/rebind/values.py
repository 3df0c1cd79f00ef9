"""
Tagged dynamic values crossing the native/dynamic boundary.

A DynamicValue wraps a host (Python) object with a tag saying which dynamic
family it belongs to. Tags are mutually exclusive: a value is exactly one of
bool, int, float, string, handle or the "no value" sentinel.
"""

import ctypes
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple


class ValueTag(Enum):
    """Dynamic value families."""
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    HANDLE = "handle"
    NONE = "none"


# Generic signed integer representation, used when no exact width matches
GENERIC_INT = "long"


@dataclass(frozen=True)
class DynamicValue:
    """
    A runtime value with its dynamic tag.

    The `data` field holds the host object. For INT values, `representation`
    names the host integer representation the value was produced with.
    """
    data: Any
    tag: ValueTag
    representation: Optional[str] = None

    def __repr__(self) -> str:
        if self.representation:
            return f"DynamicValue({self.data!r}, {self.tag.value}:{self.representation})"
        return f"DynamicValue({self.data!r}, {self.tag.value})"

    @property
    def is_none(self) -> bool:
        return self.tag == ValueTag.NONE


ArgumentList = Tuple[DynamicValue, ...]

NO_VALUE = DynamicValue(None, ValueTag.NONE)


@dataclass(frozen=True)
class Handle:
    """
    An opaque native handle held by host code.

    Thunks return handle results wrapped in a Handle so that passing one back
    to another exposed function tags it as a handle rather than an int.
    """
    obj: Any

    def __repr__(self) -> str:
        return f"Handle({self.obj!r})"


# Convenience constructors

def bool_val(b: bool) -> DynamicValue:
    """Create a boolean value."""
    return DynamicValue(bool(b), ValueTag.BOOL)


def int_val(n: int, representation: str = GENERIC_INT) -> DynamicValue:
    """Create an integer value."""
    return DynamicValue(int(n), ValueTag.INT, representation)


def float_val(x: float) -> DynamicValue:
    """Create a float value."""
    return DynamicValue(float(x), ValueTag.FLOAT)


def string_val(s: Any) -> DynamicValue:
    """
    Create a string value.

    Bytes are decoded as UTF-8. The value always owns a fresh str, never the
    caller's buffer.
    """
    if isinstance(s, (bytes, bytearray, memoryview)):
        return DynamicValue(bytes(s).decode("utf-8"), ValueTag.STRING)
    return DynamicValue(str(s), ValueTag.STRING)


def handle_val(obj: Any) -> DynamicValue:
    """Create an opaque handle value. A Handle is stored by its referent."""
    if isinstance(obj, Handle):
        obj = obj.obj
    return DynamicValue(obj, ValueTag.HANDLE)


# Host conversion

def wrap_host(obj: Any) -> DynamicValue:
    """
    Tag a host object.

    bool is checked before int since bool is an int subclass.
    """
    if obj is None:
        return NO_VALUE
    if isinstance(obj, DynamicValue):
        return obj
    if isinstance(obj, Handle):
        return handle_val(obj)
    if isinstance(obj, ctypes.c_void_p):
        return handle_val(obj.value)
    if isinstance(obj, bool):
        return bool_val(obj)
    if isinstance(obj, int):
        return int_val(obj)
    if isinstance(obj, float):
        return float_val(obj)
    if isinstance(obj, str):
        return string_val(obj)
    if isinstance(obj, (bytes, bytearray)):
        try:
            return string_val(obj)
        except UnicodeDecodeError:
            return handle_val(obj)
    return handle_val(obj)


def wrap_hosts(objs: Sequence[Any]) -> ArgumentList:
    """Tag a sequence of host objects as an argument list."""
    return tuple(wrap_host(o) for o in objs)


def unwrap_value(v: DynamicValue) -> Any:
    """Extract the host object from a DynamicValue."""
    return v.data


def unwrap_values(values: Sequence[DynamicValue]) -> List[Any]:
    """Extract host objects from a list of DynamicValues."""
    return [v.data for v in values]


def host_value(v: DynamicValue) -> Any:
    """
    Convert a result for host code.

    Handles come back as Handle objects, a null handle as None. Every other
    value is its host object.
    """
    if v.tag == ValueTag.HANDLE:
        return None if v.data is None else Handle(v.data)
    return v.data
