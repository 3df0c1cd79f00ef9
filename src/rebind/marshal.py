"""
Value marshaling between native typed values and DynamicValues.

Native -> dynamic conversion dispatches on the static native type of the
value, never on the runtime value. Dynamic -> native conversion dispatches on
the requested native target type and requires the matching dynamic tag.

Integer narrowing follows native two's-complement truncation unless strict
integer checking is enabled in the configuration, in which case values
outside the target range raise ConversionFailure.
"""

import ctypes
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import get_config
from .errors import error_argument_type, error_conversion
from .types import IntegerType, FloatType, NativeType, TypeFamily
from .values import (
    DynamicValue, ValueTag, NO_VALUE, GENERIC_INT,
    bool_val, int_val, float_val, string_val, handle_val,
)


# Exact-width integer representations offered by the host runtime.
HOST_INTEGER_REPRESENTATIONS: Dict[Tuple[int, bool], str] = {
    (32, True): "int32",
    (32, False): "uint32",
    (64, True): "int64",
    (64, False): "uint64",
}

# Dynamic tag each native family decodes from
_FAMILY_TAGS: Dict[TypeFamily, ValueTag] = {
    TypeFamily.BOOL: ValueTag.BOOL,
    TypeFamily.INTEGER: ValueTag.INT,
    TypeFamily.FLOAT: ValueTag.FLOAT,
    TypeFamily.STRING: ValueTag.STRING,
    TypeFamily.HANDLE: ValueTag.HANDLE,
}


def integer_representation(t: IntegerType) -> str:
    """Pick the exact-width host representation, or the generic signed one."""
    return HOST_INTEGER_REPRESENTATIONS.get((t.bits, t.signed), GENERIC_INT)


def truncate_integer(n: int, t: IntegerType) -> int:
    """Wrap n into the range of t the way a native cast does."""
    bits = t.bits
    n &= (1 << bits) - 1
    if t.signed and n >= 1 << (bits - 1):
        n -= 1 << bits
    return n


def integer_in_range(n: int, t: IntegerType) -> bool:
    info = np.iinfo(t.dtype)
    return int(info.min) <= n <= int(info.max)


def narrow_float(x: float, t: FloatType) -> float:
    """Round x to the precision of t."""
    if t.bits == 32:
        return float(np.float32(x))
    return float(x)


# =============================================================================
# Native -> Dynamic
# =============================================================================

def to_dynamic(value: Any, native_type: NativeType,
               function: Optional[str] = None) -> DynamicValue:
    """
    Convert a native result of static type `native_type` to a DynamicValue.

    Raises ConversionFailure when the static type is unsupported or the value
    does not fit it.
    """
    family = native_type.family

    if family == TypeFamily.VOID:
        return NO_VALUE

    if isinstance(value, ctypes._SimpleCData):
        value = value.value

    # bool before integer: bool is representable as an integer type
    if family == TypeFamily.BOOL:
        if isinstance(value, (bool, int, np.bool_, np.integer)):
            return bool_val(bool(value))
        raise error_conversion(function, native_type.name,
                               f"{type(value).__name__} is not a boolean")

    if family == TypeFamily.INTEGER:
        if isinstance(value, (int, np.integer)):
            n = truncate_integer(int(value), native_type)
            return int_val(n, integer_representation(native_type))
        raise error_conversion(function, native_type.name,
                               f"{type(value).__name__} is not an integer")

    if family == TypeFamily.FLOAT:
        if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
            return float_val(narrow_float(float(value), native_type))
        raise error_conversion(function, native_type.name,
                               f"{type(value).__name__} is not a floating point number")

    if family == TypeFamily.STRING:
        if isinstance(value, str):
            return string_val(value)
        if isinstance(value, (bytes, bytearray)):
            try:
                return string_val(value)
            except UnicodeDecodeError as e:
                raise error_conversion(function, native_type.name,
                                       f"string is not valid UTF-8: {e}") from e
        if value is None:
            raise error_conversion(function, native_type.name, "null string")
        raise error_conversion(function, native_type.name,
                               f"{type(value).__name__} is not a string")

    if family == TypeFamily.HANDLE:
        return handle_val(value)

    raise error_conversion(function, native_type.name)


def encode_result(value: Any, return_type: NativeType,
                  function: Optional[str] = None) -> DynamicValue:
    """Encode a native return value; void returns the NO_VALUE sentinel."""
    return to_dynamic(value, return_type, function)


# =============================================================================
# Dynamic -> Native
# =============================================================================

def to_native(value: DynamicValue, native_type: NativeType,
              function: Optional[str] = None, position: int = 0,
              strict_integers: Optional[bool] = None) -> Any:
    """
    Convert a DynamicValue to the requested native target type.

    Raises ArgumentTypeMismatch when the dynamic tag does not match the
    target family, and ConversionFailure for unsupported targets.
    """
    family = native_type.family
    expected_tag = _FAMILY_TAGS.get(family)
    if expected_tag is None:
        raise error_conversion(function, native_type.name,
                               f"argument {position} has no native conversion")

    # None passed for a handle is a null pointer
    if family == TypeFamily.HANDLE and value.tag == ValueTag.NONE:
        return None

    if value.tag != expected_tag:
        raise error_argument_type(function, position, native_type.name, value.tag.value)

    if family == TypeFamily.INTEGER:
        n = int(value.data)
        if strict_integers is None:
            strict_integers = get_config().strict_integers
        if strict_integers and not integer_in_range(n, native_type):
            raise error_conversion(function, native_type.name,
                                   f"argument {position}: {n} is out of range")
        return truncate_integer(n, native_type)

    if family == TypeFamily.FLOAT:
        return narrow_float(float(value.data), native_type)

    if family == TypeFamily.BOOL:
        return bool(value.data)

    if family == TypeFamily.STRING:
        if native_type.null_terminated:
            return str(value.data).encode("utf-8")
        return str(value.data)

    # handle
    return value.data


def decode_arguments(args: Sequence[DynamicValue], param_types: Sequence[NativeType],
                     function: Optional[str] = None,
                     strict_integers: Optional[bool] = None) -> List[Any]:
    """Decode every positional argument, failing on the first bad slot."""
    if strict_integers is None:
        strict_integers = get_config().strict_integers
    return [
        to_native(arg, t, function, i, strict_integers)
        for i, (arg, t) in enumerate(zip(args, param_types))
    ]
