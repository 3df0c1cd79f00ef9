"""
Native type system for rebind.

Native types describe the static parameter and return types of an exposed
function. They are organized into families:
    BOOL:        bool
    INTEGER:     fixed-width and platform-width signed/unsigned integers
    FLOAT:       float, double, long double
    STRING:      null-terminated (const char*) and length-prefixed strings
    HANDLE:      opaque pointers (void*)
    VOID:        no value
    UNSUPPORTED: anything the marshaler cannot carry across the boundary

Types can be named with C spellings ("int32", "unsigned long", "const char*"),
ctypes classes (ctypes.c_int) or the Python builtins bool, int, float, str,
bytes and None.
"""

import ctypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class TypeFamily(Enum):
    """Marshaling family a native type belongs to."""
    BOOL = "bool"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    HANDLE = "handle"
    VOID = "void"
    UNSUPPORTED = "unsupported"


# =============================================================================
# Type Classes
# =============================================================================

@dataclass(frozen=True)
class NativeType(ABC):
    """Base class for all native types."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The C spelling of the type, for display/errors."""
        pass

    @property
    @abstractmethod
    def family(self) -> TypeFamily:
        """The marshaling family of this type."""
        pass

    @property
    def ctype(self) -> Any:
        """The ctypes class used at a foreign call boundary, or None."""
        return None

    @property
    def is_void(self) -> bool:
        return self.family == TypeFamily.VOID

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class BoolType(NativeType):
    """The native boolean."""

    @property
    def name(self) -> str:
        return "bool"

    @property
    def family(self) -> TypeFamily:
        return TypeFamily.BOOL

    @property
    def ctype(self) -> Any:
        return ctypes.c_bool


@dataclass(frozen=True)
class IntegerType(NativeType):
    """
    A signed or unsigned integer of a fixed bit width.

    Platform-width integers (long, size_t, ...) take their width from the
    ctypes class they map to.
    """
    _name: str
    _ctype: Any
    signed: bool = True

    @property
    def name(self) -> str:
        return self._name

    @property
    def family(self) -> TypeFamily:
        return TypeFamily.INTEGER

    @property
    def ctype(self) -> Any:
        return self._ctype

    @property
    def bits(self) -> int:
        return ctypes.sizeof(self._ctype) * 8

    @property
    def dtype(self) -> str:
        """numpy dtype name with the same width and signedness."""
        return f"{'int' if self.signed else 'uint'}{self.bits}"


@dataclass(frozen=True)
class FloatType(NativeType):
    """A floating point type."""
    _name: str
    _ctype: Any

    @property
    def name(self) -> str:
        return self._name

    @property
    def family(self) -> TypeFamily:
        return TypeFamily.FLOAT

    @property
    def ctype(self) -> Any:
        return self._ctype

    @property
    def bits(self) -> int:
        return ctypes.sizeof(self._ctype) * 8


@dataclass(frozen=True)
class StringType(NativeType):
    """
    A string type.

    Null-terminated strings (const char*) cross a foreign boundary as
    ctypes.c_char_p. Length-prefixed strings are owned Python str values and
    only exist for functions implemented in Python.
    """
    _name: str
    null_terminated: bool = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def family(self) -> TypeFamily:
        return TypeFamily.STRING

    @property
    def ctype(self) -> Any:
        return ctypes.c_char_p if self.null_terminated else None


@dataclass(frozen=True)
class HandleType(NativeType):
    """An opaque pointer."""

    @property
    def name(self) -> str:
        return "handle"

    @property
    def family(self) -> TypeFamily:
        return TypeFamily.HANDLE

    @property
    def ctype(self) -> Any:
        return ctypes.c_void_p


@dataclass(frozen=True)
class VoidType(NativeType):
    """The absence of a return value."""

    @property
    def name(self) -> str:
        return "void"

    @property
    def family(self) -> TypeFamily:
        return TypeFamily.VOID


@dataclass(frozen=True)
class UnsupportedType(NativeType):
    """A type the marshaler has no conversion for."""
    _name: str

    @property
    def name(self) -> str:
        return self._name

    @property
    def family(self) -> TypeFamily:
        return TypeFamily.UNSUPPORTED


# =============================================================================
# Built-in Type Instances
# =============================================================================

BOOL = BoolType()

INT8 = IntegerType("int8", ctypes.c_int8)
UINT8 = IntegerType("uint8", ctypes.c_uint8, signed=False)
INT16 = IntegerType("int16", ctypes.c_int16)
UINT16 = IntegerType("uint16", ctypes.c_uint16, signed=False)
INT32 = IntegerType("int32", ctypes.c_int32)
UINT32 = IntegerType("uint32", ctypes.c_uint32, signed=False)
INT64 = IntegerType("int64", ctypes.c_int64)
UINT64 = IntegerType("uint64", ctypes.c_uint64, signed=False)

SHORT = IntegerType("short", ctypes.c_short)
USHORT = IntegerType("unsigned short", ctypes.c_ushort, signed=False)
INT = IntegerType("int", ctypes.c_int)
UINT = IntegerType("unsigned int", ctypes.c_uint, signed=False)
LONG = IntegerType("long", ctypes.c_long)
ULONG = IntegerType("unsigned long", ctypes.c_ulong, signed=False)
LONGLONG = IntegerType("long long", ctypes.c_longlong)
ULONGLONG = IntegerType("unsigned long long", ctypes.c_ulonglong, signed=False)
SIZE_T = IntegerType("size_t", ctypes.c_size_t, signed=False)
SSIZE_T = IntegerType("ssize_t", ctypes.c_ssize_t)

FLOAT = FloatType("float", ctypes.c_float)
DOUBLE = FloatType("double", ctypes.c_double)
LONGDOUBLE = FloatType("long double", ctypes.c_longdouble)

CSTRING = StringType("const char*", null_terminated=True)
STRING = StringType("string")
STRING_VIEW = StringType("string_view")

HANDLE = HandleType()
VOID = VoidType()


# =============================================================================
# Type Registry
# =============================================================================

# Map C spellings to type instances
BUILTIN_TYPES: Dict[str, NativeType] = {
    "bool": BOOL,

    # Fixed width
    "int8": INT8, "int8_t": INT8,
    "uint8": UINT8, "uint8_t": UINT8,
    "int16": INT16, "int16_t": INT16,
    "uint16": UINT16, "uint16_t": UINT16,
    "int32": INT32, "int32_t": INT32,
    "uint32": UINT32, "uint32_t": UINT32,
    "int64": INT64, "int64_t": INT64,
    "uint64": UINT64, "uint64_t": UINT64,

    # Platform width
    "short": SHORT,
    "unsigned short": USHORT,
    "int": INT,
    "unsigned int": UINT, "unsigned": UINT,
    "long": LONG,
    "unsigned long": ULONG,
    "long long": LONGLONG,
    "unsigned long long": ULONGLONG,
    "size_t": SIZE_T,
    "ssize_t": SSIZE_T,

    # Floating point
    "float": FLOAT,
    "double": DOUBLE,
    "long double": LONGDOUBLE,

    # Strings
    "const char*": CSTRING, "char*": CSTRING, "cstring": CSTRING,
    "string": STRING, "std::string": STRING,
    "string_view": STRING_VIEW, "std::string_view": STRING_VIEW,

    # Other
    "handle": HANDLE, "void*": HANDLE,
    "void": VOID,
}

# ctypes classes. Aliased classes (c_int32 is c_int on most platforms) keep
# the first spelling listed.
_CTYPES_TYPES: Dict[Any, NativeType] = {}
for _t in (BOOL, INT, UINT, LONG, ULONG, LONGLONG, ULONGLONG, SHORT, USHORT,
           INT8, UINT8, INT16, UINT16, INT32, UINT32, INT64, UINT64,
           SIZE_T, SSIZE_T, FLOAT, DOUBLE, LONGDOUBLE, CSTRING, HANDLE):
    _CTYPES_TYPES.setdefault(_t.ctype, _t)

_PYTHON_TYPES: Dict[Any, NativeType] = {
    bool: BOOL,
    int: INT,
    float: DOUBLE,
    str: STRING,
    bytes: CSTRING,
    type(None): VOID,
}


def _normalize_name(name: str) -> str:
    return " ".join(name.replace("*", " *").split()).replace(" *", "*")


def resolve_type_name(name: str) -> Optional[NativeType]:
    """Look up a type by its C spelling."""
    return BUILTIN_TYPES.get(_normalize_name(name))


def resolve_type(annotation: Any) -> NativeType:
    """
    Resolve an annotation to a native type.

    Never fails: annotations with no native meaning resolve to an
    UnsupportedType naming the annotation, so that marshaling reports it.
    """
    if isinstance(annotation, NativeType):
        return annotation
    if annotation is None:
        return VOID
    if isinstance(annotation, str):
        resolved = resolve_type_name(annotation)
        return resolved if resolved is not None else UnsupportedType(annotation)
    try:
        if annotation in _CTYPES_TYPES:
            return _CTYPES_TYPES[annotation]
        if annotation in _PYTHON_TYPES:
            return _PYTHON_TYPES[annotation]
    except TypeError:
        # unhashable annotation objects
        pass
    return UnsupportedType(getattr(annotation, "__name__", repr(annotation)))


# =============================================================================
# Type Compatibility Helpers
# =============================================================================

def is_integer(t: NativeType) -> bool:
    """Check if type is an integer type."""
    return t.family == TypeFamily.INTEGER


def is_floating(t: NativeType) -> bool:
    """Check if type is a floating point type."""
    return t.family == TypeFamily.FLOAT


def is_string(t: NativeType) -> bool:
    """Check if type is a string type."""
    return t.family == TypeFamily.STRING


def is_supported(t: NativeType) -> bool:
    """Check if values of this type can cross the boundary."""
    return t.family != TypeFamily.UNSUPPORTED


def is_foreign_compatible(t: NativeType) -> bool:
    """Check if type can appear in a foreign (ctypes) signature."""
    return t.is_void or t.ctype is not None
