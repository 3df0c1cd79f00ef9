"""
Tests for the native type system.
"""

import ctypes

import pytest

from rebind.types import (
    TypeFamily, IntegerType, UnsupportedType,
    BOOL, INT8, UINT8, INT16, INT32, UINT32, INT64, UINT64,
    INT, UINT, LONG, LONGLONG, SIZE_T, SSIZE_T,
    FLOAT, DOUBLE, CSTRING, STRING, STRING_VIEW, HANDLE, VOID,
    resolve_type, resolve_type_name,
    is_integer, is_floating, is_string, is_supported, is_foreign_compatible,
)


class TestTypeNames:
    """Test lookup by C spelling."""

    def test_fixed_width(self):
        """Test fixed-width integer spellings."""
        assert resolve_type_name("int8") == INT8
        assert resolve_type_name("uint32_t") == UINT32
        assert resolve_type_name("int64") == INT64

    def test_platform_width(self):
        """Test platform integer spellings."""
        assert resolve_type_name("int") == INT
        assert resolve_type_name("unsigned") == UINT
        assert resolve_type_name("long long") == LONGLONG
        assert resolve_type_name("size_t") == SIZE_T
        assert resolve_type_name("ssize_t") == SSIZE_T

    def test_whitespace_is_normalized(self):
        """Test pointer and space variants resolve to the same type."""
        assert resolve_type_name("const char*") == CSTRING
        assert resolve_type_name("const char *") == CSTRING
        assert resolve_type_name("  long   long ") == LONGLONG
        assert resolve_type_name("void *") == HANDLE

    def test_strings(self):
        """Test string spellings."""
        assert resolve_type_name("std::string") == STRING
        assert resolve_type_name("string_view") == STRING_VIEW

    def test_unknown_type(self):
        """Test unknown spelling returns None."""
        assert resolve_type_name("std::vector<int>") is None


class TestResolveAnnotation:
    """Test resolution of annotation objects."""

    def test_ctypes_classes(self):
        """Test ctypes classes map to native types."""
        assert resolve_type(ctypes.c_bool) == BOOL
        assert resolve_type(ctypes.c_int) == INT
        assert resolve_type(ctypes.c_float) == FLOAT
        assert resolve_type(ctypes.c_double) == DOUBLE
        assert resolve_type(ctypes.c_char_p) == CSTRING
        assert resolve_type(ctypes.c_void_p) == HANDLE

    def test_python_builtins(self):
        """Test Python builtins map to native types."""
        assert resolve_type(bool) == BOOL
        assert resolve_type(int) == INT
        assert resolve_type(float) == DOUBLE
        assert resolve_type(str) == STRING
        assert resolve_type(bytes) == CSTRING
        assert resolve_type(None) == VOID

    def test_native_type_passes_through(self):
        """Test a NativeType resolves to itself."""
        assert resolve_type(UINT64) is UINT64

    def test_unsupported(self):
        """Test annotations without a native meaning."""
        t = resolve_type(list)
        assert isinstance(t, UnsupportedType)
        assert t.name == "list"
        assert t.family == TypeFamily.UNSUPPORTED
        assert not is_supported(t)

        assert resolve_type("std::map").name == "std::map"


class TestIntegerTypes:
    """Test integer width and signedness."""

    @pytest.mark.parametrize("t,bits,signed", [
        (INT8, 8, True),
        (UINT8, 8, False),
        (INT16, 16, True),
        (INT32, 32, True),
        (UINT32, 32, False),
        (UINT64, 64, False),
    ])
    def test_width(self, t, bits, signed):
        """Test bit width and signedness of fixed-width types."""
        assert t.bits == bits
        assert t.signed is signed
        assert t.dtype == f"{'int' if signed else 'uint'}{bits}"

    def test_platform_width_follows_ctypes(self):
        """Test platform-width types take their width from ctypes."""
        assert LONG.bits == ctypes.sizeof(ctypes.c_long) * 8
        assert SIZE_T.bits == ctypes.sizeof(ctypes.c_size_t) * 8
        assert not SIZE_T.signed

    def test_equality(self):
        """Test types compare by value."""
        assert IntegerType("int8", ctypes.c_int8) == INT8
        assert INT8 != UINT8


class TestTypeHelpers:
    """Test family helpers."""

    def test_families(self):
        """Test family predicates."""
        assert is_integer(INT32)
        assert not is_integer(BOOL)
        assert is_floating(FLOAT)
        assert is_string(CSTRING)
        assert VOID.is_void

    def test_foreign_compatibility(self):
        """Test which types can appear in a foreign signature."""
        assert is_foreign_compatible(INT)
        assert is_foreign_compatible(CSTRING)
        assert is_foreign_compatible(VOID)
        assert not is_foreign_compatible(STRING)
        assert not is_foreign_compatible(UnsupportedType("list"))

    def test_str(self):
        """Test display names."""
        assert str(LONGLONG) == "long long"
        assert str(CSTRING) == "const char*"
