"""
Tests for callable descriptors and thunks.
"""

import ctypes
import inspect
import logging
import sys
import threading

import pytest

import example_natives
from example_natives import Example, Faulty, calls
from rebind.callable import CallableDescriptor, make_thunk, descriptor_of
from rebind.config import RebindConfig
from rebind.errors import (
    ArgumentCountMismatch, ArgumentTypeMismatch, ConversionFailure,
    KeywordArgumentsUnsupported, NativeFault,
)
from rebind.introspection import collect_functions, native_namespace
from rebind.signatures import FunctionSignature
from rebind.types import INT, VOID
from rebind.values import ValueTag, NO_VALUE, Handle, int_val, string_val


def thunks_of(entity):
    """Build thunks by name for an entity."""
    return {d.name: make_thunk(d) for d in collect_functions(entity, RebindConfig())}


@pytest.fixture
def example():
    return thunks_of(Example)


@pytest.fixture
def faulty():
    return thunks_of(Faulty)


@pytest.fixture
def module_thunks():
    return thunks_of(example_natives)


class TestSuccessfulCalls:
    """Test calls that reach the native function and return."""

    def test_sum(self, example):
        """Test sum(2, 3) returns 5."""
        assert example["sum"](2, 3) == 5

    def test_sum_result_tag(self):
        """Test the integer result carries its host representation."""
        d = next(d for d in collect_functions(Example, RebindConfig()) if d.name == "sum")
        result = d.invoke((int_val(2), int_val(3)))
        assert result.tag == ValueTag.INT
        assert result.data == 5
        assert result.representation == "int32"

    def test_greeting(self, module_thunks):
        """Test a string result is returned exactly."""
        expected = "hello from C++ with Reflection. This's cool feature! C++ ❤Python"
        result = module_thunks["greeting"]()
        assert result == expected
        assert len(result.encode("utf-8")) == len(expected.encode("utf-8"))

    def test_void_function(self, example):
        """Test a void function returns None and runs exactly once."""
        before = calls["Example.report"]
        assert example["report"]() is None
        assert calls["Example.report"] == before + 1

    def test_void_descriptor_returns_no_value(self):
        """Test invoke returns the no-value sentinel for void functions."""
        d = CallableDescriptor("noop", FunctionSignature(VOID), lambda: 42)
        assert d.invoke(()) is NO_VALUE

    def test_float_narrowing(self, module_thunks):
        """Test a 32-bit float result is rounded to single precision."""
        assert module_thunks["pi"]() == pytest.approx(3.14, rel=1e-6)
        assert module_thunks["pi"]() != 3.14

    def test_long_long(self, module_thunks):
        """Test a 64-bit integer result."""
        assert module_thunks["speed_of_light"]() == 300_000_000

    def test_bool_round_trip(self, example, module_thunks):
        """Test boolean arguments and results."""
        assert example["negate"](True) is False
        assert module_thunks["is_zero"](0.0) is True
        assert module_thunks["is_zero"](1.5) is False

    def test_staticmethod(self, example):
        """Test static methods are exposed like plain functions."""
        assert example["scale"](2.0, 1.5) == 3.0

    def test_string_argument(self, example):
        """Test string arguments are passed through."""
        assert example["shout"]("héllo") == "HÉLLO"

    def test_interleaved_calls(self, module_thunks):
        """Test calls to different functions do not interfere."""
        foo = module_thunks["foo"]
        bar = module_thunks["bar"]
        before_foo, before_bar = calls["foo"], calls["bar"]
        foo()
        bar()
        foo()
        assert calls["foo"] == before_foo + 2
        assert calls["bar"] == before_bar + 1


class TestCallErrors:
    """Test calls rejected before or after the native function runs."""

    def test_too_few_arguments(self, example):
        """Test sum(2) fails without running sum."""
        before = calls["Example.sum"]
        with pytest.raises(ArgumentCountMismatch) as exc:
            example["sum"](2)
        assert exc.value.code == "E101"
        assert "expected 2 positional argument(s), got 1" in exc.value.diagnostic.hints[0]
        assert calls["Example.sum"] == before

    def test_too_many_arguments(self, example):
        """Test extra arguments are rejected."""
        with pytest.raises(ArgumentCountMismatch):
            example["sum"](1, 2, 3)
        with pytest.raises(ArgumentCountMismatch):
            example["report"](1)

    def test_wrong_argument_types(self, example):
        """Test sum("a", "b") fails without running sum."""
        before = calls["Example.sum"]
        with pytest.raises(ArgumentTypeMismatch) as exc:
            example["sum"]("a", "b")
        assert exc.value.code == "E102"
        assert exc.value.diagnostic.function == "sum"
        assert calls["Example.sum"] == before

    def test_no_implicit_numeric_conversion(self, example):
        """Test floats and bools are not accepted for int parameters."""
        with pytest.raises(ArgumentTypeMismatch):
            example["sum"](1.0, 2)
        with pytest.raises(ArgumentTypeMismatch):
            example["sum"](True, 2)
        with pytest.raises(ArgumentTypeMismatch):
            example["scale"](2, 1.5)

    def test_keyword_arguments(self, example):
        """Test keyword arguments are rejected before the arity check."""
        before = calls["Example.sum"]
        with pytest.raises(KeywordArgumentsUnsupported) as exc:
            example["sum"](a=1, b=2)
        assert exc.value.code == "E105"
        assert calls["Example.sum"] == before

    def test_native_fault(self, faulty):
        """Test exceptions from the native function are reported as faults."""
        before = calls["Faulty.divide"]
        with pytest.raises(NativeFault) as exc:
            faulty["divide"](1, 0)
        assert exc.value.code == "E104"
        assert isinstance(exc.value.__cause__, ZeroDivisionError)
        assert calls["Faulty.divide"] == before + 1

    def test_unsupported_return_type(self, faulty):
        """Test a result of unsupported static type fails after one call."""
        before = calls["Faulty.items"]
        with pytest.raises(ConversionFailure) as exc:
            faulty["items"]()
        assert exc.value.code == "E103"
        assert calls["Faulty.items"] == before + 1

    def test_result_not_matching_return_type(self, faulty):
        """Test a result that does not fit the declared return type."""
        with pytest.raises(ConversionFailure):
            faulty["liar"]()

    def test_descriptor_invoke(self):
        """Test invoke with DynamicValue argument lists."""
        d = CallableDescriptor("add", FunctionSignature(INT, (INT, INT)), lambda a, b: a + b)
        assert d.invoke((int_val(1), int_val(2))).data == 3
        with pytest.raises(ArgumentTypeMismatch):
            d.invoke((int_val(1), string_val("2")))
        with pytest.raises(KeywordArgumentsUnsupported):
            d.invoke((int_val(1), int_val(2)), {"b": 2})


class TestThunks:
    """Test host-facing thunk metadata."""

    def test_metadata(self, example):
        """Test name, doc and signature of a thunk."""
        thunk = example["sum"]
        assert thunk.__name__ == "sum"
        assert thunk.__doc__ == "Add two ints."
        assert str(inspect.signature(thunk)) == "(a, b, /)"

    def test_no_doc(self, example):
        """Test functions without a docstring have no thunk doc."""
        assert example["report"].__doc__ is None

    def test_descriptor_of(self, example):
        """Test a thunk exposes its descriptor."""
        d = descriptor_of(example["sum"])
        assert isinstance(d, CallableDescriptor)
        assert d.arity == 2
        assert descriptor_of(len) is None

    def test_concurrent_calls(self, example):
        """Test thunks can be called from several threads at once."""
        scale = example["scale"]
        results = [None] * 8

        def work(i):
            results[i] = scale(float(i), 2.0)

        threads = [threading.Thread(target=work, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results == [2.0 * i for i in range(8)]


class TestCallTrace:
    """Test the call states logged while a call runs."""

    def test_successful_call_states(self, example, caplog):
        """Test a successful call passes every state and returns to idle."""
        with caplog.at_level(logging.DEBUG, logger="rebind.callable"):
            example["sum"](1, 2)
        states = [r.getMessage() for r in caplog.records if r.name == "rebind.callable"]
        assert states == [
            "sum: arity-check",
            "sum: decoding",
            "sum: invoking",
            "sum: encoding",
            "sum: idle",
        ]

    def test_failed_call_states(self, example, caplog):
        """Test an arity failure stops before decoding."""
        with caplog.at_level(logging.DEBUG, logger="rebind.callable"):
            with pytest.raises(ArgumentCountMismatch):
                example["sum"](1)
        states = [r.getMessage() for r in caplog.records if r.name == "rebind.callable"]
        assert states == ["sum: arity-check", "sum: error"]

    def test_zero_arity_skips_decoding(self, example, caplog):
        """Test functions without parameters have no decoding step."""
        with caplog.at_level(logging.DEBUG, logger="rebind.callable"):
            example["report"]()
        states = [r.getMessage() for r in caplog.records if r.name == "rebind.callable"]
        assert "report: decoding" not in states
        assert states[-1] == "report: idle"


class Store:
    def make() -> "handle":
        return {"count": 3}

    def peek(h: "handle") -> "int":
        return h["count"]

    def is_null(h: "handle") -> "bool":
        return h is None


class TestHandles:
    """Test handles passed back into native functions."""

    def test_handle_result_round_trips(self):
        """Test a handle result is accepted as a handle argument."""
        store = thunks_of(Store)
        h = store["make"]()
        assert isinstance(h, Handle)
        assert store["peek"](h) == 3

    def test_none_is_null_handle(self):
        """Test None is accepted where a handle is expected."""
        store = thunks_of(Store)
        assert store["is_null"](None) is True
        assert store["is_null"](store["make"]()) is False

    @pytest.mark.skipif(sys.platform == "win32", reason="needs a C runtime loadable by CDLL(None)")
    def test_foreign_pointer_round_trips(self):
        """Test a pointer from malloc can be handed to free."""
        @native_namespace(ctypes.CDLL(None))
        class mem:
            def malloc(n: "size_t") -> "void*":
                ...

            def free(p: "void*") -> "void":
                ...

        thunks = thunks_of(mem)
        p = thunks["malloc"](16)
        assert isinstance(p, Handle)
        assert p.obj
        assert thunks["free"](p) is None
        assert thunks["free"](None) is None
