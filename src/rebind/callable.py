"""
Callable descriptors and the thunks that invoke them.

A CallableDescriptor binds one native entry point to its signature, name and
doc. Its `invoke` runs a single call:

    IDLE -> ARITY_CHECK -> DECODING -> INVOKING -> ENCODING -> IDLE

with ERROR reachable from every step after IDLE. The native function runs at
most once per call and never runs when the arity check or decoding fails.

A thunk is the host-facing Python function closed over one descriptor. It
tags host arguments, calls `invoke`, and returns the host object (None for
void functions, a Handle for handle results).
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Sequence

from .errors import (
    BindingError,
    error_argument_count, error_keyword_arguments, error_native_fault,
)
from .marshal import decode_arguments, encode_result
from .signatures import FunctionSignature
from .values import DynamicValue, wrap_hosts, host_value

logger = logging.getLogger(__name__)


class CallState(Enum):
    """Steps of one call through a descriptor."""
    IDLE = "idle"
    ARITY_CHECK = "arity-check"
    DECODING = "decoding"
    INVOKING = "invoking"
    ENCODING = "encoding"
    ERROR = "error"


@dataclass(frozen=True)
class CallableDescriptor:
    """
    One exposed native function.

    Descriptors are immutable once built and hold no per-call state, so
    concurrent calls are safe whenever the native function is reentrant.
    """
    name: str
    signature: FunctionSignature
    entry_point: Callable[..., Any]
    doc: str = ""

    @property
    def arity(self) -> int:
        return self.signature.arity

    def _trace(self, state: CallState) -> None:
        logger.debug("%s: %s", self.name, state.value)

    def invoke(self, args: Sequence[DynamicValue],
               kwargs: Optional[Mapping[str, Any]] = None) -> DynamicValue:
        """
        Call the native function with a positional DynamicValue argument list.

        Returns the converted result, or NO_VALUE for void functions.
        """
        if kwargs:
            self._trace(CallState.ERROR)
            raise error_keyword_arguments(self.name, list(kwargs))

        self._trace(CallState.ARITY_CHECK)
        if len(args) != self.arity:
            self._trace(CallState.ERROR)
            raise error_argument_count(self.name, self.arity, len(args))

        if self.arity:
            self._trace(CallState.DECODING)
            try:
                native_args = decode_arguments(args, self.signature.param_types, self.name)
            except BindingError:
                self._trace(CallState.ERROR)
                raise
        else:
            native_args = []

        self._trace(CallState.INVOKING)
        try:
            result = self.entry_point(*native_args)
        except Exception as e:
            self._trace(CallState.ERROR)
            raise error_native_fault(self.name, e) from e

        self._trace(CallState.ENCODING)
        try:
            value = encode_result(result, self.signature.return_type, self.name)
        except BindingError:
            self._trace(CallState.ERROR)
            raise

        self._trace(CallState.IDLE)
        return value

    def host_signature(self) -> inspect.Signature:
        """Positional-only signature shown by help() and inspect."""
        params = [
            inspect.Parameter(name, inspect.Parameter.POSITIONAL_ONLY)
            for name in self.signature.param_names
        ]
        return inspect.Signature(params)


def make_thunk(descriptor: CallableDescriptor) -> Callable[..., Any]:
    """
    Build the host callable for a descriptor.

    The thunk is created once per descriptor and kept for as long as the
    registry that owns the descriptor, i.e. the life of the process.
    """

    def thunk(*args: Any, **kwargs: Any) -> Any:
        return host_value(descriptor.invoke(wrap_hosts(args), kwargs))

    thunk.__name__ = descriptor.name
    thunk.__qualname__ = descriptor.name
    thunk.__doc__ = descriptor.doc or None
    thunk.__signature__ = descriptor.host_signature()
    thunk.__rebind_descriptor__ = descriptor
    return thunk


def descriptor_of(fn: Callable[..., Any]) -> Optional[CallableDescriptor]:
    """Get the descriptor behind a thunk, or None for other callables."""
    return getattr(fn, "__rebind_descriptor__", None)

