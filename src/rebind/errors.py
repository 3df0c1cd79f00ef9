"""
Binding exceptions and diagnostics.

Error code ranges:
- E1xx: Call-time errors (reported through the host error channel)
- E2xx: Module load errors (fatal to the module being loaded)
- E3xx: Introspection errors (raised while the binding table is built)
- W0xx: Warnings
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class Diagnostic:
    """A single diagnostic message (error, warning, etc.)."""
    code: str                       # E101, E201, etc.
    message: str                    # Fixed literal per error kind
    severity: ErrorSeverity
    function: Optional[str] = None  # Exposed function or module name
    hints: List[str] = field(default_factory=list)

    def format(self) -> str:
        """Format the diagnostic for display."""
        where = f"{self.function}: " if self.function else ""
        parts = [f"{where}{self.severity.value}[{self.code}]: {self.message}"]
        for hint in self.hints:
            parts.append(f"    = hint: {hint}")
        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "function": self.function,
            "hints": self.hints,
        }


class BindingError(Exception):
    """Base exception for binding errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    def __str__(self) -> str:
        return self.diagnostic.format()


class ArgumentCountMismatch(BindingError):
    """Argument list length differs from the signature arity (E101)."""
    pass


class ArgumentTypeMismatch(BindingError):
    """A positional argument has the wrong dynamic tag (E102)."""
    pass


class ConversionFailure(BindingError):
    """A value could not be represented on the other side (E103)."""
    pass


class NativeFault(BindingError):
    """The native function raised while running (E104)."""
    pass


class KeywordArgumentsUnsupported(BindingError):
    """Keyword arguments were passed to a positional-only callable (E105)."""
    pass


class ModuleCreationFailure(BindingError):
    """The host module object could not be created (E201)."""
    pass


class RegistrationFailure(BindingError):
    """A descriptor could not be installed into the host module (E202)."""
    pass


class IntrospectionError(BindingError):
    """The native entity could not be introspected (E3xx)."""
    pass


class ManifestError(IntrospectionError):
    """A binding manifest is malformed (E302)."""
    pass


# --- Call-time error codes ---

def error_argument_count(function: str, expected: int, found: int) -> ArgumentCountMismatch:
    """E101: Argument count mismatch."""
    diag = Diagnostic(
        code="E101",
        message="argument count mismatch",
        severity=ErrorSeverity.ERROR,
        function=function,
        hints=[f"expected {expected} positional argument(s), got {found}"],
    )
    return ArgumentCountMismatch(diag)


def error_argument_type(function: str, position: int, expected: str,
                        found: str) -> ArgumentTypeMismatch:
    """E102: Argument type mismatch."""
    diag = Diagnostic(
        code="E102",
        message="argument type mismatch",
        severity=ErrorSeverity.ERROR,
        function=function,
        hints=[f"argument {position}: expected '{expected}', found '{found}'"],
    )
    return ArgumentTypeMismatch(diag)


def error_conversion(function: Optional[str], type_name: str,
                     detail: Optional[str] = None) -> ConversionFailure:
    """E103: Conversion failure."""
    hints = [f"no conversion for native type '{type_name}'"]
    if detail:
        hints.append(detail)
    diag = Diagnostic(
        code="E103",
        message="conversion failure",
        severity=ErrorSeverity.ERROR,
        function=function,
        hints=hints,
    )
    return ConversionFailure(diag)


def error_native_fault(function: str, exc: BaseException) -> NativeFault:
    """E104: Native function raised."""
    diag = Diagnostic(
        code="E104",
        message="native function raised",
        severity=ErrorSeverity.ERROR,
        function=function,
        hints=[f"{type(exc).__name__}: {exc}"],
    )
    return NativeFault(diag)


def error_keyword_arguments(function: str, names: List[str]) -> KeywordArgumentsUnsupported:
    """E105: Keyword arguments are not supported."""
    diag = Diagnostic(
        code="E105",
        message="keyword arguments are not supported",
        severity=ErrorSeverity.ERROR,
        function=function,
        hints=[f"pass {', '.join(sorted(names))} positionally"],
    )
    return KeywordArgumentsUnsupported(diag)


# --- Module load error codes ---

def error_module_creation(module: str, detail: str) -> ModuleCreationFailure:
    """E201: Module creation failure."""
    diag = Diagnostic(
        code="E201",
        message="failed to create module",
        severity=ErrorSeverity.ERROR,
        function=module,
        hints=[detail],
    )
    return ModuleCreationFailure(diag)


def error_registration(module: str, function: str, detail: str) -> RegistrationFailure:
    """E202: Registration failure."""
    diag = Diagnostic(
        code="E202",
        message="failed to register function",
        severity=ErrorSeverity.ERROR,
        function=module,
        hints=[f"'{function}': {detail}"],
    )
    return RegistrationFailure(diag)


# --- Introspection error codes ---

def error_introspection(entity: str, detail: str) -> IntrospectionError:
    """E301: Entity cannot be introspected."""
    diag = Diagnostic(
        code="E301",
        message="cannot introspect entity",
        severity=ErrorSeverity.ERROR,
        function=entity,
        hints=[detail],
    )
    return IntrospectionError(diag)


def error_manifest(source: str, detail: str) -> ManifestError:
    """E302: Malformed binding manifest."""
    diag = Diagnostic(
        code="E302",
        message="malformed binding manifest",
        severity=ErrorSeverity.ERROR,
        function=source,
        hints=[detail],
    )
    return ManifestError(diag)


# --- Warnings ---

def warning_unsupported_member(entity: str, member: str, reason: str) -> Diagnostic:
    """W001: Member skipped because its signature shape is unsupported."""
    return Diagnostic(
        code="W001",
        message=f"skipping '{member}': {reason}",
        severity=ErrorSeverity.WARNING,
        function=entity,
        hints=["variadics, defaults, keyword-only parameters and unannotated "
               "parameters cannot be exposed"],
    )
