"""
Native entity introspection.

Enumerates the function members of a native entity in declaration order and
derives their signatures. A native entity is one of:

- a class or module whose functions are annotated with native types;
  the functions themselves are the native entry points
- such a class or module carrying a `__native_library__` attribute; the
  annotated functions only declare signatures and the entry points are the
  symbols of the same name in that shared library
- a BindingManifest loaded from YAML

Usage:
    from rebind.introspection import collect_functions, native_namespace

    @native_namespace("c")
    class clib:
        def strlen(s: "const char*") -> "size_t": ...
        def abs(n: "int") -> "int": ...

    for descriptor in collect_functions(clib):
        print(descriptor.signature.format(descriptor.name))
"""

import __future__
import ctypes
import ctypes.util
import inspect
import logging
import os
import typing
from typing import Any, Callable, Dict, List, Optional

from .callable import CallableDescriptor
from .config import RebindConfig, get_config
from .errors import Diagnostic, error_introspection, warning_unsupported_member
from .manifest import BindingManifest, ManifestEntry
from .signatures import FunctionSignature, Member, MemberKind
from .types import NativeType, VOID, is_foreign_compatible, resolve_type, resolve_type_name

logger = logging.getLogger(__name__)

NATIVE_LIBRARY_ATTR = "__native_library__"

_LIBRARY_SUFFIXES = (".so", ".dylib", ".dll")


class UnsupportedShape(Exception):
    """A member's signature cannot be exposed."""
    pass


def native_namespace(library: Any) -> Callable[[type], type]:
    """
    Class decorator binding a declaration namespace to a shared library.

    `library` is a ctypes.CDLL, a library name for ctypes.util.find_library,
    or a path.
    """
    def decorate(cls: type) -> type:
        setattr(cls, NATIVE_LIBRARY_ATTR, library)
        return cls
    return decorate


def load_library(library: Any) -> ctypes.CDLL:
    """Open a shared library given a CDLL, a library name or a path."""
    if isinstance(library, ctypes.CDLL):
        return library
    if not isinstance(library, (str, os.PathLike)):
        raise error_introspection(repr(library),
                                  "library must be a ctypes.CDLL, a name or a path")

    name = os.fspath(library)
    if os.sep in name or name.endswith(_LIBRARY_SUFFIXES):
        path = name
    else:
        path = ctypes.util.find_library(name)
        if path is None:
            raise error_introspection(name, "shared library not found")
    try:
        return ctypes.CDLL(path)
    except OSError as e:
        raise error_introspection(name, f"cannot load shared library: {e}") from e


def entity_name(entity: Any) -> str:
    """Name of a native entity; also the module name recorded in manifests."""
    if isinstance(entity, BindingManifest):
        return entity.module
    return getattr(entity, "__name__", None) or repr(entity)


def is_introspectable(entity: Any) -> bool:
    return (inspect.isclass(entity) or inspect.ismodule(entity)
            or isinstance(entity, BindingManifest))


def _is_foreign_function(obj: Any) -> bool:
    return isinstance(obj, ctypes._CFuncPtr)


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


# =============================================================================
# Members
# =============================================================================

def members_of(entity: Any) -> List[Member]:
    """
    List the members of a native entity in declaration order.

    Raises IntrospectionError if the entity cannot be introspected.
    """
    if isinstance(entity, BindingManifest):
        return [Member(e.name, MemberKind.FUNCTION, e) for e in entity.functions]

    if inspect.isclass(entity):
        members = []
        for name, obj in vars(entity).items():
            if _is_dunder(name):
                continue
            if isinstance(obj, staticmethod):
                members.append(Member(name, MemberKind.FUNCTION, obj.__func__))
            elif inspect.isfunction(obj) or _is_foreign_function(obj):
                members.append(Member(name, MemberKind.FUNCTION, obj))
            else:
                members.append(Member(name, MemberKind.OTHER, obj))
        return members

    if inspect.ismodule(entity):
        members = []
        for name, obj in vars(entity).items():
            if _is_dunder(name):
                continue
            # functions imported from elsewhere belong to their own module
            if inspect.isfunction(obj) and obj.__module__ == entity.__name__:
                members.append(Member(name, MemberKind.FUNCTION, obj))
            elif _is_foreign_function(obj):
                members.append(Member(name, MemberKind.FUNCTION, obj))
            else:
                members.append(Member(name, MemberKind.OTHER, obj))
        return members

    raise error_introspection(repr(entity),
                              "entity must be a class, a module or a binding manifest")


# =============================================================================
# Signatures
# =============================================================================

def _postponed_annotations(fn: Callable[..., Any]) -> bool:
    """Check if fn was compiled under `from __future__ import annotations`."""
    code = getattr(fn, "__code__", None)
    return code is not None and bool(code.co_flags & __future__.annotations.compiler_flag)


def _evaluate_postponed(raw: Dict[str, Any], fn: Callable[..., Any]) -> Dict[str, Any]:
    """
    Evaluate postponed annotations in the globals of fn.

    A quoted C spelling evaluates to itself; source text that does not
    evaluate (an unquoted `size_t`) is kept as a C spelling.
    """
    namespace = getattr(fn, "__globals__", {})
    for k, v in list(raw.items()):
        if not isinstance(v, str):
            continue
        try:
            raw[k] = eval(v, namespace)
        except (NameError, AttributeError, SyntaxError, TypeError):
            pass
    return raw


def _annotations(fn: Callable[..., Any]) -> Dict[str, Any]:
    """
    Collect annotations, resolving string annotations by C spelling first
    and by evaluation otherwise.

    Under postponed evaluation every annotation is a string, so there the
    source text is evaluated first and a builtin `float` stays a double.
    """
    raw = dict(getattr(fn, "__annotations__", {}))
    if _postponed_annotations(fn):
        return _evaluate_postponed(raw, fn)
    pending = [k for k, v in raw.items()
               if isinstance(v, str) and resolve_type_name(v) is None]
    if pending:
        try:
            hints = typing.get_type_hints(fn)
        except (NameError, TypeError, SyntaxError):
            hints = {}
        for k in pending:
            if k in hints:
                raw[k] = hints[k]
    return raw


def _python_signature(fn: Callable[..., Any]) -> FunctionSignature:
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError) as e:
        raise UnsupportedShape(f"no signature: {e}") from e

    annotations = _annotations(fn)
    names = []
    types = []
    for p in sig.parameters.values():
        if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
            raise UnsupportedShape(f"variadic parameter '{p.name}'")
        if p.kind == p.KEYWORD_ONLY:
            raise UnsupportedShape(f"keyword-only parameter '{p.name}'")
        if p.default is not p.empty:
            raise UnsupportedShape(f"default argument for '{p.name}'")
        if p.name not in annotations:
            raise UnsupportedShape(f"unannotated parameter '{p.name}'")
        names.append(p.name)
        types.append(resolve_type(annotations[p.name]))

    if "return" not in annotations:
        raise UnsupportedShape("unannotated return type")

    return FunctionSignature(
        return_type=resolve_type(annotations["return"]),
        param_types=tuple(types),
        param_names=tuple(names),
    )


def _foreign_signature(fn: Any) -> FunctionSignature:
    if fn.argtypes is None:
        raise UnsupportedShape("foreign function without argtypes")
    restype = fn.restype
    return FunctionSignature(
        return_type=VOID if restype is None else resolve_type(restype),
        param_types=tuple(resolve_type(t) for t in fn.argtypes),
    )


def signature_of(member: Member) -> FunctionSignature:
    """
    Derive the signature of a function member.

    Raises UnsupportedShape for signatures that cannot be exposed.
    """
    obj = member.obj
    if isinstance(obj, ManifestEntry):
        return obj.signature
    if _is_foreign_function(obj):
        return _foreign_signature(obj)
    return _python_signature(obj)


def _doc_of(member: Member) -> str:
    obj = member.obj
    if isinstance(obj, ManifestEntry):
        return obj.doc
    if inspect.isfunction(obj):
        return inspect.getdoc(obj) or ""
    return ""


# =============================================================================
# Entry points
# =============================================================================

def _library_of(entity: Any) -> Optional[Any]:
    if isinstance(entity, BindingManifest):
        return entity.library
    return getattr(entity, NATIVE_LIBRARY_ATTR, None)


def _bind_foreign(library: ctypes.CDLL, name: str, signature: FunctionSignature,
                  entity: str) -> Any:
    for t in (signature.return_type,) + signature.param_types:
        if not is_foreign_compatible(t):
            raise UnsupportedShape(f"type '{t.name}' cannot cross a foreign boundary")
    try:
        # indexing returns a fresh function pointer, attribute access a shared one
        fn = library[name]
    except AttributeError as e:
        raise error_introspection(entity, f"symbol '{name}' not found in library") from e
    fn.argtypes = [t.ctype for t in signature.param_types]
    fn.restype = _restype(signature.return_type)
    return fn


def _restype(t: NativeType) -> Any:
    return None if t.is_void else t.ctype


def _entry_point(member: Member, signature: FunctionSignature,
                 library: Optional[ctypes.CDLL], entity: str) -> Callable[..., Any]:
    obj = member.obj
    if _is_foreign_function(obj):
        return obj
    if library is not None:
        return _bind_foreign(library, member.identifier, signature, entity)
    if isinstance(obj, ManifestEntry):
        raise error_introspection(entity, "binding manifest names no library")
    return obj


# =============================================================================
# Collection
# =============================================================================

def collect_functions(entity: Any, config: Optional[RebindConfig] = None,
                      diagnostics: Optional[List[Diagnostic]] = None) -> List[CallableDescriptor]:
    """
    Build one CallableDescriptor per exposable function of `entity`.

    Non-function members are skipped. Functions with unsupported signature
    shapes are skipped with a warning, or raise IntrospectionError when the
    configuration says `on_unsupported="error"`. Skipped-member warnings are
    appended to `diagnostics` when a list is given.
    """
    config = config or get_config()
    name = entity_name(entity)
    members = members_of(entity)

    library = _library_of(entity)
    if library is not None:
        library = load_library(library)

    descriptors = []
    for member in members:
        if not member.is_function:
            logger.debug("%s: skipping non-function member '%s'", name, member.identifier)
            continue
        try:
            signature = signature_of(member)
            entry_point = _entry_point(member, signature, library, name)
        except UnsupportedShape as e:
            if config.on_unsupported == "error":
                raise error_introspection(name, f"'{member.identifier}': {e}") from e
            warning = warning_unsupported_member(name, member.identifier, str(e))
            logger.warning(warning.format())
            if diagnostics is not None:
                diagnostics.append(warning)
            continue

        descriptors.append(CallableDescriptor(
            name=member.identifier,
            signature=signature,
            entry_point=entry_point,
            doc=_doc_of(member),
        ))

    logger.debug("%s: collected %d function(s)", name, len(descriptors))
    return descriptors


def build_manifest(entity: Any, config: Optional[RebindConfig] = None) -> BindingManifest:
    """
    Produce the static registration table for an entity.

    Only libraries named by string survive the round trip; a CDLL object is
    recorded by its path.
    """
    if isinstance(entity, BindingManifest):
        return entity
    library = _library_of(entity)
    if isinstance(library, ctypes.CDLL):
        library = library._name
    elif library is not None:
        library = os.fspath(library)
    return BindingManifest(
        module=entity_name(entity),
        library=library,
        functions=[
            ManifestEntry(d.name, d.signature, d.doc)
            for d in collect_functions(entity, config)
        ],
        doc=inspect.getdoc(entity) or "",
    )
