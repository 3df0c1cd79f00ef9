"""
rebind: expose statically-typed native functions as Python callables.

This package provides:
- Introspector: discovers annotated functions on a class, module or binding
  manifest, in declaration order
- ValueMarshaler: converts between native typed values and tagged
  DynamicValues
- CallableDescriptor: binds one native entry point and runs checked calls
- ModuleRegistry: collects descriptors once per entity and installs them
  into host modules

Usage:
    import ctypes
    from rebind import export_module

    class example:
        def sum(a: ctypes.c_int, b: ctypes.c_int) -> ctypes.c_int:
            return a + b

        def greeting() -> str:
            return "hello"

    export_module("example", example)

    import example
    example.sum(2, 3)   # 5
    example.sum(2)      # raises ArgumentCountMismatch
"""

__version__ = "0.1.0"

from .types import (
    NativeType,
    TypeFamily,
    BoolType,
    IntegerType,
    FloatType,
    StringType,
    HandleType,
    VoidType,
    UnsupportedType,
    BOOL,
    INT8, UINT8, INT16, UINT16, INT32, UINT32, INT64, UINT64,
    SHORT, USHORT, INT, UINT, LONG, ULONG, LONGLONG, ULONGLONG,
    SIZE_T, SSIZE_T,
    FLOAT, DOUBLE, LONGDOUBLE,
    CSTRING, STRING, STRING_VIEW,
    HANDLE, VOID,
    resolve_type,
    resolve_type_name,
)

from .values import (
    DynamicValue,
    ValueTag,
    ArgumentList,
    NO_VALUE,
    bool_val,
    int_val,
    float_val,
    string_val,
    handle_val,
    Handle,
    wrap_host,
    wrap_hosts,
    unwrap_value,
    unwrap_values,
    host_value,
)

from .errors import (
    BindingError,
    ArgumentCountMismatch,
    ArgumentTypeMismatch,
    ConversionFailure,
    NativeFault,
    KeywordArgumentsUnsupported,
    ModuleCreationFailure,
    RegistrationFailure,
    IntrospectionError,
    ManifestError,
    Diagnostic,
    ErrorSeverity,
)

from .config import (
    RebindConfig,
    get_config,
    set_config,
)

from .signatures import (
    Member,
    MemberKind,
    FunctionSignature,
)

from .marshal import (
    to_dynamic,
    to_native,
)

from .callable import (
    CallState,
    CallableDescriptor,
    make_thunk,
    descriptor_of,
)

from .manifest import (
    BindingManifest,
    ManifestEntry,
    load_manifest,
    loads_manifest,
    dump_manifest,
)

from .introspection import (
    native_namespace,
    members_of,
    signature_of,
    collect_functions,
    build_manifest,
)

from .registry import (
    ModuleRegistry,
    RegistryCache,
    get_module_registry,
    create_module,
    export_module,
    call_function,
)

__all__ = [
    '__version__',

    # Types
    'NativeType',
    'TypeFamily',
    'BoolType',
    'IntegerType',
    'FloatType',
    'StringType',
    'HandleType',
    'VoidType',
    'UnsupportedType',
    'BOOL',
    'INT8', 'UINT8', 'INT16', 'UINT16', 'INT32', 'UINT32', 'INT64', 'UINT64',
    'SHORT', 'USHORT', 'INT', 'UINT', 'LONG', 'ULONG', 'LONGLONG', 'ULONGLONG',
    'SIZE_T', 'SSIZE_T',
    'FLOAT', 'DOUBLE', 'LONGDOUBLE',
    'CSTRING', 'STRING', 'STRING_VIEW',
    'HANDLE', 'VOID',
    'resolve_type',
    'resolve_type_name',

    # Values
    'DynamicValue',
    'ValueTag',
    'ArgumentList',
    'NO_VALUE',
    'bool_val',
    'int_val',
    'float_val',
    'string_val',
    'handle_val',
    'Handle',
    'wrap_host',
    'wrap_hosts',
    'unwrap_value',
    'unwrap_values',
    'host_value',

    # Errors
    'BindingError',
    'ArgumentCountMismatch',
    'ArgumentTypeMismatch',
    'ConversionFailure',
    'NativeFault',
    'KeywordArgumentsUnsupported',
    'ModuleCreationFailure',
    'RegistrationFailure',
    'IntrospectionError',
    'ManifestError',
    'Diagnostic',
    'ErrorSeverity',

    # Config
    'RebindConfig',
    'get_config',
    'set_config',

    # Signatures
    'Member',
    'MemberKind',
    'FunctionSignature',

    # Marshaling
    'to_dynamic',
    'to_native',

    # Callables
    'CallState',
    'CallableDescriptor',
    'make_thunk',
    'descriptor_of',

    # Manifests
    'BindingManifest',
    'ManifestEntry',
    'load_manifest',
    'loads_manifest',
    'dump_manifest',

    # Introspection
    'native_namespace',
    'members_of',
    'signature_of',
    'collect_functions',
    'build_manifest',

    # Registry
    'ModuleRegistry',
    'RegistryCache',
    'get_module_registry',
    'create_module',
    'export_module',
    'call_function',
]
