#!/usr/bin/env python3
"""
CLI for inspecting and calling exposed native functions.

Usage:
    python -m rebind list TARGET
    python -m rebind check TARGET
    python -m rebind describe TARGET [FUNCTION] [--json]
    python -m rebind call TARGET FUNCTION [ARG ...]
    python -m rebind export TARGET

TARGET is `package.module:Attribute`, `package.module`, or a YAML binding
manifest (`*.yaml`, `*.yml`).

Examples:
    # List the functions a declaration namespace exposes
    python -m rebind list mypkg.natives:example

    # Report members that cannot be exposed
    python -m rebind check mypkg.natives:example

    # Call a function from a binding manifest
    python -m rebind call bindings/clib.yaml strlen '"hello"'

    # Generate a binding manifest from a declaration namespace
    python -m rebind export mypkg.natives:clib > clib.yaml
"""

import argparse
import importlib
import logging
import sys
from typing import Any, List


def parse_value(value_str: str) -> Any:
    """Parse a command line argument into a bool, int, float or string."""
    value_str = value_str.strip()

    if value_str.lower() == 'true':
        return True
    elif value_str.lower() == 'false':
        return False

    try:
        return int(value_str)
    except ValueError:
        pass

    try:
        return float(value_str)
    except ValueError:
        pass

    # Strip quotes if present
    if (value_str.startswith('"') and value_str.endswith('"')) or \
       (value_str.startswith("'") and value_str.endswith("'")):
        value_str = value_str[1:-1]

    return value_str


def resolve_target(target: str) -> Any:
    """Load the native entity named by a TARGET argument."""
    from .errors import error_introspection
    from .introspection import is_introspectable
    from .manifest import is_manifest_path, load_manifest

    if is_manifest_path(target):
        return load_manifest(target)

    module_name, _, attr_path = target.partition(':')
    try:
        entity = importlib.import_module(module_name)
    except ImportError as e:
        raise error_introspection(target, f"cannot import '{module_name}': {e}") from e

    for attr in filter(None, attr_path.split('.')):
        try:
            entity = getattr(entity, attr)
        except AttributeError as e:
            raise error_introspection(target, f"no attribute '{attr}'") from e

    if not is_introspectable(entity):
        raise error_introspection(target, "target is not a class, module or manifest")
    return entity


def cmd_list(args) -> int:
    """List exposed functions."""
    from .registry import get_module_registry

    registry = get_module_registry(resolve_target(args.target))
    print(f"Module: {registry.name}")
    print(f"Functions ({len(registry)}):")
    for d in registry:
        print(f"  {d.signature.format(d.name)}")
    return 0


def cmd_check(args) -> int:
    """Report members that cannot be exposed."""
    from .introspection import collect_functions

    diagnostics: List = []
    descriptors = collect_functions(resolve_target(args.target), diagnostics=diagnostics)

    for diag in diagnostics:
        print(diag.format())
    if diagnostics:
        print(f"{len(descriptors)} function(s) exposed, {len(diagnostics)} skipped")
        return 1
    print(f"OK: {len(descriptors)} function(s) exposed, none skipped")
    return 0


def cmd_describe(args) -> int:
    """Describe one function or the whole entity."""
    from .describe import describe_function, get_api_as_json, get_function_info, list_functions
    import json

    entity = resolve_target(args.target)
    if args.function is None:
        if args.json:
            print(get_api_as_json(entity))
        else:
            print("\n\n".join(describe_function(entity, n) for n in list_functions(entity)))
        return 0

    info = get_function_info(entity, args.function)
    if info is None:
        print(f"Error: Unknown function: {args.function}", file=sys.stderr)
        return 1
    print(json.dumps(info, indent=2) if args.json else describe_function(entity, args.function))
    return 0


def cmd_call(args) -> int:
    """Call a function with arguments parsed from the command line."""
    from .registry import get_module_registry

    registry = get_module_registry(resolve_target(args.target))
    thunk = registry.get_thunk(args.function)
    if thunk is None:
        print(f"Error: Unknown function: {args.function}", file=sys.stderr)
        return 1

    values = [parse_value(a) for a in args.args]
    result = thunk(*values)
    if result is not None:
        print(repr(result))
    return 0


def cmd_export(args) -> int:
    """Print the binding manifest of an entity."""
    from .introspection import build_manifest
    from .manifest import dump_manifest

    sys.stdout.write(dump_manifest(build_manifest(resolve_target(args.target))))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='python -m rebind',
        description='Inspect and call native functions exposed by rebind',
    )
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log call and registration details')

    subparsers = parser.add_subparsers(dest='action', required=True)

    list_parser = subparsers.add_parser('list', help='List exposed functions')
    list_parser.add_argument('target', help='module:Attribute, module, or manifest.yaml')

    check_parser = subparsers.add_parser('check', help='Report members that cannot be exposed')
    check_parser.add_argument('target', help='module:Attribute, module, or manifest.yaml')

    describe_parser = subparsers.add_parser('describe', help='Describe exposed functions')
    describe_parser.add_argument('target', help='module:Attribute, module, or manifest.yaml')
    describe_parser.add_argument('function', nargs='?', help='Function name')
    describe_parser.add_argument('--json', action='store_true', help='Print JSON')

    call_parser = subparsers.add_parser('call', help='Call an exposed function')
    call_parser.add_argument('target', help='module:Attribute, module, or manifest.yaml')
    call_parser.add_argument('function', help='Function name')
    call_parser.add_argument('args', nargs='*', metavar='ARG',
                             help='Positional argument (true/false, int, float or string)')

    export_parser = subparsers.add_parser('export', help='Print a binding manifest')
    export_parser.add_argument('target', help='module:Attribute or module')

    return parser


COMMANDS = {
    'list': cmd_list,
    'check': cmd_check,
    'describe': cmd_describe,
    'call': cmd_call,
    'export': cmd_export,
}


def main(argv=None) -> int:
    from .config import get_config
    from .errors import BindingError

    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else get_config().log_level
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

    try:
        return COMMANDS[args.action](args)
    except BindingError as e:
        print(e.diagnostic.format(), file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
