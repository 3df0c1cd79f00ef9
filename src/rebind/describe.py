"""
API reference for exposed native functions.

Reports what a native entity exposes, in registration order, as plain
dictionaries, JSON or human-readable text.

Usage:
    from rebind.describe import get_api_reference, describe_function

    api = get_api_reference(example)
    print(api["functions"]["sum"]["signature"])  # "sum(a: int, b: int) -> int"
    print(describe_function(example, "sum"))
"""

import json
from typing import Any, Dict, List, Optional

from . import __version__
from .callable import CallableDescriptor
from .registry import get_module_registry


def _descriptor_to_dict(d: CallableDescriptor) -> Dict[str, Any]:
    """Convert a descriptor to a dictionary."""
    return {
        "name": d.name,
        "parameters": [{"name": n, "type": t.name} for n, t in d.signature.params],
        "return_type": d.signature.return_type.name,
        "arity": d.arity,
        "signature": d.signature.format(d.name),
        "doc": d.doc,
    }


def get_api_reference(entity: Any) -> Dict[str, Any]:
    """
    Get the complete API reference of an entity as a dictionary.

    Returns a dictionary with:
    - module: the entity name
    - functions: every exposed function with its signature and doc
    """
    registry = get_module_registry(entity)
    return {
        "version": __version__,
        "module": registry.name,
        "functions": {d.name: _descriptor_to_dict(d) for d in registry},
    }


def list_functions(entity: Any) -> List[str]:
    """List exposed function names in registration order."""
    return get_module_registry(entity).names


def get_function_info(entity: Any, name: str) -> Optional[Dict[str, Any]]:
    """
    Get detailed information about one exposed function.

    Returns None if the function is not exposed.
    """
    d = get_module_registry(entity).get_function(name)
    if d is None:
        return None
    return _descriptor_to_dict(d)


def describe_function(entity: Any, name: str) -> str:
    """Get a human-readable description of a function."""
    info = get_function_info(entity, name)
    if info is None:
        return f"Unknown function: {name}"

    lines = [
        f"Function: {name}",
        f"Signature: {info['signature']}",
        f"Description: {info['doc'] or 'No description available'}",
    ]
    if info["return_type"] == "void":
        lines.append("Note: returns no value")
    return "\n".join(lines)


def get_api_as_json(entity: Any) -> str:
    """Get the API reference as a JSON string."""
    return json.dumps(get_api_reference(entity), indent=2)
