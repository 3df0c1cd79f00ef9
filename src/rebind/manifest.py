"""
YAML binding manifests.

A manifest is a static registration table naming a shared library and the
functions to expose from it, with their signatures spelled as C types:

    module: clib
    library: c
    doc: Selected libc functions.
    functions:
      - name: strlen
        returns: size_t
        params: [const char*]
        doc: Length of a C string.
      - name: abs
        returns: int
        params:
          - {name: n, type: int}
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .errors import error_manifest
from .signatures import FunctionSignature
from .types import NativeType, resolve_type_name

MANIFEST_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class ManifestEntry:
    """One function row of a binding manifest."""
    name: str
    signature: FunctionSignature
    doc: str = ""


@dataclass(eq=False)
class BindingManifest:
    """
    A parsed binding manifest.

    Manifests compare by identity: each loaded manifest is its own native
    entity.
    """
    module: str
    library: Optional[str]
    functions: List[ManifestEntry] = field(default_factory=list)
    doc: str = ""
    source: str = "<manifest>"

    @classmethod
    def from_dict(cls, data: Any, source: str = "<manifest>") -> "BindingManifest":
        """Validate and build a manifest from decoded YAML."""
        if not isinstance(data, dict):
            raise error_manifest(source, "top level must be a mapping")

        module = data.get("module")
        if not isinstance(module, str) or not module:
            raise error_manifest(source, "'module' must be a non-empty string")

        library = data.get("library")
        if library is not None and not isinstance(library, str):
            raise error_manifest(source, "'library' must be a string")

        rows = data.get("functions", [])
        if not isinstance(rows, list):
            raise error_manifest(source, "'functions' must be a list")

        functions = [_parse_entry(row, i, source) for i, row in enumerate(rows)]
        return cls(
            module=module,
            library=library,
            functions=functions,
            doc=str(data.get("doc", "") or ""),
            source=source,
        )


def _resolve(spelling: Any, where: str, source: str) -> NativeType:
    if not isinstance(spelling, str):
        raise error_manifest(source, f"{where}: type must be a string")
    t = resolve_type_name(spelling)
    if t is None:
        raise error_manifest(source, f"{where}: unknown type '{spelling}'")
    return t


def _parse_entry(row: Any, index: int, source: str) -> ManifestEntry:
    where = f"functions[{index}]"
    if not isinstance(row, dict):
        raise error_manifest(source, f"{where} must be a mapping")

    name = row.get("name")
    if not isinstance(name, str) or not name.isidentifier():
        raise error_manifest(source, f"{where}: 'name' must be an identifier")
    where = f"{where} ({name})"

    params = row.get("params", []) or []
    if not isinstance(params, list):
        raise error_manifest(source, f"{where}: 'params' must be a list")

    names = []
    types = []
    for i, param in enumerate(params):
        if isinstance(param, dict):
            pname = param.get("name", f"arg{i}")
            if not isinstance(pname, str) or not pname.isidentifier():
                raise error_manifest(source, f"{where}: parameter {i} name must be an identifier")
            names.append(pname)
            types.append(_resolve(param.get("type"), f"{where} parameter {i}", source))
        else:
            names.append(f"arg{i}")
            types.append(_resolve(param, f"{where} parameter {i}", source))

    return_type = _resolve(row.get("returns", "void"), f"{where} return", source)

    return ManifestEntry(
        name=name,
        signature=FunctionSignature(
            return_type=return_type,
            param_types=tuple(types),
            param_names=tuple(names),
        ),
        doc=str(row.get("doc", "") or ""),
    )


def loads_manifest(text: str, source: str = "<string>") -> BindingManifest:
    """Parse a manifest from YAML text."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise error_manifest(source, f"invalid YAML: {e}") from e
    return BindingManifest.from_dict(data, source)


def load_manifest(path: Union[str, Path]) -> BindingManifest:
    """Load a manifest from a YAML file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise error_manifest(str(path), f"cannot read manifest: {e}") from e
    return loads_manifest(text, str(path))


def is_manifest_path(target: str) -> bool:
    return target.lower().endswith(MANIFEST_SUFFIXES)


def dump_manifest(manifest: BindingManifest) -> str:
    """Serialize a manifest back to YAML."""
    data: Dict[str, Any] = {"module": manifest.module}
    if manifest.library is not None:
        data["library"] = manifest.library
    if manifest.doc:
        data["doc"] = manifest.doc
    data["functions"] = [_entry_to_dict(e) for e in manifest.functions]
    return yaml.safe_dump(data, sort_keys=False)


def _entry_to_dict(entry: ManifestEntry) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "name": entry.name,
        "returns": entry.signature.return_type.name,
        "params": [{"name": n, "type": t.name} for n, t in entry.signature.params],
    }
    if entry.doc:
        row["doc"] = entry.doc
    return row
