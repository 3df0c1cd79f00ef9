"""
Module registry for exposed native functions.

A ModuleRegistry owns every CallableDescriptor collected from one native
entity, along with the thunk built for each descriptor, and installs them
into host module objects.

Registries and modules are memoized by a RegistryCache with init-once
semantics. The cache is never invalidated: descriptors, thunks and modules
stay alive for the rest of the process so that every installed callable
remains valid. This is a bounded cost of one descriptor and one thunk per
exposed function.
"""

import inspect
import keyword
import logging
import sys
import threading
import types
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .callable import CallableDescriptor, make_thunk
from .config import RebindConfig
from .errors import error_module_creation, error_registration
from .introspection import collect_functions, entity_name
from .manifest import BindingManifest
from .values import DynamicValue

logger = logging.getLogger(__name__)


class ModuleRegistry:
    """
    All exposed functions of one native entity, in discovery order.

    The descriptor set is fixed at construction.
    """

    def __init__(self, entity: Any, descriptors: Sequence[CallableDescriptor]):
        self.entity = entity
        self.name = entity_name(entity)
        self._descriptors: Tuple[CallableDescriptor, ...] = tuple(descriptors)
        self._thunks: Tuple[Callable[..., Any], ...] = tuple(
            make_thunk(d) for d in self._descriptors
        )

    @classmethod
    def from_entity(cls, entity: Any, config: Optional[RebindConfig] = None) -> "ModuleRegistry":
        """Introspect an entity and build its registry."""
        return cls(entity, collect_functions(entity, config))

    @property
    def descriptors(self) -> Tuple[CallableDescriptor, ...]:
        return self._descriptors

    @property
    def names(self) -> List[str]:
        return [d.name for d in self._descriptors]

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[CallableDescriptor]:
        return iter(self._descriptors)

    def __contains__(self, name: str) -> bool:
        return self.get_function(name) is not None

    def __repr__(self) -> str:
        return f"ModuleRegistry({self.name!r}, {len(self)} function(s))"

    def get_function(self, name: str) -> Optional[CallableDescriptor]:
        """Look up a descriptor by name."""
        for d in self._descriptors:
            if d.name == name:
                return d
        return None

    def get_thunk(self, name: str) -> Optional[Callable[..., Any]]:
        """Look up the host callable for a name."""
        for d, thunk in zip(self._descriptors, self._thunks):
            if d.name == name:
                return thunk
        return None

    def call(self, name: str, args: Sequence[DynamicValue]) -> DynamicValue:
        """
        Call a function by name with DynamicValue arguments.

        Raises RuntimeError if function not found.
        """
        func = self.get_function(name)
        if func is None:
            raise RuntimeError(f"Unknown function: {self.name}.{name}")
        return func.invoke(args)

    def install(self, module: types.ModuleType) -> types.ModuleType:
        """
        Register every thunk on `module` under its descriptor name.

        A name that is already defined on the module aborts installation with
        RegistrationFailure. Names installed before the failure are left in
        place; the caller discards the module.
        """
        module_name = getattr(module, "__name__", repr(module))
        for d, thunk in zip(self._descriptors, self._thunks):
            if d.name in vars(module):
                raise error_registration(module_name, d.name, "name already defined in module")
            try:
                setattr(module, d.name, thunk)
            except (AttributeError, TypeError) as e:
                raise error_registration(module_name, d.name, str(e)) from e
            logger.debug("%s: registered %s", module_name, d.signature.format(d.name))

        module.__all__ = self.names
        return module


def _module_doc(entity: Any) -> Optional[str]:
    if isinstance(entity, BindingManifest):
        return entity.doc or None
    return inspect.getdoc(entity)


def new_module(name: str, doc: Optional[str] = None) -> types.ModuleType:
    """
    Create an empty host module.

    Raises ModuleCreationFailure for names that cannot be imported.
    """
    if not isinstance(name, str) or not name:
        raise error_module_creation(repr(name), "module name must be a non-empty string")
    for part in name.split("."):
        if not part.isidentifier() or keyword.iskeyword(part):
            raise error_module_creation(name, f"'{part}' is not a valid module name component")
    try:
        return types.ModuleType(name, doc)
    except TypeError as e:
        raise error_module_creation(name, str(e)) from e


class RegistryCache:
    """
    Init-once cache of registries per entity and modules per (name, entity).

    Entities are keyed by identity. The cache keeps a reference to every
    entity it has seen, so identities are never reused while cached.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._registries: Dict[int, ModuleRegistry] = {}
        self._modules: Dict[Tuple[str, int], types.ModuleType] = {}

    def __len__(self) -> int:
        return len(self._registries)

    def registry_for(self, entity: Any, config: Optional[RebindConfig] = None) -> ModuleRegistry:
        """Get the registry for an entity, building it on first request."""
        key = id(entity)
        with self._lock:
            registry = self._registries.get(key)
            if registry is None:
                registry = ModuleRegistry.from_entity(entity, config)
                self._registries[key] = registry
                logger.debug("built %r", registry)
            return registry

    def module_for(self, name: str, entity: Any,
                   config: Optional[RebindConfig] = None) -> types.ModuleType:
        """
        Get the module `name` populated from `entity`, creating it once.

        A module that fails to install is not cached.
        """
        key = (name, id(entity))
        with self._lock:
            module = self._modules.get(key)
            if module is None:
                registry = self.registry_for(entity, config)
                module = registry.install(new_module(name, _module_doc(entity)))
                self._modules[key] = module
                logger.info("created module %s with %d function(s)", name, len(registry))
            return module


# Global cache
_cache = RegistryCache()


def get_registry_cache() -> RegistryCache:
    """Get the process-wide registry cache."""
    return _cache


def get_module_registry(entity: Any, config: Optional[RebindConfig] = None) -> ModuleRegistry:
    """Get the memoized registry for an entity."""
    return _cache.registry_for(entity, config)


def create_module(name: str, entity: Any, config: Optional[RebindConfig] = None) -> types.ModuleType:
    """
    Build (once) the host module `name` exposing the functions of `entity`.

    Raises ModuleCreationFailure or RegistrationFailure; a failed module is
    never returned.
    """
    return _cache.module_for(name, entity, config)


def export_module(name: str, entity: Any, config: Optional[RebindConfig] = None) -> types.ModuleType:
    """
    Create the module and publish it in sys.modules so `import name` finds it.
    """
    module = create_module(name, entity, config)
    existing = sys.modules.get(name)
    if existing is not None and existing is not module:
        raise error_module_creation(name, "a different module with this name is already imported")
    sys.modules[name] = module
    return module


def call_function(entity: Any, name: str, args: Sequence[DynamicValue]) -> DynamicValue:
    """
    Call an exposed function of an entity by name.

    Raises RuntimeError if function not found.
    """
    return get_module_registry(entity).call(name, args)
