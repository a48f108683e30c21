"""
Module registry — the set of modules and bundles for one composition run.

Populated once per run from declared configuration, then closed.  After
``close()`` the registry is read-only, so every later stage (graph
build, validation, scheduling, settings) sees the same snapshot.

Iteration follows insertion order.  That order is used for diagnostics
(which cycle is reported first, error ordering) and never for build
semantics.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from depcompose.core.graph.errors import (
    DuplicateBundleError,
    DuplicateModuleError,
    RegistryClosedError,
    UnknownBundleError,
    UnknownModuleError,
)
from depcompose.core.models.module import Module, SettingsBundle

logger = logging.getLogger(__name__)


class ModuleRegistry:
    """Holds registered Modules and SettingsBundles by name."""

    def __init__(self) -> None:
        self._modules: dict[str, Module] = {}
        self._bundles: dict[str, SettingsBundle] = {}
        self._closed = False

    # ── Modules ─────────────────────────────────────────────────

    def register(
        self,
        name: str,
        source_path: str = "",
        dependency_names: Iterable[str] = (),
        settings_bundle_refs: Iterable[str] = (),
        description: str = "",
    ) -> Module:
        """Register a module.

        Raises:
            DuplicateModuleError: *name* is already registered.  The
                registry is left unchanged.
            RegistryClosedError: The registry has been closed.
        """
        if self._closed:
            raise RegistryClosedError(name)
        if name in self._modules:
            raise DuplicateModuleError(name)

        module = Module(
            name=name,
            source_path=source_path,
            dependency_names=tuple(dependency_names),
            settings_refs=tuple(settings_bundle_refs),
            description=description,
        )
        self._modules[name] = module
        logger.debug(
            "Registered module %s (deps=%s, bundles=%s)",
            name, list(module.dependency_names), list(module.settings_refs),
        )
        return module

    def add(self, module: Module) -> Module:
        """Register an already-built Module."""
        return self.register(
            module.name,
            module.source_path,
            module.dependency_names,
            module.settings_refs,
            module.description,
        )

    def lookup(self, name: str) -> Module:
        """Return the module called *name*.

        Raises:
            UnknownModuleError: *name* was never registered.
        """
        try:
            return self._modules[name]
        except KeyError:
            raise UnknownModuleError(name) from None

    def get(self, name: str) -> Module | None:
        return self._modules.get(name)

    def names(self) -> list[str]:
        return list(self._modules)

    @property
    def modules(self) -> list[Module]:
        return list(self._modules.values())

    # ── Bundles ─────────────────────────────────────────────────

    def register_bundle(self, bundle: SettingsBundle) -> SettingsBundle:
        """Register a shared settings bundle.

        Raises:
            DuplicateBundleError: A bundle with this name exists.
            RegistryClosedError: The registry has been closed.
        """
        if self._closed:
            raise RegistryClosedError(bundle.name)
        if bundle.name in self._bundles:
            raise DuplicateBundleError(bundle.name)
        self._bundles[bundle.name] = bundle
        logger.debug("Registered bundle %s (%d keys)", bundle.name, len(bundle.options))
        return bundle

    def bundle(self, name: str) -> SettingsBundle:
        """Return the bundle called *name*.

        Raises:
            UnknownBundleError: *name* was never registered.
        """
        try:
            return self._bundles[name]
        except KeyError:
            raise UnknownBundleError(name) from None

    def has_bundle(self, name: str) -> bool:
        return name in self._bundles

    @property
    def bundles(self) -> list[SettingsBundle]:
        return list(self._bundles.values())

    # ── Lifecycle ───────────────────────────────────────────────

    def close(self) -> None:
        """Freeze the registry; later registrations fail."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def without(self, names: Iterable[str]) -> ModuleRegistry:
        """A new open registry with the given modules left out.

        Bundles are carried over by reference.
        """
        dropped = set(names)
        clone = ModuleRegistry()
        for bundle in self._bundles.values():
            clone.register_bundle(bundle)
        for module in self._modules.values():
            if module.name not in dropped:
                clone.add(module)
        return clone

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules.values())
