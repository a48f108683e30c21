"""
Composition errors — every failure the composer can report.

Each error is an exception (so the registry can raise it at its API
boundary) AND a plain data record: fields are attributes, ``kind`` names
the error, and ``to_dict()`` gives a JSON-friendly form.  The composition
pipeline catches these and returns them as values; nothing here is ever
fatal to the process.
"""

from __future__ import annotations

from typing import Any


class CompositionError(Exception):
    """Base class for all composition errors."""

    kind = "composition_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def modules(self) -> list[str]:
        """Modules implicated by this error (used by best-effort mode)."""
        return []

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, **self._fields()}

    def _fields(self) -> dict[str, Any]:
        return {}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompositionError):
            return NotImplemented
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((self.kind, self.message))

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self._fields().items())
        return f"{type(self).__name__}({fields})"


# ── Registry ────────────────────────────────────────────────────────


class DuplicateModuleError(CompositionError):
    """A module name was registered twice."""

    kind = "duplicate_module"

    def __init__(self, name: str) -> None:
        super().__init__(f"Module '{name}' is already registered")
        self.name = name

    @property
    def modules(self) -> list[str]:
        return [self.name]

    def _fields(self) -> dict[str, Any]:
        return {"name": self.name}


class UnknownModuleError(CompositionError):
    """Lookup of a module name that was never registered."""

    kind = "unknown_module"

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown module '{name}'")
        self.name = name

    def _fields(self) -> dict[str, Any]:
        return {"name": self.name}


class DuplicateBundleError(CompositionError):
    """A settings bundle name was registered twice."""

    kind = "duplicate_bundle"

    def __init__(self, name: str) -> None:
        super().__init__(f"Settings bundle '{name}' is already registered")
        self.name = name

    def _fields(self) -> dict[str, Any]:
        return {"name": self.name}


class UnknownBundleError(CompositionError):
    """A module references a settings bundle that does not exist."""

    kind = "unknown_bundle"

    def __init__(self, bundle: str, module: str | None = None) -> None:
        where = f" (referenced by '{module}')" if module else ""
        super().__init__(f"Unknown settings bundle '{bundle}'{where}")
        self.bundle = bundle
        self.module = module

    @property
    def modules(self) -> list[str]:
        return [self.module] if self.module else []

    def _fields(self) -> dict[str, Any]:
        return {"bundle": self.bundle, "module": self.module}


class RegistryClosedError(CompositionError):
    """Registration attempted after the registry was closed."""

    kind = "registry_closed"

    def __init__(self, name: str) -> None:
        super().__init__(f"Cannot register '{name}': registry is closed")
        self.name = name

    def _fields(self) -> dict[str, Any]:
        return {"name": self.name}


# ── Graph ───────────────────────────────────────────────────────────


class UnresolvedDependencyError(CompositionError):
    """A module depends on a name that is not registered."""

    kind = "unresolved_dependency"

    def __init__(self, module: str, missing_name: str) -> None:
        super().__init__(f"Module '{module}' depends on unknown module '{missing_name}'")
        self.module = module
        self.missing_name = missing_name

    @property
    def modules(self) -> list[str]:
        return [self.module]

    def _fields(self) -> dict[str, Any]:
        return {"module": self.module, "missing_name": self.missing_name}


class CyclicDependencyError(CompositionError):
    """A dependency cycle.

    ``cycle_path`` starts and ends on the same module; each consecutive
    pair is a real ``depends on`` edge.
    """

    kind = "cyclic_dependency"

    def __init__(self, cycle_path: list[str]) -> None:
        super().__init__("Dependency cycle: " + " → ".join(cycle_path))
        self.cycle_path = list(cycle_path)

    @property
    def modules(self) -> list[str]:
        return list(dict.fromkeys(self.cycle_path))

    def _fields(self) -> dict[str, Any]:
        return {"cycle_path": self.cycle_path}


# ── Settings ────────────────────────────────────────────────────────


class ConflictingPinError(CompositionError):
    """A strict settings key has divergent values across a closure.

    ``values`` lists each distinct value once, in merge-precedence order.
    """

    kind = "conflicting_pin"

    def __init__(self, key: str, values: list[Any], module: str | None = None) -> None:
        shown = ", ".join(repr(v) for v in values)
        where = f" for module '{module}'" if module else ""
        super().__init__(f"Conflicting values for strict key '{key}'{where}: {shown}")
        self.key = key
        self.values = list(values)
        self.module = module

    @property
    def modules(self) -> list[str]:
        return [self.module] if self.module else []

    def _fields(self) -> dict[str, Any]:
        return {"key": self.key, "values": self.values, "module": self.module}
