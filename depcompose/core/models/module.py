"""
Module and SettingsBundle — the registered building blocks.

A Module is one sub-project of the workspace: where its sources live,
which other modules must be built before it, and which settings bundles
it attaches.  A SettingsBundle is a named set of build options (version
pins, compiler flags) that any number of modules may share.

Both are frozen once created.  Bundles are shared by reference, never
copied, so their options are frozen all the way down: mappings become
read-only proxies and lists become tuples.  To change a bundle, derive
a new one with ``customize()``; to hand values to a caller that may
mutate them, ``thaw()`` them.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def freeze(value: Any) -> Any:
    """Read-only deep copy of a settings value."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Independent, plain (dict / list) deep copy of a frozen settings value."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return {thaw(item) for item in value}
    return copy.deepcopy(value)


class SettingsBundle(BaseModel):
    """A named, immutable mapping of build options."""

    model_config = ConfigDict(frozen=True)

    name: str
    options: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)

    @field_validator("options", mode="after")
    @classmethod
    def _freeze_options(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return freeze(value)

    @field_serializer("options")
    def _plain_options(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return thaw(value)

    def get(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self.options

    @property
    def keys(self) -> list[str]:
        return list(self.options)

    def customize(self, name: str, **overrides: Any) -> SettingsBundle:
        """Derive a new bundle with some options replaced.

        The receiver is left untouched; other modules sharing it keep
        seeing the original values.
        """
        return SettingsBundle(name=name, options={**self.options, **overrides})


class Module(BaseModel):
    """A registered module.

    ``dependency_names`` order matters: dependencies listed earlier win
    when inherited settings collide.  ``settings_refs`` order matters the
    same way for the module's own bundles.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    source_path: str = ""
    dependency_names: tuple[str, ...] = ()
    settings_refs: tuple[str, ...] = ()
    description: str = ""

    @property
    def has_dependencies(self) -> bool:
        return bool(self.dependency_names)

    def depends_on(self, name: str) -> bool:
        """Whether this module declares a direct dependency on *name*."""
        return name in self.dependency_names
