"""
Workspace model — the declared configuration of a multi-module build.

Loaded from build.yml.  This is a declaration of intent only: nothing
here is validated against the graph.  Duplicate module names, dangling
dependencies and cycles are all representable so the composer can
report them as errors instead of the loader rejecting the file.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from depcompose.core.models.module import SettingsBundle


class ModuleDecl(BaseModel):
    """A module declared in build.yml."""

    name: str
    path: str = ""
    depends_on: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("depends_on", "dependsOn"),
    )
    settings: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("settings", "settingsRefs", "settings_refs"),
    )
    description: str = ""


class Workspace(BaseModel):
    """Root workspace declaration — loaded from build.yml."""

    version: int = 1

    name: str
    description: str = ""

    strict_keys: list[str] = Field(default_factory=list)
    bundles: list[SettingsBundle] = Field(default_factory=list)
    modules: list[ModuleDecl] = Field(default_factory=list)

    @field_validator("bundles", mode="before")
    @classmethod
    def _bundles_from_mapping(cls, value: Any) -> Any:
        # Accept {name: {key: value}} as well as [{name, options}]
        if isinstance(value, dict):
            return [
                {"name": name, "options": options or {}}
                for name, options in value.items()
            ]
        return value

    def get_module(self, name: str) -> ModuleDecl | None:
        """Look up the first module declaration with this name."""
        for mod in self.modules:
            if mod.name == name:
                return mod
        return None

    def get_bundle(self, name: str) -> SettingsBundle | None:
        """Look up a settings bundle by name."""
        for bundle in self.bundles:
            if bundle.name == name:
                return bundle
        return None

    @property
    def module_names(self) -> list[str]:
        return [m.name for m in self.modules]

    @property
    def bundle_names(self) -> list[str]:
        return [b.name for b in self.bundles]

    def referenced_bundles(self) -> set[str]:
        """All bundle names referenced by at least one module."""
        return {ref for mod in self.modules for ref in mod.settings}
