"""
Domain models — Pydantic types for the dependency composer.

All models are re-exported here for convenient access:

    from depcompose.core.models import Module, SettingsBundle, BuildPlan, Workspace
"""

from depcompose.core.models.module import Module, SettingsBundle
from depcompose.core.models.plan import BuildPlan, ResolvedSettings
from depcompose.core.models.workspace import ModuleDecl, Workspace

__all__ = [
    # plan.py
    "BuildPlan",
    # module.py
    "Module",
    # workspace.py
    "ModuleDecl",
    "ResolvedSettings",
    "SettingsBundle",
    "Workspace",
]
