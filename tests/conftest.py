"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

from depcompose.core.graph.builder import BuildGraph, build_graph
from depcompose.core.graph.registry import ModuleRegistry
from depcompose.core.models.module import SettingsBundle


@pytest.fixture
def make_registry():
    """Factory: build a closed registry from ``{name: [deps]}``.

    ``bundles`` maps bundle name → options; ``refs`` maps module name →
    the bundle names it attaches.
    """

    def _make(
        modules: dict[str, list[str]],
        bundles: dict[str, dict] | None = None,
        refs: dict[str, list[str]] | None = None,
    ) -> ModuleRegistry:
        registry = ModuleRegistry()
        for name, options in (bundles or {}).items():
            registry.register_bundle(SettingsBundle(name=name, options=options))
        for name, deps in modules.items():
            registry.register(
                name,
                source_path=f"modules/{name}",
                dependency_names=deps,
                settings_bundle_refs=(refs or {}).get(name, []),
            )
        registry.close()
        return registry

    return _make


@pytest.fixture
def make_graph(make_registry):
    """Factory: like ``make_registry`` but returns the built graph."""

    def _make(
        modules: dict[str, list[str]],
        bundles: dict[str, dict] | None = None,
        refs: dict[str, list[str]] | None = None,
    ) -> BuildGraph:
        graph, _ = build_graph(make_registry(modules, bundles, refs))
        return graph

    return _make


@pytest.fixture
def write_build_yml(tmp_path: Path):
    """Factory: write a build.yml into tmp_path and return its path."""

    def _write(content: str) -> Path:
        path = tmp_path / "build.yml"
        path.write_text(textwrap.dedent(content))
        return path

    return _write


@pytest.fixture
def chip_build_yml(write_build_yml) -> Path:
    """A small, valid hardware workspace."""
    return write_build_yml("""\
        name: chip-workspace
        strict_keys: [scalaVersion]
        bundles:
          common:
            scalaVersion: "2.13.10"
            organization: edu.berkeley.cs
          chisel:
            chiselVersion: "3.6.0"
        modules:
          - name: cde
            path: tools/cde
            settings: [common]
          - name: hardfloat
            path: generators/hardfloat
            depends_on: [cde]
            settings: [common, chisel]
          - name: rocketchip
            path: generators/rocket-chip
            depends_on: [cde, hardfloat]
            settings: [common, chisel]
          - name: accel
            path: generators/accel
            depends_on: [rocketchip]
            settings: [common]
    """)
