"""
depcompose — CLI entrypoint.

Usage:
    depcompose --help
    depcompose check
    depcompose plan --json
    depcompose explain rocketchip
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from depcompose import __version__
from depcompose.core.graph.errors import CompositionError
from depcompose.core.observability.logging_config import level_from_flags, setup_logging_from_env

_STRICT_OPTION_HELP = "Treat KEY as a strict (non-overridable) settings key. Repeatable."


def _echo_errors(errors: list[CompositionError]) -> None:
    for err in errors:
        click.echo(f"   • [{err.kind}] {err.message}")


@click.group()
@click.version_option(version=__version__, prog_name="depcompose")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to build.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """depcompose — compose build order and settings for multi-module builds."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging_from_env(level_from_flags(debug=debug, verbose=verbose, quiet=quiet))


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--strict", "strict_keys", multiple=True, metavar="KEY", help=_STRICT_OPTION_HELP)
@click.pass_context
def check(ctx: click.Context, as_json: bool, strict_keys: tuple[str, ...]) -> None:
    """Validate build.yml: duplicates, broken references, cycles, pin conflicts."""
    from depcompose.core.use_cases.check import check_workspace

    result = check_workspace(
        config_path=ctx.obj.get("config_path"),
        extra_strict_keys=list(strict_keys),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.workspace is not None
    if result.valid:
        click.secho("✅ Workspace is valid", fg="green", bold=True)
        click.echo(f"   Workspace: {result.workspace.name}")
        click.echo(f"   Modules: {len(result.workspace.modules)}")
        click.echo(f"   Bundles: {len(result.workspace.bundles)}")
        if result.strict_keys:
            click.echo(f"   Strict keys: {', '.join(result.strict_keys)}")
    else:
        click.secho(f"❌ {len(result.errors)} error(s):", fg="red", bold=True)
        _echo_errors(result.errors)

    if result.warnings and not ctx.obj.get("quiet"):
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    click.echo()
    if not result.valid:
        sys.exit(1)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--best-effort",
    is_flag=True,
    help="Drop failing modules (and their dependents) instead of failing.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Where to write the plan (default: .state/plan.json).",
)
@click.option("--no-save", is_flag=True, help="Don't write the plan file.")
@click.option("--no-audit", is_flag=True, help="Don't append to the audit ledger.")
@click.option("--strict", "strict_keys", multiple=True, metavar="KEY", help=_STRICT_OPTION_HELP)
@click.pass_context
def plan(
    ctx: click.Context,
    as_json: bool,
    best_effort: bool,
    output: str | None,
    no_save: bool,
    no_audit: bool,
    strict_keys: tuple[str, ...],
) -> None:
    """Compose the batched build plan.

    Examples:

        depcompose plan

        depcompose plan --best-effort --json

        depcompose plan --strict scalaVersion -o build-plan.json
    """
    from depcompose.core.use_cases.plan import compose_workspace

    result = compose_workspace(
        config_path=ctx.obj.get("config_path"),
        best_effort=best_effort,
        extra_strict_keys=list(strict_keys),
        output=Path(output) if output else None,
        save=not no_save,
        audit=not no_audit,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    composition = result.composition
    assert composition is not None

    mode_label = "[best-effort] " if best_effort else ""
    click.secho(f"\n🧩 {mode_label}Build plan — {composition.workspace}", fg="cyan", bold=True)

    if composition.dropped:
        click.secho(f"   ⊘ Dropped: {', '.join(composition.dropped)}", fg="yellow")
        if ctx.obj.get("verbose"):
            _echo_errors(composition.dropped_for)

    if composition.plan is None:
        click.secho(f"   ❌ {composition.error_count} error(s):", fg="red", bold=True)
        _echo_errors(composition.errors)
        click.echo()
        sys.exit(1)

    build_plan = composition.plan
    click.echo(f"   Modules: {build_plan.module_count} | Batches: {build_plan.batch_count}")
    click.echo()
    for index, batch in enumerate(build_plan.batches):
        click.secho(f"   [{index}] ", fg="white", bold=True, nl=False)
        click.echo(", ".join(batch))

    if ctx.obj.get("verbose"):
        click.echo()
        for name in build_plan.order:
            resolved = build_plan.settings[name]
            if not resolved.values:
                continue
            click.secho(f"   {name}", bold=True)
            for key, value in resolved.values.items():
                click.echo(f"     {key} = {value!r}  ({resolved.sources[key]})")

    if result.plan_path:
        click.echo()
        click.secho(f"   💾 Plan saved to {result.plan_path}", fg="cyan")

    click.echo()


@cli.command()
@click.argument("module")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--strict", "strict_keys", multiple=True, metavar="KEY", help=_STRICT_OPTION_HELP)
@click.pass_context
def explain(ctx: click.Context, module: str, as_json: bool, strict_keys: tuple[str, ...]) -> None:
    """Show a module's dependencies, dependents and resolved settings."""
    from depcompose.core.use_cases.explain import explain_module

    result = explain_module(
        module,
        config_path=ctx.obj.get("config_path"),
        extra_strict_keys=list(strict_keys),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    mod = result.module
    assert mod is not None
    click.secho(f"\n📦 {mod.name}", fg="cyan", bold=True)
    if mod.source_path:
        click.echo(f"   → {mod.source_path}")
    if result.batch_index is not None:
        click.echo(f"   Batch: {result.batch_index}")
    click.echo(f"   Depends on: {', '.join(result.dependencies) or '—'}")
    click.echo(f"   Needed by:  {', '.join(result.dependents) or '—'}")
    if ctx.obj.get("verbose"):
        click.echo(f"   All dependencies: {', '.join(result.transitive_dependencies) or '—'}")
        click.echo(f"   All dependents:   {', '.join(result.transitive_dependents) or '—'}")

    if result.settings and result.settings.values:
        click.echo()
        click.secho("   Settings:", fg="white", bold=True)
        for key, value in result.settings.values.items():
            click.echo(f"     {key} = {value!r}  ({result.settings.sources[key]})")

    if result.conflicts:
        click.echo()
        click.secho("   ⚠️  Conflicts:", fg="yellow")
        _echo_errors(result.conflicts)

    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def graph(ctx: click.Context, as_json: bool) -> None:
    """List every module with its dependencies and dependents."""
    from depcompose.core.use_cases.explain import describe_graph

    result = describe_graph(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    g = result.graph
    assert g is not None
    click.secho(f"\n🔗 {len(g)} modules, {g.edge_count} edges", fg="cyan", bold=True)
    for name in g.names:
        deps = g.dependencies_of(name)
        click.echo(f"   {name:20} → {', '.join(deps) if deps else '(no dependencies)'}")

    if result.errors:
        click.echo()
        click.secho(f"   ⚠️  {len(result.errors)} problem(s):", fg="yellow")
        _echo_errors(result.errors)

    click.echo()


if __name__ == "__main__":
    cli()
