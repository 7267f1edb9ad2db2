"""
Stackhub — CLI entrypoint.

Usage:
    hub --help
    hub plan
    hub render COMPONENT
    hub outputs
    hub requires kubectl helm
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from stackhub import __version__
from stackhub.core.context import RunContext
from stackhub.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="hub")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option("--force", is_flag=True, help="Turn validation failures into warnings.")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to hub.yaml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    force: bool,
    config_path: str | None,
) -> None:
    """Stackhub — resolve stack requirements, parameters and templates."""
    from stackhub.core.config.loader import env_force, find_stack_file

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    _cfg = ctx.obj["config_path"] or find_stack_file()
    ctx.obj["run"] = RunContext(
        project_root=_cfg.parent.resolve() if _cfg else None,
        force=force or env_force(),
    )

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get("HUB_LOG_FILE"),
        log_file_level=os.environ.get("HUB_LOG_FILE_LEVEL"),
    )


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--no-save", is_flag=True, help="Don't save component status to state.")
@click.pass_context
def plan(ctx: click.Context, as_json: bool, no_save: bool) -> None:
    """Resolve requirements and render templates for every component."""
    from stackhub.core.services.provides import sprint_deps
    from stackhub.core.use_cases.plan import run_plan

    result = run_plan(
        config_path=ctx.obj.get("config_path"),
        ctx=ctx.obj["run"],
        save=not no_save,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        for err in result.errors:
            click.echo(f"   • {err}")
        sys.exit(1)

    report = result.report
    assert report is not None  # guaranteed after error check above

    click.secho(f"\n📋 {report.stack_name}", fg="cyan", bold=True)
    click.echo()

    icons = {"planned": "✅", "skipped": "⏭️ ", "failed": "❌"}
    for comp in report.components:
        click.echo(f"   {icons.get(comp.status, '•')} {comp.name}", nl=False)
        if comp.unmet_optional:
            click.secho(f"  (unmet: {', '.join(comp.unmet_optional)})", fg="yellow")
        else:
            click.echo()
        for err in comp.template_errors:
            click.secho(f"      • {err}", fg="red")

    if report.provides and not ctx.obj.get("quiet"):
        click.echo()
        click.secho("   Provides:", fg="white", bold=True)
        click.echo(sprint_deps(report.provides))

    _echo_outputs(report.outputs)
    click.echo()

    if report.failed:
        sys.exit(1)


@cli.command()
@click.argument("component")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def render(ctx: click.Context, component: str, as_json: bool) -> None:
    """Render one component's templates with parameters and captured outputs."""
    from stackhub.core.use_cases.render import render_component

    result = render_component(
        component,
        config_path=ctx.obj.get("config_path"),
        ctx=ctx.obj["run"],
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)
        return

    if result.ok:
        click.secho(f"✅ Rendered `{component}` templates", fg="green", bold=True)
        if result.directory:
            click.echo(f"   {result.directory}")
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
    else:
        click.secho(f"❌ `{component}` templates rendered with errors:", fg="red", bold=True)
    for err in result.errors:
        click.echo(f"   • {err}")
    sys.exit(1)


def _echo_outputs(outputs: list) -> None:
    if not outputs:
        return
    click.echo()
    click.secho("   Outputs:", fg="white", bold=True)
    for out in outputs:
        value = "(masked)" if out.kind.startswith("secret") else out.value
        brief = f"  # {out.brief}" if out.brief else ""
        click.echo(f"     {out.name} = {value}{brief}")


# ── Register sub-commands from stackhub/ui/cli/ ───────────────────

from stackhub.ui.cli.outputs import capture, outputs  # noqa: E402
from stackhub.ui.cli.requires import requires  # noqa: E402

cli.add_command(outputs)
cli.add_command(capture)
cli.add_command(requires)


if __name__ == "__main__":
    cli()
