"""
CLI commands for captured and stack outputs.

Thin wrappers over ``stackhub.core.use_cases.outputs`` and
``stackhub.core.use_cases.capture``.
"""

from __future__ import annotations

import json
import sys

import click


@click.command("outputs")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def outputs(ctx: click.Context, as_json: bool) -> None:
    """Expand stack outputs from captured component outputs."""
    from stackhub.core.use_cases.outputs import show_outputs

    result = show_outputs(config_path=ctx.obj.get("config_path"), ctx=ctx.obj["run"])

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho("📤 Stack outputs:", fg="cyan", bold=True)
    if not result.outputs:
        click.echo("   (none)")
    for out in result.outputs:
        value = "(masked)" if out.kind.startswith("secret") else out.value
        click.echo(f"   {out.name} = {value}")

    if not ctx.obj.get("quiet"):
        click.echo()
        click.secho(f"   Captured: {len(result.captured)}", fg="white", bold=True)
        for captured in result.captured:
            value = "(masked)" if captured.secret else captured.value
            click.echo(f"     • {captured.qname} = {value}")


@click.command("capture")
@click.argument("component")
@click.argument("name")
@click.argument("value")
@click.option("--kind", default="", help="Output kind (secret/... values are masked).")
@click.pass_context
def capture(ctx: click.Context, component: str, name: str, value: str, kind: str) -> None:
    """Record a COMPONENT output NAME = VALUE in the state file."""
    from stackhub.core.use_cases.capture import capture_output

    result = capture_output(
        component, name, value, kind=kind, config_path=ctx.obj.get("config_path"),
    )

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.output is not None
    click.secho(f"✅ Captured {result.output.qname}", fg="green")
