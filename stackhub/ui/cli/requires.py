"""
CLI command for prerequisite checks.

Thin wrapper over ``stackhub.core.use_cases.requires``.
"""

from __future__ import annotations

import json
import sys

import click


@click.command("requires")
@click.argument("terms", nargs=-1, required=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def requires(ctx: click.Context, terms: tuple[str, ...], as_json: bool) -> None:
    """Check that local tooling satisfies each requirement TERM."""
    from stackhub.core.use_cases.requires import check_requirements

    result = check_requirements(list(terms), ctx=ctx.obj["run"])

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.all_ok else 1)
        return

    for check in result.checks:
        if not check.known:
            click.secho(f"   ❔ {check.term}: no check implemented", fg="yellow")
        elif check.error:
            click.secho(f"   ❌ {check.term}: {check.error}", fg="red")
        else:
            click.secho(f"   ✅ {check.term}", fg="green")

    if not result.all_ok:
        sys.exit(1)
