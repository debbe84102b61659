"""Status command for contain."""

import click

from ..helpers import (
    build_orchestrator,
    get_options,
    handle_errors,
    passthrough_guard,
    resolve_configuration,
)


@click.command()
@click.argument('command', required=False)
@click.pass_context
@handle_errors
def status(ctx, command):
    """Show the state of the named container"""
    options = get_options(ctx)
    if passthrough_guard().is_active():
        click.echo("Running inside a container (passthrough mode).")
        return

    config = resolve_configuration(command)
    ctx.exit(build_orchestrator(config, options).status())
