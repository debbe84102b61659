"""Up command for contain."""

import click

from ...services.exceptions import InsideContainerError
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
def up(ctx, command):
    """Start the named container in the background"""
    options = get_options(ctx)
    if passthrough_guard().is_active():
        raise InsideContainerError('up')

    config = resolve_configuration(command)
    ctx.exit(build_orchestrator(config, options).up())
