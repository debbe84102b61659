"""Shell command for contain."""

import click

from ..helpers import (
    build_orchestrator,
    get_options,
    handle_errors,
    host_shell,
    passthrough_guard,
    resolve_configuration,
)


@click.command()
@click.argument('command', required=False)
@click.pass_context
@handle_errors
def shell(ctx, command):
    """Open a shell in the container for COMMAND (default: first image entry)"""
    options = get_options(ctx, interactive=True)

    guard = passthrough_guard()
    if guard.is_active():
        ctx.exit(guard.execute([host_shell()], options.cli_env_variables))

    config = resolve_configuration(command)
    ctx.exit(build_orchestrator(config, options).shell())
