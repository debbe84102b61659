"""Run command for contain."""

import click

from ..helpers import (
    build_orchestrator,
    get_options,
    handle_errors,
    passthrough_guard,
    resolve_configuration,
)


@click.command(context_settings=dict(ignore_unknown_options=True, allow_interspersed_args=False))
@click.option('-i', '--interactive', is_flag=True, help='Attach a TTY and keep stdin open')
@click.argument('command')
@click.argument('args', nargs=-1, type=click.UNPROCESSED)
@click.pass_context
@handle_errors
def run(ctx, interactive, command, args):
    """Run COMMAND inside its container"""
    options = get_options(ctx, interactive=interactive)

    guard = passthrough_guard()
    if guard.is_active():
        ctx.exit(guard.execute([command, *args], options.cli_env_variables))

    config = resolve_configuration(command)
    orchestrator = build_orchestrator(config, options)
    ctx.exit(orchestrator.run(command, list(args)))
