"""Main CLI entry point for contain."""

import click

from .. import __version__
from ..core.constants import VERBOSE_ENV
from .commands.down import down
from .commands.run import run
from .commands.shell import shell
from .commands.status import status
from .commands.up import up
from .helpers import setup_logging


@click.group()
@click.version_option(__version__, prog_name='contain')
@click.option('-k', '--keep', 'keep_container', is_flag=True,
              help='Keep the container after the command exits')
@click.option('--dry-run', is_flag=True,
              help='Print the docker commands instead of running them')
@click.option('--root', 'run_as_root', is_flag=True,
              help='Run as root instead of the host user')
@click.option('--skip-ports', is_flag=True, help='Do not publish configured ports')
@click.option('--skip-name', is_flag=True, help='Do not name the container')
@click.option('-e', '--env', 'env_variables', multiple=True, metavar='KEY=VALUE',
              help='Set an environment variable in the container')
@click.option('--verbose', is_flag=True, envvar=VERBOSE_ENV, help='Enable debug logging')
@click.pass_context
def cli(ctx, keep_container, dry_run, run_as_root, skip_ports, skip_name, env_variables, verbose):
    """Contain - Run your development tools inside containers"""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj.update(
        keep_container=keep_container,
        dry_run=dry_run,
        run_as_root=run_as_root,
        skip_ports=skip_ports,
        skip_name=skip_name,
        env_variables=env_variables,
    )


# Register commands
cli.add_command(run)
cli.add_command(shell)
cli.add_command(up)
cli.add_command(down)
cli.add_command(status)


def main():
    cli(prog_name='contain')


if __name__ == '__main__':
    main()
