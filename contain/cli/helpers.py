"""CLI helper functions shared by all commands."""

import functools
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from ..core.config_resolver import ConfigResolver
from ..core.constants import DEFAULT_SHELL
from ..core.lifecycle import LifecycleOrchestrator
from ..core.passthrough import PassthroughGuard
from ..models.config import Configuration
from ..models.options import GlobalOptions
from ..services.exceptions import ContainError

err_console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Configure logging once for the process."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def handle_errors(func):
    """Render contain errors as a single line and exit with code 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ContainError as e:
            err_console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
            sys.exit(1)
    return wrapper


def get_options(ctx: click.Context, **overrides) -> GlobalOptions:
    """Build GlobalOptions from the group options stored on the context."""
    params = dict(ctx.obj or {})
    env_variables = params.pop('env_variables', ())
    params.update(overrides)
    return GlobalOptions.create(env_variables, **params)


def passthrough_guard() -> PassthroughGuard:
    return PassthroughGuard()


def host_shell() -> str:
    return os.environ.get('SHELL') or DEFAULT_SHELL


def resolve_configuration(command: Optional[str]) -> Configuration:
    """Resolve the configuration for a command from the current directory."""
    return ConfigResolver().resolve(Path.cwd(), command)


def build_orchestrator(config: Configuration, options: GlobalOptions) -> LifecycleOrchestrator:
    return LifecycleOrchestrator(config, options, Path.cwd())
