"""Container lifecycle orchestration.

Decides, for a resolved configuration, whether to run a fresh container,
exec into a running one, or manage a long-lived background container.
Checks against the engine are not atomic: two concurrent invocations on
the same named container can race.
"""

import dataclasses
import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import click
from rich.console import Console
from rich.table import Table

from ..models.config import Configuration
from ..models.options import GlobalOptions
from ..services.docker_service import DockerService
from ..services.exceptions import (
    ContainerAlreadyRunningError,
    ImageBuildFailedError,
    NameRequiredError,
)
from ..utils.user import UserIdentity
from .arguments import ArgumentAssembler
from .constants import DEFAULT_SHELL, KEEP_ALIVE_COMMAND

logger = logging.getLogger(__name__)


class LifecycleOrchestrator:
    """Drives Docker for one invocation."""

    def __init__(
        self,
        config: Configuration,
        options: GlobalOptions,
        cwd: Path,
        docker_service: Optional[DockerService] = None,
        identity: Optional[UserIdentity] = None,
        console: Optional[Console] = None,
        echo: Callable[[str], None] = click.echo,
    ):
        self.config = config
        self.options = options
        self.cwd = Path(cwd)
        self.identity = identity or UserIdentity.current()
        self.docker_service = docker_service or DockerService(
            environment=config.environment or None, identity=self.identity
        )
        self.console = console or Console()
        self.echo = echo

    def _assembler(self, options: Optional[GlobalOptions] = None) -> ArgumentAssembler:
        return ArgumentAssembler(
            self.config, options or self.options, self.cwd, self.identity
        )

    def ensure_image(self) -> None:
        """Make the image available: existing, then pulled, then built.

        Raises:
            ImageBuildFailedError: If all three steps fail
        """
        if self.options.dry_run:
            logger.debug("Dry run, not checking image %s", self.config.image)
            return

        image = self.config.image
        if self.docker_service.image_exists(image):
            return
        if self.docker_service.pull_image(image):
            return

        self.console.print(f"[cyan]Building image {image}...[/cyan]")
        built = self.docker_service.build_image(
            image,
            self.config.dockerfile,
            str(self.config.root_path),
            self.config.workdir_path,
            self.config.build_args,
        )
        if not built:
            raise ImageBuildFailedError(image)

    def _require_name(self, action: str) -> str:
        if not self.config.name:
            raise NameRequiredError(action)
        return self.config.name

    def _execute(self, args: List[str], exec_name: Optional[str] = None) -> int:
        if self.options.dry_run:
            self.echo(self.docker_service.command_line(args))
            return 0
        if exec_name:
            return self.docker_service.exec_into(exec_name, args)
        return self.docker_service.run(args)

    def _dry_run_or(self, verb: str, name: str, action: Callable[[str], None]) -> None:
        if self.options.dry_run:
            self.echo(self.docker_service.command_line([verb, name]))
        else:
            action(name)

    def run(self, command: str, args: Sequence[str] = (), options: Optional[GlobalOptions] = None) -> int:
        """Run a command in the named container if it is up, else in a new one."""
        assembler = self._assembler(options)
        self.ensure_image()

        name = self.config.name
        if name and not self.options.skip_name and self.docker_service.container_exists(name):
            logger.debug("Container %s is running, executing inside it", name)
            return self._execute(assembler.exec_args(command, args), exec_name=name)

        return self._execute(assembler.run_args(command, args))

    def shell(self) -> int:
        """Open the configured shell interactively."""
        shell = self.config.default_shell or DEFAULT_SHELL
        return self.run(shell, options=dataclasses.replace(self.options, interactive=True))

    def up(self) -> int:
        """Start the named container in the background.

        Raises:
            NameRequiredError: If the configuration has no name
            ContainerAlreadyRunningError: If the container is already running
        """
        name = self._require_name("up")
        if self.docker_service.container_exists(name):
            raise ContainerAlreadyRunningError(name)

        if self.docker_service.container_is_stopped(name):
            self._dry_run_or("start", name, self.docker_service.start)
            if not self.options.dry_run:
                self.console.print(f"[green]Started container {name}[/green]")
            return 0

        self.ensure_image()
        args = self._assembler().run_args(
            KEEP_ALIVE_COMMAND[0], KEEP_ALIVE_COMMAND[1:], detached=True
        )
        code = self._execute(args)
        if code == 0 and not self.options.dry_run:
            self.console.print(f"[green]Container {name} is up[/green]")
        return code

    def down(self) -> int:
        """Stop and remove the named container.

        A container that does not exist is reported, not treated as an error.
        """
        name = self._require_name("down")
        running = self.docker_service.container_exists(name)
        if not running and not self.docker_service.container_is_stopped(name):
            self.console.print(f"[yellow]Container {name} does not exist[/yellow]")
            return 0

        if running:
            self._dry_run_or("stop", name, self.docker_service.stop)
        self._dry_run_or("rm", name, self.docker_service.remove)
        if not self.options.dry_run:
            self.console.print(f"[green]Container {name} removed[/green]")
        return 0

    def status(self) -> int:
        """Report the state of the named container."""
        name = self._require_name("status")
        info = self.docker_service.get_container_info(name)
        if info is None:
            self.console.print(f"[yellow]Container {name} is not created[/yellow]")
            return 0

        table = Table(title=f"Container {name}")
        table.add_column("Status", style="green" if info.running else "yellow")
        table.add_column("Image", style="cyan")
        table.add_column("Created")
        table.add_column("Ports")
        table.add_row(
            "running" if info.running else "stopped",
            info.image,
            info.created,
            info.format_ports(),
        )
        self.console.print(table)
        return 0
