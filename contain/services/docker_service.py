"""Docker service wrapping the engine operations contain needs."""

import logging
import os
import shlex
import subprocess
from typing import Dict, Iterable, List, Mapping, Optional

import docker
import docker.errors

from ..core.constants import DEFAULT_EXIT_CODE, DOCKER_BINARY
from ..models.container import ContainerInfo
from ..utils.user import UserIdentity
from .exceptions import (
    CommandError,
    ContainerRemoveError,
    ContainerStartError,
    ContainerStopError,
    DockerError,
)

logger = logging.getLogger(__name__)


def parse_key_values(pairs: Iterable[str], env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Turn ``KEY=VALUE`` entries into a dict.

    A bare ``KEY`` takes its value from ``env``, like ``docker --build-arg KEY``.
    """
    env = env or {}
    result = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        result[key] = value if sep else env.get(key, "")
    return result


class DockerService:
    """Service for Docker operations.

    State queries and lifecycle changes go through the docker SDK. The final
    ``run``/``exec`` calls go through the docker binary so that the container
    inherits the terminal.
    """

    def __init__(
        self,
        binary: str = DOCKER_BINARY,
        environment: Optional[Mapping[str, str]] = None,
        identity: Optional[UserIdentity] = None,
    ):
        self.binary = binary
        self.environment = dict(environment) if environment is not None else None
        self.identity = identity
        self._client = None

    @property
    def client(self):
        """Docker SDK client, connected on first use.

        Raises:
            CommandError: If the Docker daemon cannot be reached
        """
        if self._client is None:
            try:
                client = docker.from_env()
                client.ping()
            except docker.errors.DockerException as e:
                if "connection refused" in str(e).lower() or "cannot connect" in str(e).lower():
                    raise CommandError(
                        self.binary,
                        "Docker daemon is not running. Please start Docker Desktop or the Docker service.",
                    ) from e
                raise CommandError(self.binary, f"Failed to connect to Docker: {e}") from e
            self._client = client
        return self._client

    def image_exists(self, image: str) -> bool:
        """Check if an image exists locally.

        Raises:
            DockerError: If Docker fails to answer
        """
        try:
            self.client.images.get(image)
            logger.debug("Image %s exists", image)
            return True
        except docker.errors.ImageNotFound:
            logger.debug("Image %s not found locally", image)
            return False
        except docker.errors.APIError as e:
            raise DockerError(f"Failed to look up image '{image}': {e}") from e

    def pull_image(self, image: str) -> bool:
        """Pull an image. Failure is reported, not raised."""
        logger.info("Pulling image %s", image)
        try:
            self.client.images.pull(image)
            return True
        except docker.errors.APIError as e:
            logger.info("Could not pull image %s: %s", image, e)
            return False

    def build_image(
        self,
        image: str,
        dockerfile: str,
        context_dir: str,
        workdir_path: str,
        build_args: Iterable[str] = (),
    ) -> bool:
        """Build an image, injecting the host user identity as build args.

        Args:
            image: Tag for the image
            dockerfile: Path to the Dockerfile relative to the build context
            context_dir: Path to the build context
            workdir_path: In-container workdir, passed as ``workdir_path``
            build_args: Declared ``KEY=VALUE`` build args

        Returns:
            True if the build succeeded, False otherwise
        """
        identity = self.identity or UserIdentity.current()
        buildargs = {
            "uid": str(identity.uid),
            "gid": str(identity.gid),
            "username": identity.username,
            "workdir_path": workdir_path,
        }
        buildargs.update(parse_key_values(build_args, self.environment or os.environ))

        logger.info("Building image %s from %s in %s", image, dockerfile, context_dir)
        try:
            _, logs = self.client.images.build(
                path=context_dir,
                dockerfile=dockerfile,
                tag=image,
                rm=True,
                buildargs=buildargs,
            )
            for log in logs:
                if 'stream' in log:
                    logger.info(log['stream'].rstrip())
            return True
        except (docker.errors.BuildError, docker.errors.APIError) as e:
            logger.error("Failed to build image %s: %s", image, e)
            return False

    def _find_container(self, name: str, all: bool):
        try:
            containers = self.client.containers.list(all=all, filters={"name": name})
        except docker.errors.APIError as e:
            raise DockerError(f"Failed to list containers: {e}") from e
        # The name filter matches substrings
        for container in containers:
            if container.name == name:
                return container
        return None

    def container_exists(self, name: str) -> bool:
        """Check if a container with exactly this name is running."""
        return self._find_container(name, all=False) is not None

    def container_is_stopped(self, name: str) -> bool:
        """Check if a container with exactly this name exists but is not running."""
        container = self._find_container(name, all=True)
        return container is not None and container.status != "running"

    def get_container_info(self, name: str) -> Optional[ContainerInfo]:
        """Get a fresh snapshot of a container, or None if it does not exist."""
        container = self._find_container(name, all=True)
        if container is None:
            return None
        return ContainerInfo.from_container(container)

    def _existing_container(self, name: str):
        container = self._find_container(name, all=True)
        if container is None:
            raise docker.errors.NotFound(f"No such container: {name}")
        return container

    def start(self, name: str) -> None:
        """Start a stopped container.

        Raises:
            ContainerStartError: If the container cannot be started
        """
        logger.info("Starting container %s", name)
        try:
            self._existing_container(name).start()
        except docker.errors.APIError as e:
            raise ContainerStartError(name, str(e)) from e

    def stop(self, name: str) -> None:
        """Stop a running container.

        Raises:
            ContainerStopError: If the container cannot be stopped
        """
        logger.info("Stopping container %s", name)
        try:
            self._existing_container(name).stop()
        except docker.errors.APIError as e:
            raise ContainerStopError(name, str(e)) from e

    def remove(self, name: str) -> None:
        """Remove a container.

        Raises:
            ContainerRemoveError: If the container cannot be removed
        """
        logger.info("Removing container %s", name)
        try:
            self._existing_container(name).remove()
        except docker.errors.APIError as e:
            raise ContainerRemoveError(name, str(e)) from e

    def command_line(self, args: List[str]) -> str:
        """Render a docker invocation for display."""
        return shlex.join([self.binary, *args])

    def _invoke(self, args: List[str]) -> int:
        cmd = [self.binary, *args]
        logger.debug("Executing: %s", shlex.join(cmd))
        try:
            result = subprocess.run(cmd, env=self.environment)
        except OSError as e:
            raise CommandError(self.binary, str(e)) from e
        if result.returncode < 0:
            # Killed by a signal, no exit code available
            return DEFAULT_EXIT_CODE
        return result.returncode

    def run(self, args: List[str]) -> int:
        """Run ``docker <args>`` with inherited streams and return its exit code.

        Raises:
            CommandError: If the docker binary cannot be executed
        """
        return self._invoke(args)

    def exec_into(self, name: str, args: List[str]) -> int:
        """Run an assembled ``docker exec`` against a running container.

        Raises:
            CommandError: If the docker binary cannot be executed
        """
        logger.info("Executing inside running container %s", name)
        return self._invoke(args)
