"""Detection of, and execution from, an already containerized environment."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence

from .constants import (
    DEFAULT_EXIT_CODE,
    DOCKER_MARKER_FILE,
    EXEC_FAILED_EXIT_CODE,
    FALSY_VALUES,
    PASSTHROUGH_ENV,
    PODMAN_MARKER_FILE,
    TRUTHY_VALUES,
)

logger = logging.getLogger(__name__)


class PassthroughGuard:
    """Bypasses containerization when contain already runs inside a container.

    A tool running in a container may call contain again; running the target
    directly avoids nesting containers.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        marker_files: Sequence[str] = (DOCKER_MARKER_FILE, PODMAN_MARKER_FILE),
    ):
        self.environ = environ if environ is not None else os.environ
        self.marker_files = marker_files

    def is_active(self) -> bool:
        """Check the override variable first, then the engine marker files."""
        override = self.environ.get(PASSTHROUGH_ENV)
        if override is not None:
            value = override.strip().lower()
            if value in TRUTHY_VALUES:
                logger.debug("Passthrough forced on by %s", PASSTHROUGH_ENV)
                return True
            if value in FALSY_VALUES:
                logger.debug("Passthrough forced off by %s", PASSTHROUGH_ENV)
                return False
            logger.debug("Ignoring unrecognized %s=%s", PASSTHROUGH_ENV, override)

        for marker in self.marker_files:
            if Path(marker).exists():
                logger.debug("Found container marker %s", marker)
                return True
        return False

    def execute(self, argv: List[str], env_variables: Iterable[str] = ()) -> int:
        """Run the target command directly and return its exit code.

        ``KEY=VALUE`` entries from ``-e`` are applied on top of the current
        environment. A bare ``KEY`` keeps the current value.
        """
        env = dict(self.environ)
        for entry in env_variables:
            key, sep, value = entry.partition("=")
            if sep:
                env[key] = value

        logger.debug("Passthrough: executing %s", argv)
        try:
            result = subprocess.run(argv, env=env)
        except OSError as e:
            logger.error("Could not execute %s: %s", argv[0], e)
            return EXEC_FAILED_EXIT_CODE
        if result.returncode < 0:
            return DEFAULT_EXIT_CODE
        return result.returncode
