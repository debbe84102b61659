"""Service layer for abstracting Docker operations."""

from .docker_service import DockerService
from .exceptions import (
    CommandError,
    ConfigError,
    ContainError,
    DockerError,
    LifecycleError,
    PathError,
)

__all__ = [
    "DockerService",
    "CommandError",
    "ConfigError",
    "ContainError",
    "DockerError",
    "LifecycleError",
    "PathError",
]
