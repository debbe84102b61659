"""Custom exceptions for contain."""

from pathlib import Path
from typing import Optional, Union


class ContainError(Exception):
    """Base exception for all contain errors."""

    pass


class ConfigError(ContainError):
    """Exception raised for an invalid configuration document."""

    def __init__(self, message: str, file: Optional[Union[str, Path]] = None):
        self.file = str(file) if file is not None else None
        if self.file:
            message = f"{self.file}: {message}"
        super().__init__(message)


class ConfigParseError(ConfigError):
    """Exception raised when a configuration document cannot be parsed."""

    pass


class ConfigMissingFieldError(ConfigError):
    """Exception raised when a required field is missing."""

    def __init__(self, field: str, file: Optional[Union[str, Path]] = None):
        self.field = field
        super().__init__(f"missing required field '{field}'", file)


class ConfigInvalidValueError(ConfigError):
    """Exception raised when a field holds an invalid value."""

    def __init__(self, field: str, value, reason: str = "", file: Optional[Union[str, Path]] = None):
        self.field = field
        self.value = value
        message = f"invalid value {value!r} for field '{field}'"
        if reason:
            message += f" ({reason})"
        super().__init__(message, file)


class VersionMismatchError(ConfigError):
    """Exception raised when the document requires a newer contain."""

    def __init__(self, required: str, running: str, file: Optional[Union[str, Path]] = None):
        self.required = required
        self.running = running
        super().__init__(
            f"requires contain {required} or newer, but this is contain {running}", file
        )


class NoConfigFoundError(ConfigError):
    """Exception raised when no document in the tree matches the command."""

    def __init__(self, command: Optional[str]):
        self.command = command
        if command:
            message = f"No image found for '{command}' in .contain.yaml or any directory above"
        else:
            message = "No .contain.yaml found in this directory or any directory above"
        super().__init__(message)


class PathError(ContainError):
    """Exception raised for paths that cannot be used."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        self.path = path
        super().__init__(message)


class CommandError(ContainError):
    """Exception raised when an external command cannot be executed."""

    def __init__(self, command: str, message: str):
        self.command = command
        super().__init__(f"Failed to execute '{command}': {message}")


class DockerError(ContainError):
    """Exception raised when Docker reports a failure."""

    pass


class LifecycleError(ContainError):
    """Exception raised for container lifecycle operations."""

    pass


class NameRequiredError(LifecycleError):
    """Exception raised when a named container is required."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(
            f"'{action}' requires a 'name' in the matching .contain.yaml image entry"
        )


class ContainerAlreadyRunningError(LifecycleError):
    """Exception raised when a container is already running."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Container '{name}' is already running")


class InsideContainerError(LifecycleError):
    """Exception raised when an action cannot be done from inside a container."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Cannot run '{action}' from inside a container")


class ContainerStartError(LifecycleError):
    """Exception raised when a container cannot be started."""

    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(f"Failed to start container '{name}': {reason}")


class ContainerStopError(LifecycleError):
    """Exception raised when a container cannot be stopped."""

    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(f"Failed to stop container '{name}': {reason}")


class ContainerRemoveError(LifecycleError):
    """Exception raised when a container cannot be removed."""

    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(f"Failed to remove container '{name}': {reason}")


class ImageBuildFailedError(LifecycleError):
    """Exception raised when an image can be neither found, pulled nor built."""

    def __init__(self, image: str):
        self.image = image
        super().__init__(f"Image '{image}' could not be found, pulled or built")


class UnsupportedParameterError(ContainError):
    """Exception raised for malformed command line parameters."""

    def __init__(self, parameter: str, reason: str):
        self.parameter = parameter
        super().__init__(f"Unsupported parameter '{parameter}': {reason}")
