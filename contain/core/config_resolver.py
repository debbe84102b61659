"""Discovery and resolution of .contain.yaml documents.

The resolver walks from a start directory up to the filesystem root. The
first directory holding a document with an image entry for the requested
command wins. A document that exists but is broken stops the walk.
"""

import logging
import os
import re
import string
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

import yaml
from pydantic import ValidationError

from .. import __version__
from ..models.config import ConfigDocument, Configuration, ImageEntry, MountEntry
from ..services.exceptions import (
    CommandError,
    ConfigInvalidValueError,
    ConfigMissingFieldError,
    ConfigParseError,
    NoConfigFoundError,
    PathError,
    VersionMismatchError,
)
from .constants import CONFIG_FILE_NAME, DEFAULT_WORKDIR, ROOT_PATH_ENV, WORKDIR_ENV

logger = logging.getLogger(__name__)


@dataclass
class ResolutionContext:
    """Environment threaded through one resolution.

    Starts as a copy of the process environment and collects the root marker
    and ``var`` results, so later fields and child processes can see them.
    """

    env: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "ResolutionContext":
        return cls(env=dict(os.environ if environ is None else environ))


class TextScalarLoader(yaml.SafeLoader):
    """SafeLoader that keeps unquoted numbers as the text written.

    ``0.10`` stays ``"0.10"`` and ``22:22`` is not read as a base 60 integer.
    """


TextScalarLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp) for tag, regexp in resolvers
        if tag not in ("tag:yaml.org,2002:int", "tag:yaml.org,2002:float")
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def expand(value: str, env: Mapping[str, str]) -> str:
    """Expand a leading ``~`` and ``$VAR``/``${VAR}`` references from ``env``.

    Unknown variables are left as they are.
    """
    home = env.get("HOME")
    if home and (value == "~" or value.startswith("~/")):
        value = home + value[1:]
    return string.Template(value).safe_substitute(env)


def version_tuple(version: str) -> Tuple[int, ...]:
    """Turn ``1.2.3`` (or ``1.2.3rc1``) into ``(1, 2, 3)``."""
    parts = []
    for part in version.strip().lstrip("v").split("."):
        match = re.match(r"\d+", part)
        if not match:
            break
        parts.append(int(match.group()))
    return tuple(parts)


def format_location(loc) -> str:
    """Format a pydantic error location as ``images[0].mounts[2].src``."""
    path = ""
    for item in loc:
        if isinstance(item, int):
            path += f"[{item}]"
        elif path:
            path += f".{item}"
        else:
            path = str(item)
    return path


def ensure_utf8(path: Path) -> str:
    """Return the path as a string, rejecting paths that are not valid UTF-8.

    Raises:
        PathError: If the path cannot be encoded as UTF-8
    """
    text = str(path)
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise PathError(f"Path is not valid UTF-8: {text!r}", path) from e
    return text


class ConfigResolver:
    """Resolves the configuration for a command by searching upward."""

    def __init__(
        self,
        version: str = __version__,
        environ: Optional[Mapping[str, str]] = None,
        filename: str = CONFIG_FILE_NAME,
    ):
        self.version = version
        self.environ = environ
        self.filename = filename

    def resolve(self, start_dir: Path, command: Optional[str]) -> Configuration:
        """Resolve the configuration for ``command`` starting at ``start_dir``.

        Args:
            start_dir: Directory to start searching from
            command: Requested command, or None to take the first entry

        Returns:
            The resolved configuration

        Raises:
            NoConfigFoundError: If no document up to the root matches
            ConfigError: If the nearest existing document is invalid
            CommandError: If a ``var`` command fails
            PathError: If a path is not valid UTF-8
        """
        start_dir = Path(start_dir).absolute()
        ensure_utf8(start_dir)
        context = ResolutionContext.from_environ(self.environ)

        candidates = [start_dir, *start_dir.parents]
        for directory in candidates:
            context.env[ROOT_PATH_ENV] = str(directory)
            config_path = directory / self.filename
            if not config_path.is_file():
                continue

            logger.debug("Found %s", config_path)
            document = self.load_document(config_path)
            self.check_version(document, config_path)

            found = document.find_entry(command)
            if found is None:
                logger.debug("No image entry for %r in %s", command, config_path)
                continue

            index, entry = found
            logger.debug("Using images[%d] of %s", index, config_path)
            return self.materialize(entry, index, directory, config_path, context)

        raise NoConfigFoundError(command)

    def load_document(self, config_path: Path) -> ConfigDocument:
        """Parse and validate one document.

        Raises:
            ConfigParseError: If the file is not a YAML mapping
            ConfigMissingFieldError: If a required field is missing
            ConfigInvalidValueError: If a field has the wrong shape
        """
        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.load(f, Loader=TextScalarLoader)
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigParseError(f"cannot read file: {e}", config_path) from e
        except yaml.YAMLError as e:
            raise ConfigParseError(f"invalid YAML: {e}", config_path) from e

        if not isinstance(data, dict):
            raise ConfigParseError("expected a mapping at the top level", config_path)

        try:
            return ConfigDocument.model_validate(data)
        except ValidationError as e:
            error = e.errors()[0]
            location = format_location(error["loc"])
            if error["type"] == "missing":
                raise ConfigMissingFieldError(location, config_path) from e
            raise ConfigInvalidValueError(
                location, error.get("input"), error["msg"], config_path
            ) from e

    def check_version(self, document: ConfigDocument, config_path: Path) -> None:
        """Refuse documents that need a newer contain.

        Raises:
            VersionMismatchError: If this version is lower than required
            ConfigInvalidValueError: If the required version is unreadable
        """
        required = document.contain_min_version
        if not required:
            return
        required_tuple = version_tuple(required)
        if not required_tuple:
            raise ConfigInvalidValueError(
                "contain_min_version", required, "not a version number", config_path
            )
        if version_tuple(self.version) < required_tuple:
            raise VersionMismatchError(required, self.version, config_path)

    def run_variable_command(self, name: str, command: str, cwd: Path, context: ResolutionContext) -> str:
        """Run a ``var`` command and return its trimmed output.

        Raises:
            CommandError: If the command cannot run or exits non-zero
        """
        logger.debug("Resolving variable %s with: %s", name, command)
        try:
            result = subprocess.run(
                command,
                shell=True,
                cwd=cwd,
                env=context.env,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise CommandError(command, str(e)) from e
        if result.returncode != 0:
            stderr = result.stderr.strip()
            message = f"exited with code {result.returncode}"
            if stderr:
                message += f": {stderr}"
            raise CommandError(command, message)
        return result.stdout.strip()

    def format_mount(self, mount: MountEntry, root: Path, env: Mapping[str, str]) -> str:
        src = expand(mount.src, env)
        dst = expand(mount.dst, env)
        if mount.type == "bind" and not os.path.isabs(src):
            src = str(root / src)
        spec = f"type={mount.type},src={src},dst={dst}"
        if mount.options:
            spec += f",{expand(mount.options, env)}"
        return spec

    def materialize(
        self,
        entry: ImageEntry,
        index: int,
        root: Path,
        config_path: Path,
        context: ResolutionContext,
    ) -> Configuration:
        """Build the resolved configuration from a matching entry."""
        for declaration in entry.var:
            context.env[declaration.name] = self.run_variable_command(
                declaration.name, declaration.command, root, context
            )

        env = context.env
        workdir_path = env.get(WORKDIR_ENV) or DEFAULT_WORKDIR
        if not workdir_path.startswith("/"):
            raise ConfigInvalidValueError(
                WORKDIR_ENV, workdir_path, "must be an absolute path"
            )

        image = expand(entry.image, env)
        if not image:
            raise ConfigInvalidValueError(
                f"images[{index}].image", entry.image, "empty after expansion", config_path
            )

        mounts: List[str] = [self.format_mount(mount, root, env) for mount in entry.mounts]
        return Configuration(
            image=image,
            dockerfile=expand(entry.dockerfile, env),
            root_path=root,
            workdir_path=workdir_path,
            name=expand(entry.name, env) if entry.name else None,
            default_shell=expand(entry.default_shell, env) if entry.default_shell else None,
            flags=frozenset(entry.flags),
            env_variables=tuple(expand(item, env) for item in entry.env),
            build_args=tuple(expand(item, env) for item in entry.build_args),
            extra_mounts=tuple(mounts),
            ports=tuple(expand(item, env) for item in entry.ports),
            source=config_path,
            environment=dict(env),
        )
