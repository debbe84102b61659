"""Assembly of docker command line arguments."""

from pathlib import Path, PurePosixPath
from typing import List, Optional, Sequence

from ..models.config import Configuration
from ..models.options import GlobalOptions
from ..services.exceptions import PathError
from ..utils.user import UserIdentity
from .config_resolver import ensure_utf8


class ArgumentAssembler:
    """Builds ordered ``docker run`` and ``docker exec`` arguments.

    Flags from the command line and flags from the configuration are
    combined; either source can turn a behavior on.
    """

    def __init__(
        self,
        config: Configuration,
        options: GlobalOptions,
        cwd: Path,
        identity: Optional[UserIdentity] = None,
    ):
        self.config = config
        self.options = options
        self.cwd = Path(cwd)
        self.identity = identity or UserIdentity.current()

    @property
    def run_as_root(self) -> bool:
        return self.options.run_as_root or self.config.has_flag("root")

    @property
    def keep_container(self) -> bool:
        return self.options.keep_container or self.config.has_flag("k")

    @property
    def interactive(self) -> bool:
        return self.options.interactive or self.config.has_flag("i")

    @property
    def privileged(self) -> bool:
        return self.config.has_flag("privileged")

    def container_workdir(self) -> str:
        """Map the invoking directory into the container.

        Raises:
            PathError: If the invoking directory is not under the resolved root
        """
        cwd = Path(ensure_utf8(self.cwd.absolute()))
        root = Path(ensure_utf8(self.config.root_path.absolute()))
        try:
            relative = cwd.relative_to(root)
        except ValueError as e:
            raise PathError(
                f"Current directory {cwd} is not inside {root}", cwd
            ) from e
        return str(PurePosixPath(self.config.workdir_path) / relative.as_posix())

    def workspace_mount(self) -> str:
        root = ensure_utf8(self.config.root_path.absolute())
        return f"type=bind,src={root},dst={self.config.workdir_path}"

    def _user_args(self) -> List[str]:
        if self.run_as_root:
            return []
        return ['-u', self.identity.user_mapping]

    def _session_args(self) -> List[str]:
        args = []
        if self.interactive:
            args.append('-it')
        if self.privileged:
            args.append('--privileged')
        args.extend(['-w', self.container_workdir()])
        for variable in (*self.config.env_variables, *self.options.cli_env_variables):
            args.extend(['-e', variable])
        return args

    def run_args(self, command: str, args: Sequence[str] = (), detached: bool = False) -> List[str]:
        """Arguments for a new container running ``command``.

        A detached container is always named and never removed on exit.
        """
        docker_args = ['run']
        if detached:
            docker_args.append('-d')

        name = self.config.name
        if name and (detached or not self.options.skip_name):
            docker_args.extend(['--name', name])

        docker_args.extend(self._user_args())
        if not detached and not self.keep_container:
            docker_args.append('--rm')
        docker_args.extend(self._session_args())

        docker_args.extend(['--mount', self.workspace_mount()])
        for mount in self.config.extra_mounts:
            docker_args.extend(['--mount', mount])

        if not self.options.skip_ports:
            for port in self.config.ports:
                docker_args.extend(['-p', port])

        docker_args.append(self.config.image)
        docker_args.append(command)
        docker_args.extend(args)
        return docker_args

    def exec_args(self, command: str, args: Sequence[str] = ()) -> List[str]:
        """Arguments for running ``command`` inside the named container."""
        if not self.config.name:
            raise ValueError("exec requires a named container")
        docker_args = ['exec']
        docker_args.extend(self._user_args())
        docker_args.extend(self._session_args())
        docker_args.append(self.config.name)
        docker_args.append(command)
        docker_args.extend(args)
        return docker_args
