"""Global command line options."""

from dataclasses import dataclass
from typing import Iterable, Tuple

from ..services.exceptions import UnsupportedParameterError


@dataclass(frozen=True)
class GlobalOptions:
    """Options derived once from the command line."""

    interactive: bool = False
    keep_container: bool = False
    run_as_root: bool = False
    dry_run: bool = False
    skip_ports: bool = False
    skip_name: bool = False
    cli_env_variables: Tuple[str, ...] = ()

    @classmethod
    def create(cls, env_variables: Iterable[str] = (), **kwargs) -> "GlobalOptions":
        """Create options, validating ``-e`` entries.

        Raises:
            UnsupportedParameterError: If an entry has no variable name
        """
        entries = tuple(env_variables)
        for entry in entries:
            key = entry.split("=", 1)[0]
            if not key or key != key.strip():
                raise UnsupportedParameterError(
                    f"-e {entry}", "expected KEY=VALUE or KEY"
                )
        return cls(cli_env_variables=entries, **kwargs)
