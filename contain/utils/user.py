"""Host user identity."""

import os
import pwd
from dataclasses import dataclass

from ..core.constants import DEFAULT_USERNAME


@dataclass(frozen=True)
class UserIdentity:
    """Numeric ids and name of the invoking host user."""

    uid: int
    gid: int
    username: str

    @classmethod
    def current(cls) -> "UserIdentity":
        """Get the identity of the current process user."""
        uid = os.getuid()
        try:
            username = pwd.getpwuid(uid).pw_name
        except KeyError:
            # uid without a passwd entry, e.g. `docker run -u 1234`
            username = DEFAULT_USERNAME
        return cls(uid=uid, gid=os.getgid(), username=username)

    @property
    def user_mapping(self) -> str:
        return f"{self.uid}:{self.gid}"
