"""Configuration models for contain."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.constants import DEFAULT_WORKDIR, KNOWN_FLAGS


class VarDeclaration(BaseModel):
    """An environment variable whose value is the output of a shell command."""
    model_config = ConfigDict(extra="forbid")

    name: str
    command: str


class MountEntry(BaseModel):
    """An extra mount for the container."""
    model_config = ConfigDict(extra="forbid")

    type: str
    src: str
    dst: str
    options: Optional[str] = None


class ImageEntry(BaseModel):
    """One image rule of a configuration document."""
    model_config = ConfigDict(extra="forbid")

    commands: List[str]
    image: str
    dockerfile: str
    name: Optional[str] = None
    default_shell: Optional[str] = None
    env: List[str] = Field(default_factory=list)
    build_args: List[str] = Field(default_factory=list)
    var: List[VarDeclaration] = Field(default_factory=list)
    mounts: List[MountEntry] = Field(default_factory=list)
    ports: List[str] = Field(default_factory=list)
    flags: List[str] = Field(default_factory=list)

    @field_validator("commands", mode="before")
    @classmethod
    def _wrap_single_command(cls, value):
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("flags")
    @classmethod
    def _check_flags(cls, value: List[str]) -> List[str]:
        for flag in value:
            if flag not in KNOWN_FLAGS:
                raise ValueError(
                    f"unknown flag '{flag}', expected one of {', '.join(KNOWN_FLAGS)}"
                )
        return value

    def matches(self, command: Optional[str]) -> bool:
        """Check whether this entry serves the requested command.

        ``None`` stands for "no particular command" and matches every entry.
        """
        if command is None:
            return True
        return command in self.commands or "any" in self.commands


class ConfigDocument(BaseModel):
    """A parsed .contain.yaml document."""
    model_config = ConfigDict(extra="forbid")

    contain_min_version: Optional[str] = None
    images: List[ImageEntry]

    def find_entry(self, command: Optional[str]) -> Optional[Tuple[int, ImageEntry]]:
        """Return the first entry matching the command, in declaration order."""
        for index, entry in enumerate(self.images):
            if entry.matches(command):
                return index, entry
        return None


@dataclass(frozen=True)
class Configuration:
    """Fully resolved configuration for a single invocation."""

    image: str
    dockerfile: str
    root_path: Path
    workdir_path: str = DEFAULT_WORKDIR
    name: Optional[str] = None
    default_shell: Optional[str] = None
    flags: FrozenSet[str] = frozenset()
    env_variables: Tuple[str, ...] = ()
    build_args: Tuple[str, ...] = ()
    extra_mounts: Tuple[str, ...] = ()
    ports: Tuple[str, ...] = ()
    source: Optional[Path] = None
    environment: Dict[str, str] = field(default_factory=dict, repr=False, hash=False)

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags
