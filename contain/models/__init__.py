"""Models for contain."""

from .config import ConfigDocument, Configuration, ImageEntry, MountEntry, VarDeclaration
from .container import ContainerInfo
from .options import GlobalOptions

__all__ = [
    'ConfigDocument',
    'Configuration',
    'ImageEntry',
    'MountEntry',
    'VarDeclaration',
    'ContainerInfo',
    'GlobalOptions',
]
