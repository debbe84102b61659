"""Contain - Run your development tools inside containers."""

__version__ = "0.4.0"

# Export main CLI for convenience
from .cli.main import cli

__all__ = ['cli']
