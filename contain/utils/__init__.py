"""Utility modules for contain."""

from .user import UserIdentity

__all__ = ['UserIdentity']
