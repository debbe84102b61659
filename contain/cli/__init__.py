"""CLI module for contain."""
