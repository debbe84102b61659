"""CLI commands for contain."""
