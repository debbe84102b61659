"""Core resolution and orchestration logic for contain."""
