"""Helpers for SDK installation, go.work workspaces, releases, archives and self-management."""

__version__ = "0.1.0"