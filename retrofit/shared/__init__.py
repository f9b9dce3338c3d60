"""Helpers shared by the backend and the CLI frontend."""
