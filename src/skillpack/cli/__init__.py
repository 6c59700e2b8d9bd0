"""
skillpack CLI - Command Line Interface

Provides the `skillpack` command for listing, validating, resolving and
installing skill bundles.
"""

from .commands import EXIT_IO, EXIT_OK, EXIT_RESOLUTION, EXIT_VALIDATION, cli, main

__all__ = ["cli", "main", "EXIT_OK", "EXIT_VALIDATION", "EXIT_RESOLUTION", "EXIT_IO"]
