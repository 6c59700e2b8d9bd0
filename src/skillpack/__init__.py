"""
skillpack - Skill catalog resolution and bundling for agent runtimes

Loads declarative SKILL.md documents, validates the catalog, resolves named
bundles into tier-ordered skill lists and materializes them for installation.
"""

from __future__ import annotations

__version__ = "0.1.0"
__author__ = "skillpack contributors"

__all__ = ["__version__"]
