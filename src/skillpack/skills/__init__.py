"""
Skills subsystem - discovery, validation, resolution and bundling of skill documents.

Skills are discovered from a source tree:
- One directory per skill: <root>/<name>/SKILL.md
- Optional catalog manifest: <root>/catalog.yaml (tiers + bundles)
"""

from __future__ import annotations

from skillpack.skills.errors import (
    InstallError,
    LoadError,
    MalformedSkill,
    MaterializationError,
    ResolutionError,
    SkillNotFound,
    SkillpackError,
    ValidationError,
    ValidationErrorKind,
)
from skillpack.skills.loader import SkillLoader
from skillpack.skills.materializer import Materializer, materialize
from skillpack.skills.models import Bundle, ResolvedBundle, SkillRecord, SkillSource, Tier
from skillpack.skills.parser import parse_skill
from skillpack.skills.registry import Registry, SkillCatalog
from skillpack.skills.resolver import Resolver, resolve
from skillpack.skills.validator import validate

__all__ = [
    "Bundle",
    "InstallError",
    "LoadError",
    "MalformedSkill",
    "MaterializationError",
    "Materializer",
    "Registry",
    "ResolutionError",
    "ResolvedBundle",
    "Resolver",
    "SkillCatalog",
    "SkillLoader",
    "SkillNotFound",
    "SkillRecord",
    "SkillSource",
    "SkillpackError",
    "Tier",
    "ValidationError",
    "ValidationErrorKind",
    "materialize",
    "parse_skill",
    "resolve",
    "validate",
]
