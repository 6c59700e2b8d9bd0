"""
Skill models (Pydantic).

A `SkillRecord` is the closed, validated form of one SKILL.md document.
Raw front-matter never leaves the parser; everything downstream works on
these records.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Tier(str, Enum):
    """Activation bands, listed in install order."""
    FOUNDATION = "foundation"
    CORE = "core"
    ADVANCED = "advanced"
    UTILITY = "utility"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    @classmethod
    def parse(cls, value: str) -> "Tier":
        v = str(value or "").strip().lower()
        for tier in cls:
            if tier.value == v:
                return tier
        raise ValueError(f"unknown tier: {value!r}")


_TIER_ORDER: List[Tier] = [Tier.FOUNDATION, Tier.CORE, Tier.ADVANCED, Tier.UTILITY]


class SkillRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    tier: Tier = Tier.UTILITY
    body: str = ""
    references: Tuple[str, ...] = ()

    # Position in the registry's load order; ties within a tier break on it.
    declaration_index: int = 0
    directory: Optional[Path] = None

    @property
    def tier_rank(self) -> int:
        return self.tier.rank

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.tier_rank, self.declaration_index)

    def reference_paths(self) -> List[Path]:
        base = self.directory or Path(".")
        return [base / ref for ref in self.references]


def contained_path(base: Path, ref: str) -> Optional[Path]:
    """Resolve `ref` under `base`; None when it points outside of it."""
    root = base.resolve()
    target = (root / ref).resolve()
    if target != root and root not in target.parents:
        return None
    return target


class Bundle(BaseModel):
    """A named set of skills, declared as selector strings (see `selectors`)."""
    model_config = ConfigDict(frozen=True)

    name: str
    label: str = ""
    select: Tuple[str, ...] = Field(default_factory=tuple)
    description: str = ""

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("bundle name cannot be empty")
        return v

    @property
    def display_name(self) -> str:
        return self.label or self.name


@dataclass(frozen=True)
class ResolvedBundle:
    """Ordered, duplicate-free skill names produced by the resolver."""

    names: Tuple[str, ...]
    label: str = ""

    def __iter__(self):
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)

    def __contains__(self, name: object) -> bool:
        return name in self.names


@dataclass(frozen=True)
class SkillSource:
    """One raw skill document as read from disk (or handed in by a caller)."""

    text: str
    directory: Path
    grouping: Optional[str] = None
    origin: Optional[Path] = None

    @property
    def label(self) -> str:
        return str(self.origin or self.directory)
