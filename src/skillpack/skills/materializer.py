"""
Bundle materialization.

Maps a ResolvedBundle back onto full SkillRecords, re-checking each name
against the registry in case it was swapped since resolution.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from skillpack import __version__
from skillpack.skills.errors import MaterializationError
from skillpack.skills.models import ResolvedBundle, SkillRecord
from skillpack.skills.registry import Registry


class Materializer:
    def __init__(self, registry: Registry) -> None:
        if registry is None:
            raise TypeError("Materializer requires a Registry")
        self._registry = registry

    def materialize(self, resolved: ResolvedBundle) -> List[SkillRecord]:
        """
        Return the full records for `resolved`, in the same order.

        Raises:
            MaterializationError: A name is missing from the registry, or repeated
        """
        out: List[SkillRecord] = []
        seen: set[str] = set()
        for name in resolved.names:
            if name in seen:
                raise MaterializationError(MaterializationError.DUPLICATE_SKILL, name)
            record = self._registry.get(name)
            if record is None:
                raise MaterializationError(MaterializationError.MISSING_SKILL, name)
            seen.add(name)
            out.append(record)

        logger.debug(f"Materialized {len(out)} skills")
        return out


def materialize(resolved: ResolvedBundle, registry: Registry) -> List[SkillRecord]:
    return Materializer(registry).materialize(resolved)


def build_manifest(
    records: Iterable[SkillRecord],
    *,
    bundle: Optional[str] = None,
    mode: str = "copy",
) -> Dict[str, Any]:
    """Lock-file payload describing an installation, in install order."""
    skills = []
    for position, record in enumerate(records):
        skills.append(
            {
                "order": position,
                "name": record.name,
                "tier": record.tier.value,
                "description": record.description,
                "references": list(record.references),
                "source": str(record.directory) if record.directory else None,
            }
        )
    return {
        "generator": f"skillpack {__version__}",
        "created_at": datetime.now(timezone.utc).isoformat(),
        "bundle": bundle,
        "mode": mode,
        "count": len(skills),
        "skills": skills,
    }
