"""
Skill registry.

`Registry` is an immutable snapshot of every loaded skill record and bundle
definition. It is built once and only read afterwards, so any number of
resolutions may share it without locking.

`SkillCatalog` owns the current snapshot. Reloading builds a complete new
Registry first and then swaps the reference, so readers see either the old
catalog or the new one, never a mix.
"""

from __future__ import annotations

import asyncio
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from loguru import logger

from skillpack.skills.errors import LoadError, MalformedSkill, SkillNotFound, SkillpackError
from skillpack.skills.models import Bundle, SkillRecord, SkillSource
from skillpack.skills.parser import parse_source


class Registry:
    def __init__(self, records: Iterable[SkillRecord] = (), bundles: Iterable[Bundle] = ()) -> None:
        self._records: Tuple[SkillRecord, ...] = tuple(records)

        index: Dict[str, SkillRecord] = {}
        for record in self._records:
            # First declaration wins; later duplicates are reported by the validator.
            index.setdefault(record.name, record)
        self._index: Mapping[str, SkillRecord] = MappingProxyType(index)

        bundle_map: Dict[str, Bundle] = {}
        for bundle in bundles:
            bundle_map.setdefault(bundle.name, bundle)
        self._bundles: Mapping[str, Bundle] = MappingProxyType(bundle_map)

    @classmethod
    def load(cls, sources: Iterable[SkillSource], bundles: Iterable[Bundle] = ()) -> "Registry":
        """
        Parse every source document and build a registry.

        Malformed documents do not stop the others from being parsed; all
        failures are raised together as one LoadError.
        """
        records: List[SkillRecord] = []
        failures: List[SkillpackError] = []

        for position, source in enumerate(sources):
            try:
                records.append(parse_source(source, declaration_index=position))
            except MalformedSkill as e:
                logger.warning(f"Malformed skill document {source.label}: {e.detail}")
                failures.append(e)

        if failures:
            raise LoadError(failures)

        registry = cls(records, bundles)
        logger.debug(f"Registry loaded: {len(registry)} skills, {len(registry.bundles)} bundles")
        return registry

    def lookup(self, name: str) -> SkillRecord:
        record = self._index.get(name)
        if record is None:
            raise SkillNotFound(name)
        return record

    def get(self, name: str) -> Optional[SkillRecord]:
        return self._index.get(name)

    def bundle(self, name: str) -> Optional[Bundle]:
        return self._bundles.get(name)

    @property
    def records(self) -> Tuple[SkillRecord, ...]:
        """All records in declaration order, duplicates included."""
        return self._records

    @property
    def names(self) -> List[str]:
        return list(self._index.keys())

    @property
    def bundles(self) -> Mapping[str, Bundle]:
        return self._bundles

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[SkillRecord]:
        return iter(self._records)

    def summary(self) -> List[Dict[str, object]]:
        return [
            {
                "name": r.name,
                "tier": r.tier.value,
                "description": r.description,
                "references": list(r.references),
                "directory": str(r.directory) if r.directory else None,
            }
            for r in self._records
        ]


class SkillCatalog:
    """
    Process-wide handle on the current Registry snapshot.

    `build` is any callable returning a fresh Registry (usually
    `SkillLoader.load_registry`). It runs in a worker thread. Builds are
    serialized by their own lock so snapshots are installed in request order;
    the swap lock is never held during a build.
    """

    def __init__(self, build: Callable[[], Registry]) -> None:
        self._build = build
        self._lock = asyncio.Lock()
        self._build_lock = asyncio.Lock()
        self._registry: Optional[Registry] = None
        self._generation = 0

    async def initialize(self) -> Registry:
        return await self.reload()

    async def reload(self) -> Registry:
        # On failure the previous snapshot stays in place.
        async with self._build_lock:
            registry = await asyncio.to_thread(self._build)
            async with self._lock:
                self._registry = registry
                self._generation += 1
                generation = self._generation
        logger.info(f"Skill catalog loaded (generation {generation}, {len(registry)} skills)")
        return registry

    @property
    def snapshot(self) -> Registry:
        registry = self._registry
        if registry is None:
            raise RuntimeError("SkillCatalog used before initialize()")
        return registry

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def loaded(self) -> bool:
        return self._registry is not None
