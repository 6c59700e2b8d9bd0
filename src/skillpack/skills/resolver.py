"""
Bundle resolution.

Turns a selector into an ordered, duplicate-free list of skill names.
Output order is tier rank ascending, then declaration order within a tier:
installers rely on foundation skills arriving before the tiers that build
on them.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Union

from loguru import logger

from skillpack.skills.errors import ResolutionError
from skillpack.skills.models import ResolvedBundle, SkillRecord
from skillpack.skills.registry import Registry
from skillpack.skills.selectors import (
    BundleSelector,
    ExplicitSelector,
    Selector,
    TierSelector,
    UnionSelector,
    parse_selector,
    parse_selectors,
)


class Resolver:
    def __init__(self, registry: Registry) -> None:
        if registry is None:
            raise TypeError("Resolver requires a Registry")
        self._registry = registry

    def resolve(self, selector: Union[Selector, Sequence[str], str], *, label: str = "") -> ResolvedBundle:
        """
        Resolve a selector against the registry.

        Args:
            selector: A Selector, a selector string, or a list of selector strings (union)
            label: Optional display label carried on the result

        Returns:
            ResolvedBundle with unique names in install order

        Raises:
            ResolutionError: Unknown skill or bundle, or a bundle reference cycle
        """
        if isinstance(selector, str):
            selector = [selector]
        if isinstance(selector, (list, tuple)):
            selector = self._parse(selector)

        records = self._collect(selector, [])
        names = tuple(r.name for r in _order(records))
        logger.debug(f"Resolved {selector} -> {len(names)} skills")
        return ResolvedBundle(names=names, label=label)

    def resolve_bundle(self, name: str) -> ResolvedBundle:
        bundle = self._registry.bundle(name)
        if bundle is None:
            raise ResolutionError(ResolutionError.UNKNOWN_BUNDLE, name=name)
        return self.resolve(BundleSelector(name), label=bundle.display_name)

    @staticmethod
    def _parse(items: Iterable[str]) -> Selector:
        items = list(items)
        for item in items:
            try:
                parse_selector(item)
            except ValueError as e:
                raise ResolutionError(ResolutionError.UNKNOWN_SKILL, name=str(item).strip()) from e
        return parse_selectors(items)

    def _collect(self, selector: Selector, visiting: List[str]) -> List[SkillRecord]:
        if isinstance(selector, ExplicitSelector):
            out: List[SkillRecord] = []
            for name in selector.names:
                record = self._registry.get(name)
                if record is None:
                    raise ResolutionError(ResolutionError.UNKNOWN_SKILL, name=name)
                out.append(record)
            return out

        if isinstance(selector, TierSelector):
            return [
                r for r in self._registry.records
                if selector.matches(r.tier) and self._registry.get(r.name) is r
            ]

        if isinstance(selector, UnionSelector):
            out = []
            for part in selector.parts:
                out.extend(_order(self._collect(part, visiting)))
            return out

        if isinstance(selector, BundleSelector):
            name = selector.bundle
            if name in visiting:
                path = visiting[visiting.index(name):] + [name]
                raise ResolutionError(ResolutionError.CYCLE, name=name, path=path)
            bundle = self._registry.bundle(name)
            if bundle is None:
                raise ResolutionError(ResolutionError.UNKNOWN_BUNDLE, name=name)
            visiting.append(name)
            try:
                return self._collect(self._parse(bundle.select), visiting)
            finally:
                visiting.pop()

        raise TypeError(f"unsupported selector: {selector!r}")


def _order(records: Iterable[SkillRecord]) -> List[SkillRecord]:
    seen: set[str] = set()
    unique: List[SkillRecord] = []
    for record in records:
        if record.name in seen:
            continue
        seen.add(record.name)
        unique.append(record)
    # sorted() is stable, so equal keys keep first-occurrence order.
    return sorted(unique, key=lambda r: r.sort_key)


def resolve(selector: Union[Selector, Sequence[str], str], registry: Registry, *, label: str = "") -> ResolvedBundle:
    return Resolver(registry).resolve(selector, label=label)


def resolve_bundle(name: str, registry: Registry) -> ResolvedBundle:
    return Resolver(registry).resolve_bundle(name)
