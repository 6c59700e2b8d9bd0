"""
Bundle member selectors.

Textual syntax used in catalog.yaml and on the command line:

    fp-composition        explicit skill
    tier:core             every skill of exactly that tier
    tier<=core            every skill whose tier rank is <= core's
    bundle:full-core      another bundle's selection

A bundle's `select` list is the union of its entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

from skillpack.skills.models import Tier
from skillpack.skills.parser import NAME_RE


@dataclass(frozen=True)
class ExplicitSelector:
    names: Tuple[str, ...]

    def __str__(self) -> str:
        return ",".join(self.names)


@dataclass(frozen=True)
class TierSelector:
    tier: Tier
    cumulative: bool = False

    def __str__(self) -> str:
        op = "<=" if self.cumulative else ":"
        return f"tier{op}{self.tier.value}"

    def matches(self, tier: Tier) -> bool:
        if self.cumulative:
            return tier.rank <= self.tier.rank
        return tier is self.tier


@dataclass(frozen=True)
class BundleSelector:
    bundle: str

    def __str__(self) -> str:
        return f"bundle:{self.bundle}"


@dataclass(frozen=True)
class UnionSelector:
    parts: Tuple["Selector", ...]

    def __str__(self) -> str:
        return " | ".join(str(p) for p in self.parts)


Selector = Union[ExplicitSelector, TierSelector, BundleSelector, UnionSelector]


def parse_selector(text: str) -> Selector:
    """Parse one selector string. Raises ValueError on unknown syntax."""
    s = str(text or "").strip()
    if not s:
        raise ValueError("empty selector")

    if s.startswith("tier<="):
        return TierSelector(Tier.parse(s[len("tier<="):]), cumulative=True)
    if s.startswith("tier:"):
        return TierSelector(Tier.parse(s[len("tier:"):]))
    if s.startswith("bundle:"):
        name = s[len("bundle:"):].strip()
        if not name:
            raise ValueError(f"bundle selector needs a name: {text!r}")
        return BundleSelector(name)
    if NAME_RE.match(s):
        return ExplicitSelector((s,))
    raise ValueError(f"unrecognized selector: {text!r}")


def parse_selectors(items: Iterable[str]) -> Selector:
    """Parse several selector strings into their union.

    Consecutive explicit names are merged into one ExplicitSelector.
    """
    parts: List[Selector] = []
    for item in items:
        sel = parse_selector(item)
        if isinstance(sel, ExplicitSelector) and parts and isinstance(parts[-1], ExplicitSelector):
            parts[-1] = ExplicitSelector(parts[-1].names + sel.names)
        else:
            parts.append(sel)

    if not parts:
        return ExplicitSelector(())
    if len(parts) == 1:
        return parts[0]
    return UnionSelector(tuple(parts))
