"""
Registry integrity checks.

Every check runs to completion and all findings are returned together; an
empty list means the registry is valid. Nothing here mutates the registry.
"""

from __future__ import annotations

from collections import defaultdict
from itertools import combinations
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from loguru import logger

from skillpack.skills.errors import ValidationError, ValidationErrorKind
from skillpack.skills.models import SkillRecord, contained_path
from skillpack.skills.registry import Registry
from skillpack.skills.selectors import (
    BundleSelector,
    ExplicitSelector,
    Selector,
    parse_selector,
)


def check_duplicate_names(registry: Registry) -> List[ValidationError]:
    by_name: Dict[str, List[SkillRecord]] = defaultdict(list)
    for record in registry.records:
        by_name[record.name].append(record)

    errors: List[ValidationError] = []
    for name, records in by_name.items():
        for first, second in combinations(records, 2):
            errors.append(
                ValidationError(
                    kind=ValidationErrorKind.DUPLICATE_NAME,
                    name=name,
                    detail=f"declared in {first.directory} and {second.directory}",
                    others=(str(first.directory), str(second.directory)),
                )
            )
    return errors


def _reference_exists(directory: Path, ref: str) -> bool:
    target = contained_path(directory, ref)
    return target is not None and target.exists()


def check_references(registry: Registry) -> List[ValidationError]:
    errors: List[ValidationError] = []
    for record in registry.records:
        directory = record.directory or Path(".")
        for ref in record.references:
            if not _reference_exists(directory, ref):
                errors.append(
                    ValidationError(
                        kind=ValidationErrorKind.MISSING_REFERENCE,
                        name=record.name,
                        path=ref,
                        detail=f"not found under {directory}",
                    )
                )
    return errors


def _try_parse(item: str) -> Optional[Selector]:
    try:
        return parse_selector(item)
    except ValueError:
        return None


def _bundle_edges(registry: Registry) -> Dict[str, List[str]]:
    edges: Dict[str, List[str]] = {}
    for name, bundle in registry.bundles.items():
        refs: List[str] = []
        for item in bundle.select:
            sel = _try_parse(item)
            if isinstance(sel, BundleSelector):
                refs.append(sel.bundle)
        edges[name] = refs
    return edges


def _find_cycles(edges: Dict[str, List[str]]) -> List[Tuple[str, ...]]:
    cycles: List[Tuple[str, ...]] = []
    reported: Set[frozenset] = set()
    done: Set[str] = set()

    def visit(node: str, path: List[str]) -> None:
        if node in path:
            cycle = tuple(path[path.index(node):]) + (node,)
            key = frozenset(cycle)
            if key not in reported:
                reported.add(key)
                cycles.append(cycle)
            return
        if node in done or node not in edges:
            return
        path.append(node)
        for nxt in edges[node]:
            visit(nxt, path)
        path.pop()
        done.add(node)

    for start in edges:
        visit(start, [])
    return cycles


def check_bundles(registry: Registry) -> List[ValidationError]:
    errors: List[ValidationError] = []
    for name, bundle in registry.bundles.items():
        for item in bundle.select:
            sel = _try_parse(item)
            if sel is None:
                errors.append(
                    ValidationError(
                        kind=ValidationErrorKind.UNKNOWN_BUNDLE_MEMBER,
                        name=name,
                        detail=f"unrecognized selector {item!r}",
                        others=(item,),
                    )
                )
                continue
            if isinstance(sel, ExplicitSelector):
                for member in sel.names:
                    if member not in registry:
                        errors.append(
                            ValidationError(
                                kind=ValidationErrorKind.UNKNOWN_BUNDLE_MEMBER,
                                name=name,
                                detail=f"member '{member}' is not a loaded skill",
                                others=(member,),
                            )
                        )
            elif isinstance(sel, BundleSelector) and registry.bundle(sel.bundle) is None:
                errors.append(
                    ValidationError(
                        kind=ValidationErrorKind.UNKNOWN_BUNDLE,
                        name=name,
                        detail=f"references undefined bundle '{sel.bundle}'",
                        others=(sel.bundle,),
                    )
                )

    for cycle in _find_cycles(_bundle_edges(registry)):
        errors.append(
            ValidationError(
                kind=ValidationErrorKind.BUNDLE_CYCLE,
                name=cycle[0],
                detail=" -> ".join(cycle),
                others=cycle,
            )
        )
    return errors


def validate(registry: Registry) -> List[ValidationError]:
    """Run every check and return all findings (empty when valid)."""
    if registry is None:
        raise TypeError("validate() requires a Registry")

    errors = check_duplicate_names(registry) + check_references(registry) + check_bundles(registry)
    if errors:
        logger.warning(f"Validation found {len(errors)} problem(s)")
    else:
        logger.debug(f"Validation passed for {len(registry)} skills")
    return errors
