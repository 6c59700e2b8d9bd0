from pathlib import Path

import pytest

from skillpack.skills.errors import ResolutionError
from skillpack.skills.loader import SkillLoader
from skillpack.skills.models import Bundle, SkillRecord, Tier
from skillpack.skills.registry import Registry
from skillpack.skills.resolver import Resolver, resolve, resolve_bundle
from skillpack.skills.selectors import (
    BundleSelector,
    ExplicitSelector,
    TierSelector,
    UnionSelector,
    parse_selector,
    parse_selectors,
)


@pytest.fixture
def registry(fp_catalog: Path) -> Registry:
    return SkillLoader(fp_catalog).load_registry()


def test_full_core_puts_foundation_first(registry: Registry):
    resolved = resolve_bundle("full-core", registry)

    assert resolved.label == "Full Core"
    assert list(resolved.names) == [
        "functional-coding",
        "fp-error-handling",
        "fp-composition",
        "fp-immutability",
    ]


def test_explicit_list_is_returned_in_install_order(registry: Registry):
    resolved = resolve(["fp-immutability", "functional-coding", "fp-composition"], registry)
    assert list(resolved.names) == ["functional-coding", "fp-composition", "fp-immutability"]


def test_cumulative_tier_rule(registry: Registry):
    resolved = resolve("tier<=advanced", registry)
    assert list(resolved.names) == [
        "functional-coding",
        "fp-error-handling",
        "fp-composition",
        "fp-immutability",
        "fp-effects",
    ]
    assert "fp-cheatsheet" in resolve("tier<=utility", registry)
    assert list(resolve("tier:utility", registry).names) == ["fp-cheatsheet"]


def test_overlapping_union_keeps_each_skill_once(registry: Registry):
    resolved = resolve(["tier:core", "fp-composition", "tier<=core", "functional-coding"], registry)

    names = list(resolved.names)
    assert names.count("fp-composition") == 1
    assert names.count("functional-coding") == 1
    assert names == ["functional-coding", "fp-error-handling", "fp-composition", "fp-immutability"]


def test_nested_bundles(registry: Registry):
    complete = resolve_bundle("complete", registry)
    assert list(complete.names) == [
        "functional-coding",
        "fp-error-handling",
        "fp-composition",
        "fp-immutability",
        "fp-effects",
    ]


def test_resolution_is_deterministic(registry: Registry):
    resolver = Resolver(registry)
    first = resolver.resolve_bundle("complete")
    second = resolver.resolve_bundle("complete")
    assert first == second


def test_unknown_skill_fails_without_partial_output(registry: Registry):
    with pytest.raises(ResolutionError) as exc:
        resolve(["functional-coding", "fp-nonexistent"], registry)

    assert exc.value.kind == ResolutionError.UNKNOWN_SKILL
    assert exc.value.name == "fp-nonexistent"


def test_unparseable_selector_names_offending_item(registry: Registry):
    with pytest.raises(ResolutionError) as exc:
        resolve(["functional-coding", "Not_A_Skill"], registry)
    assert exc.value.name == "Not_A_Skill"


def test_unknown_bundle(registry: Registry):
    with pytest.raises(ResolutionError) as exc:
        resolve_bundle("nope", registry)
    assert exc.value.kind == ResolutionError.UNKNOWN_BUNDLE

    with pytest.raises(ResolutionError):
        resolve("bundle:nope", registry)


def test_bundle_cycle_is_detected(tmp_path: Path):
    registry = Registry(
        [SkillRecord(name="fp-a", description="d", directory=tmp_path)],
        bundles=[
            Bundle(name="a", select=("fp-a", "bundle:b")),
            Bundle(name="b", select=("bundle:c",)),
            Bundle(name="c", select=("bundle:a",)),
        ],
    )

    with pytest.raises(ResolutionError) as exc:
        resolve_bundle("a", registry)

    assert exc.value.kind == ResolutionError.CYCLE
    assert exc.value.path == ("a", "b", "c", "a")


def test_repeated_bundle_reference_is_not_a_cycle(tmp_path: Path):
    registry = Registry(
        [SkillRecord(name="fp-a", description="d", tier=Tier.CORE, directory=tmp_path)],
        bundles=[
            Bundle(name="base", select=("fp-a",)),
            Bundle(name="twice", select=("bundle:base", "bundle:base")),
        ],
    )
    assert list(resolve_bundle("twice", registry).names) == ["fp-a"]


def test_duplicate_records_resolve_to_first_declaration(tmp_path: Path):
    registry = Registry(
        [
            SkillRecord(name="fp-a", description="first", tier=Tier.CORE, declaration_index=0, directory=tmp_path),
            SkillRecord(name="fp-a", description="second", tier=Tier.CORE, declaration_index=1, directory=tmp_path),
        ]
    )
    assert list(resolve("tier:core", registry).names) == ["fp-a"]


def test_selector_parsing():
    assert parse_selector("fp-composition") == ExplicitSelector(("fp-composition",))
    assert parse_selector("tier:core") == TierSelector(Tier.CORE)
    assert parse_selector("tier<=core") == TierSelector(Tier.CORE, cumulative=True)
    assert parse_selector("bundle:full-core") == BundleSelector("full-core")

    union = parse_selectors(["fp-a", "fp-b", "tier:core"])
    assert union == UnionSelector((ExplicitSelector(("fp-a", "fp-b")), TierSelector(Tier.CORE)))

    for bad in ["", "tier:expert", "bundle:", "Has Spaces"]:
        with pytest.raises(ValueError):
            parse_selector(bad)
