from pathlib import Path

from skillpack.skills.errors import ValidationErrorKind
from skillpack.skills.loader import SkillLoader
from skillpack.skills.models import Bundle, SkillRecord, Tier
from skillpack.skills.registry import Registry
from skillpack.skills.validator import validate

from conftest import write_skill


def _record(name: str, directory: Path, index: int = 0, references=()) -> SkillRecord:
    return SkillRecord(
        name=name,
        description="d",
        tier=Tier.CORE,
        references=tuple(references),
        declaration_index=index,
        directory=directory,
    )


def test_valid_catalog_has_no_errors(fp_catalog: Path):
    registry = SkillLoader(fp_catalog).load_registry()
    assert validate(registry) == []


def test_duplicate_names_reported_per_pair(tmp_path: Path):
    registry = Registry(
        [
            _record("fp-composition", tmp_path / "a", 0),
            _record("fp-composition", tmp_path / "b", 1),
            _record("fp-composition", tmp_path / "c", 2),
            _record("fp-immutability", tmp_path / "d", 3),
        ]
    )

    errors = validate(registry)

    dupes = [e for e in errors if e.kind is ValidationErrorKind.DUPLICATE_NAME]
    assert len(dupes) == 3
    assert all(e.name == "fp-composition" for e in dupes)
    assert {e.others for e in dupes} == {
        (str(tmp_path / "a"), str(tmp_path / "b")),
        (str(tmp_path / "a"), str(tmp_path / "c")),
        (str(tmp_path / "b"), str(tmp_path / "c")),
    }


def test_duplicate_documents_on_disk(tmp_path: Path):
    root = tmp_path / "skills"
    write_skill(root, "composition-a", name="fp-composition")
    write_skill(root, "composition-b", name="fp-composition")

    registry = SkillLoader(root).load_registry()
    errors = validate(registry)

    assert len(registry.records) == 2
    assert [e.kind for e in errors] == [ValidationErrorKind.DUPLICATE_NAME]
    assert errors[0].name == "fp-composition"


def test_missing_reference_reported_once(tmp_path: Path):
    root = tmp_path / "skills"
    write_skill(root, "fp-composition", references=["references/patterns.md"])

    errors = validate(SkillLoader(root).load_registry())

    assert len(errors) == 1
    assert errors[0].kind is ValidationErrorKind.MISSING_REFERENCE
    assert errors[0].name == "fp-composition"
    assert errors[0].path == "references/patterns.md"


def test_reference_outside_skill_directory_counts_as_missing(tmp_path: Path):
    (tmp_path / "secret.md").write_text("x", encoding="utf-8")
    skill_dir = tmp_path / "skills" / "fp-x"
    skill_dir.mkdir(parents=True)

    registry = Registry([_record("fp-x", skill_dir, references=["../../secret.md"])])

    errors = validate(registry)
    assert [e.kind for e in errors] == [ValidationErrorKind.MISSING_REFERENCE]


def test_all_errors_collected_in_one_pass(tmp_path: Path):
    registry = Registry(
        [
            _record("fp-a", tmp_path / "a", 0, references=["one.md", "two.md"]),
            _record("fp-a", tmp_path / "b", 1),
        ]
    )

    kinds = sorted(e.kind.value for e in validate(registry))
    assert kinds == ["duplicateName", "missingReference", "missingReference"]


def test_validation_does_not_mutate_registry(fp_catalog: Path):
    registry = SkillLoader(fp_catalog).load_registry()
    before = (registry.records, dict(registry.bundles))

    validate(registry)
    validate(registry)

    assert (registry.records, dict(registry.bundles)) == before


def test_bundle_integrity(tmp_path: Path):
    registry = Registry(
        [_record("fp-a", tmp_path)],
        bundles=[
            Bundle(name="good", select=("fp-a", "tier:core")),
            Bundle(name="ghost-member", select=("fp-a", "fp-ghost")),
            Bundle(name="ghost-bundle", select=("bundle:nowhere",)),
            Bundle(name="loop-a", select=("bundle:loop-b",)),
            Bundle(name="loop-b", select=("bundle:loop-a",)),
            Bundle(name="garbage", select=("Not Valid",)),
        ],
    )

    errors = validate(registry)
    by_kind = {}
    for e in errors:
        by_kind.setdefault(e.kind, []).append(e)

    members = by_kind[ValidationErrorKind.UNKNOWN_BUNDLE_MEMBER]
    assert {e.name for e in members} == {"ghost-member", "garbage"}
    assert by_kind[ValidationErrorKind.UNKNOWN_BUNDLE][0].name == "ghost-bundle"

    cycles = by_kind[ValidationErrorKind.BUNDLE_CYCLE]
    assert len(cycles) == 1
    assert cycles[0].others == ("loop-a", "loop-b", "loop-a")
