import sys
from pathlib import Path

import pytest


def pytest_configure():
    # Ensure `src/` is on sys.path so `import skillpack` works without an editable install.
    root = Path(__file__).resolve().parent.parent
    src = root / "src"
    if src.exists():
        p = str(src)
        if p not in sys.path:
            sys.path.insert(0, p)


def write_skill(root: Path, dirname: str, *, name=None, description="A skill.", tier=None, references=None, body="Body."):
    """Create <root>/<dirname>/SKILL.md and return its directory."""
    skill_dir = root / dirname
    skill_dir.mkdir(parents=True, exist_ok=True)
    lines = ["---", f"name: {name or dirname}"]
    if description is not None:
        lines.append(f"description: {description}")
    if tier:
        lines.append(f"tier: {tier}")
    if references is not None:
        lines.append("references:")
        lines.extend(f"  - {r}" for r in references)
    lines += ["---", "", body, ""]
    (skill_dir / "SKILL.md").write_text("\n".join(lines), encoding="utf-8")
    return skill_dir


CATALOG_YAML = """\
tiers:
  foundation: [functional-coding]
  core: [fp-error-handling, fp-composition, fp-immutability]
  advanced: [fp-effects]
bundles:
  essentials:
    label: Essentials
    select: [functional-coding, fp-error-handling]
  full-core:
    label: Full Core
    select: ["tier:foundation", "tier:core"]
  complete:
    label: Complete
    select: ["bundle:full-core", "tier<=advanced"]
"""


@pytest.fixture
def fp_catalog(tmp_path: Path) -> Path:
    """A small skill tree modelled on a functional-programming skill set."""
    root = tmp_path / "skills"
    write_skill(root, "functional-coding", description="Core FP vocabulary.")
    write_skill(root, "fp-error-handling", description="Errors as values.")
    write_skill(
        root,
        "fp-composition",
        description="Compose small functions.",
        references=["references/patterns.md"],
    )
    (root / "fp-composition" / "references").mkdir()
    (root / "fp-composition" / "references" / "patterns.md").write_text("# Patterns\n", encoding="utf-8")
    write_skill(root, "fp-immutability", description="Prefer immutable data.")
    write_skill(root, "fp-effects", description="Push effects to the edges.")
    write_skill(root, "fp-cheatsheet", description="Quick reference.")
    (root / "catalog.yaml").write_text(CATALOG_YAML, encoding="utf-8")
    return root
