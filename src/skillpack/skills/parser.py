"""
SKILL.md parser.

Turns one document's raw text into a `SkillRecord`:

    ---
    name: fp-composition
    description: Compose small pure functions into pipelines.
    tier: core
    references:
      - references/patterns.md
    ---

    # Composition
    ...

Pure: no filesystem access happens here. Reference existence is checked
later by the validator.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from skillpack.skills.errors import MalformedSkill
from skillpack.skills.models import SkillRecord, SkillSource, Tier

_FRONTMATTER_RE = re.compile(
    r"\A\s*---[ \t]*\r?\n(?:(.*?)\r?\n)??---[ \t]*(?:\r?\n(.*))?\Z",
    re.DOTALL,
)
NAME_RE = re.compile(r"^[a-z][a-z0-9-]*$")

REQUIRED_FIELDS = ("name", "description")


def split_front_matter(text: str, *, source: Optional[str] = None) -> Tuple[Dict[str, Any], str]:
    """Return (front-matter mapping, body). Raises MalformedSkill on bad structure."""
    match = _FRONTMATTER_RE.match(text or "")
    if not match:
        raise MalformedSkill(
            MalformedSkill.INVALID_FRONT_MATTER,
            "document must start with a '---' delimited front-matter block",
            source=source,
        )

    try:
        data = yaml.safe_load(match.group(1) or "")
    except yaml.YAMLError as e:
        raise MalformedSkill(
            MalformedSkill.INVALID_FRONT_MATTER, f"invalid YAML: {e}", source=source
        ) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedSkill(
            MalformedSkill.INVALID_FRONT_MATTER,
            f"front-matter must be a mapping, got {type(data).__name__}",
            source=source,
        )
    return data, (match.group(2) or "").strip()


def _require_text(data: Dict[str, Any], key: str, source: Optional[str]) -> str:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MalformedSkill(
            MalformedSkill.MISSING_FIELD, f"required field '{key}' is missing", source=source, field=key
        )
    if isinstance(value, (dict, list)):
        raise MalformedSkill(
            MalformedSkill.MISSING_FIELD, f"field '{key}' must be a string", source=source, field=key
        )
    return str(value).strip()


def _parse_tier(declared: Any, grouping: Optional[str], source: Optional[str]) -> Tier:
    raw = declared if declared not in (None, "") else grouping
    if raw in (None, ""):
        return Tier.UTILITY
    try:
        return Tier.parse(str(raw))
    except ValueError as e:
        raise MalformedSkill(MalformedSkill.INVALID_TIER, str(e), source=source, field="tier") from e


def _parse_references(value: Any, source: Optional[str]) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise MalformedSkill(
            MalformedSkill.INVALID_REFERENCES,
            f"'references' must be a list of paths, got {type(value).__name__}",
            source=source,
            field="references",
        )
    refs = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise MalformedSkill(
                MalformedSkill.INVALID_REFERENCES,
                f"reference entries must be non-empty strings, got {item!r}",
                source=source,
                field="references",
            )
        refs.append(item.strip())
    return tuple(refs)


def parse_skill(
    text: str,
    directory: Path,
    *,
    grouping: Optional[str] = None,
    declaration_index: int = 0,
    source: Optional[str] = None,
) -> SkillRecord:
    """
    Parse one skill document.

    Args:
        text: Full SKILL.md content
        directory: Directory the document lives in; references resolve against it
        grouping: Tier declared by the catalog manifest, if any
        declaration_index: Position of the document in load order
        source: Label used in error messages (usually the file path)

    Returns:
        The parsed SkillRecord

    Raises:
        MalformedSkill: On missing fields, a bad name, tier or references list
    """
    data, body = split_front_matter(text, source=source)

    for key in REQUIRED_FIELDS:
        _require_text(data, key, source)

    name = data["name"]
    if not isinstance(name, str) or not NAME_RE.match(name.strip()):
        raise MalformedSkill(
            MalformedSkill.INVALID_NAME,
            f"name {name!r} must match {NAME_RE.pattern}",
            source=source,
            field="name",
        )

    return SkillRecord(
        name=name.strip(),
        description=_require_text(data, "description", source),
        tier=_parse_tier(data.get("tier"), grouping, source),
        body=body,
        references=_parse_references(data.get("references"), source),
        declaration_index=declaration_index,
        directory=Path(directory),
    )


def parse_source(source: SkillSource, declaration_index: int = 0) -> SkillRecord:
    return parse_skill(
        source.text,
        source.directory,
        grouping=source.grouping,
        declaration_index=declaration_index,
        source=source.label,
    )
