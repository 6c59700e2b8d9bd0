"""
Installer - writes materialized skills into a target directory.

Modes:
- copy:     <target>/<name>/SKILL.md plus its references, and the lock file
- manifest: only the lock file, pointing at the source directories

Skill directories are staged next to the target and moved into place once
all of them were written, so a failed install leaves no half-copied skill.
"""

from __future__ import annotations

import json
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

import yaml
from loguru import logger

from skillpack.skills.errors import InstallError
from skillpack.skills.materializer import build_manifest
from skillpack.skills.models import SkillRecord, contained_path

LOCK_FILENAME = "skillpack.lock.json"
INSTALL_MODES = ("copy", "manifest")


def render_skill_document(record: SkillRecord) -> str:
    front = {"name": record.name, "description": record.description, "tier": record.tier.value}
    if record.references:
        front["references"] = list(record.references)
    header = yaml.safe_dump(front, sort_keys=False, allow_unicode=True).strip()
    return f"---\n{header}\n---\n\n{record.body}\n"


def _stage_skill(record: SkillRecord, dest: Path) -> None:
    dest.mkdir(parents=True, exist_ok=True)
    source_doc = record.directory / "SKILL.md" if record.directory else None
    if source_doc is not None and source_doc.is_file():
        shutil.copy2(source_doc, dest / "SKILL.md")
    else:
        (dest / "SKILL.md").write_text(render_skill_document(record), encoding="utf-8")

    for ref, src in zip(record.references, record.reference_paths()):
        target = contained_path(dest, ref)
        if target is None or target == dest.resolve():
            raise InstallError(dest / ref, f"reference of {record.name} must stay inside its skill directory")
        target.parent.mkdir(parents=True, exist_ok=True)
        if src.is_dir():
            shutil.copytree(src, target, dirs_exist_ok=True)
        else:
            shutil.copy2(src, target)


def install(
    records: Sequence[SkillRecord],
    target: Path,
    *,
    mode: str = "copy",
    bundle: Optional[str] = None,
) -> Path:
    """
    Write `records` (already in install order) to `target`.

    Returns:
        Path of the written lock file

    Raises:
        InstallError: Any filesystem failure while writing
        ValueError: Unknown mode
    """
    if mode not in INSTALL_MODES:
        raise ValueError(f"unknown install mode: {mode!r} (expected one of {', '.join(INSTALL_MODES)})")

    target = Path(target)
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise InstallError(target, str(e)) from e

    if mode == "copy":
        _copy_all(records, target)

    lock_path = target / LOCK_FILENAME
    payload = build_manifest(records, bundle=bundle, mode=mode)
    try:
        lock_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    except OSError as e:
        raise InstallError(lock_path, str(e)) from e

    logger.info(f"Installed {len(records)} skills into {target} ({mode})")
    return lock_path


def _copy_all(records: Sequence[SkillRecord], target: Path) -> None:
    try:
        staging = Path(tempfile.mkdtemp(prefix=".skillpack-", dir=target))
    except OSError as e:
        raise InstallError(target, str(e)) from e

    try:
        staged: List[str] = []
        for record in records:
            try:
                _stage_skill(record, staging / record.name)
            except OSError as e:
                raise InstallError(target / record.name, str(e)) from e
            staged.append(record.name)

        for name in staged:
            final = target / name
            try:
                if final.exists():
                    shutil.rmtree(final)
                (staging / name).replace(final)
            except OSError as e:
                raise InstallError(final, str(e)) from e
            logger.debug(f"Installed skill {name} -> {final}")
    finally:
        shutil.rmtree(staging, ignore_errors=True)
