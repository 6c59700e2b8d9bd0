"""
Skill source discovery.

Layout of a skill source tree:

    skills/
    ├── catalog.yaml          (optional: tier grouping + bundles)
    ├── functional-coding/
    │   └── SKILL.md
    └── fp-composition/
        ├── SKILL.md
        └── references/
            └── patterns.md

catalog.yaml:

    tiers:
      foundation: [functional-coding]
      core: [fp-error-handling, fp-composition, fp-immutability]
    bundles:
      full-core:
        label: Full Core
        select: ["tier:foundation", "tier:core"]

Directories listed under `tiers` come first, in listing order; any other
skill directories follow sorted by name.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from skillpack.skills.errors import LoadError, ManifestError, SkillpackError, SourceReadError
from skillpack.skills.models import Bundle, SkillSource, Tier
from skillpack.skills.registry import Registry
from skillpack.skills.selectors import parse_selector


class BundleSpec(BaseModel):
    label: str = ""
    description: str = ""
    select: List[str] = Field(default_factory=list)

    @field_validator("select", mode="before")
    @classmethod
    def _coerce_select(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v or []


class CatalogManifest(BaseModel):
    tiers: Dict[str, List[str]] = Field(default_factory=dict)
    bundles: Dict[str, BundleSpec] = Field(default_factory=dict)

    @field_validator("tiers")
    @classmethod
    def _validate_tiers(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        seen: Dict[str, str] = {}
        for tier, dirs in v.items():
            Tier.parse(tier)
            for d in dirs:
                if d in seen:
                    raise ValueError(f"'{d}' is listed under both '{seen[d]}' and '{tier}'")
                if not d or Path(d).is_absolute() or ".." in Path(d).parts:
                    raise ValueError(f"invalid skill directory entry: {d!r}")
                seen[d] = tier
        return v


class SkillLoader:
    """
    Discovers skill documents under one root directory.

    Args:
        root: Skill source directory
        manifest_name: Catalog manifest filename inside root
        max_workers: Thread pool size for reading documents (1 = sequential)
    """

    SKILL_FILENAME = "SKILL.md"
    MANIFEST_FILENAME = "catalog.yaml"

    def __init__(
        self,
        root: Path,
        *,
        manifest_name: Optional[str] = None,
        max_workers: int = 4,
    ) -> None:
        self.root = Path(root)
        self.manifest_name = manifest_name or self.MANIFEST_FILENAME
        self.max_workers = max(1, int(max_workers or 1))

    @property
    def manifest_path(self) -> Path:
        return self.root / self.manifest_name

    def read_manifest(self) -> CatalogManifest:
        path = self.manifest_path
        if not path.exists():
            return CatalogManifest()

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise LoadError([ManifestError(path, str(e))]) from e

        if not isinstance(data, dict):
            raise LoadError([ManifestError(path, "catalog manifest must be a mapping")])

        try:
            return CatalogManifest.model_validate(data)
        except PydanticValidationError as e:
            raise LoadError([ManifestError(path, str(e))]) from e

    def discover(self, manifest: Optional[CatalogManifest] = None) -> List[Tuple[Path, Optional[str]]]:
        """Return (skill file, declared grouping) pairs in declaration order."""
        manifest = manifest or CatalogManifest()
        out: List[Tuple[Path, Optional[str]]] = []
        listed: set[str] = set()

        for tier, dirs in manifest.tiers.items():
            for d in dirs:
                listed.add(Path(d).as_posix())
                out.append((self.root / d / self.SKILL_FILENAME, tier))

        for skill_file in sorted(self.root.glob(f"*/{self.SKILL_FILENAME}")):
            rel = skill_file.parent.relative_to(self.root).as_posix()
            if rel in listed:
                continue
            out.append((skill_file, None))

        return out

    def _read_one(self, item: Tuple[Path, Optional[str]]) -> Tuple[Optional[SkillSource], Optional[SkillpackError]]:
        skill_file, grouping = item
        try:
            text = skill_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None, SourceReadError(skill_file, f"{self.SKILL_FILENAME} not found")
        except (OSError, UnicodeDecodeError) as e:
            return None, SourceReadError(skill_file, str(e))
        return SkillSource(text=text, directory=skill_file.parent, grouping=grouping, origin=skill_file), None

    def read_sources(
        self, manifest: Optional[CatalogManifest] = None
    ) -> Tuple[List[SkillSource], List[SkillpackError]]:
        items = self.discover(manifest)
        if self.max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(self._read_one, items))
        else:
            results = [self._read_one(item) for item in items]

        sources: List[SkillSource] = []
        failures: List[SkillpackError] = []
        for source, error in results:
            if error is not None:
                logger.warning(f"Failed to read skill document: {error}")
                failures.append(error)
            elif source is not None:
                sources.append(source)
        return sources, failures

    def load_bundles(self, manifest: CatalogManifest) -> List[Bundle]:
        bundles: List[Bundle] = []
        errors: List[SkillpackError] = []
        for name, spec in manifest.bundles.items():
            for item in spec.select:
                try:
                    parse_selector(item)
                except ValueError as e:
                    errors.append(ManifestError(self.manifest_path, f"bundle '{name}': {e}"))
            bundles.append(
                Bundle(name=name, label=spec.label, description=spec.description, select=tuple(spec.select))
            )
        if errors:
            raise LoadError(errors)
        return bundles

    def load_registry(self) -> Registry:
        """
        Read, parse and index everything under root.

        Raises:
            LoadError: With every read, parse and manifest failure found
        """
        if not self.root.is_dir():
            raise LoadError([SourceReadError(self.root, "skill source directory does not exist")])

        manifest = self.read_manifest()
        bundles = self.load_bundles(manifest)
        sources, failures = self.read_sources(manifest)

        try:
            registry = Registry.load(sources, bundles)
        except LoadError as e:
            raise LoadError(failures + e.failures) from e

        if failures:
            raise LoadError(failures)

        logger.info(f"Loaded {len(registry)} skills from {self.root}")
        return registry
