"""
Skill errors.

Parse, load, resolution and materialization failures are raised as
exceptions. Validation findings are plain values so a whole catalog can be
checked in one pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Tuple


class SkillpackError(Exception):
    """Base class for all skillpack domain errors."""


class MalformedSkill(SkillpackError):
    MISSING_FIELD = "missingField"
    INVALID_NAME = "invalidName"
    INVALID_TIER = "invalidTier"
    INVALID_REFERENCES = "invalidReferences"
    INVALID_FRONT_MATTER = "invalidFrontMatter"

    def __init__(self, kind: str, detail: str, *, source: Optional[str] = None, field: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        self.source = source
        self.field = field
        where = f"{source}: " if source else ""
        super().__init__(f"{where}{kind}: {detail}")


class LoadError(SkillpackError):
    """Raised when one or more source documents could not be read or parsed."""

    def __init__(self, failures: Sequence[SkillpackError]):
        self.failures: List[SkillpackError] = list(failures)
        count = len(self.failures)
        noun = "document" if count == 1 else "documents"
        super().__init__(f"{count} skill {noun} failed to load")


class SourceReadError(SkillpackError):
    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ManifestError(SourceReadError):
    """catalog.yaml is unreadable or declares something invalid."""


class SkillNotFound(SkillpackError, KeyError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"skill not found: {self.name}"


class ResolutionError(SkillpackError):
    UNKNOWN_SKILL = "unknownSkill"
    UNKNOWN_BUNDLE = "unknownBundle"
    CYCLE = "cycle"

    def __init__(self, kind: str, *, name: Optional[str] = None, path: Sequence[str] = ()):
        self.kind = kind
        self.name = name
        self.path: Tuple[str, ...] = tuple(path)
        if kind == self.CYCLE:
            msg = f"bundle cycle: {' -> '.join(self.path)}"
        elif kind == self.UNKNOWN_BUNDLE:
            msg = f"unknown bundle: {name}"
        else:
            msg = f"unknown skill: {name}"
        super().__init__(msg)


class MaterializationError(SkillpackError):
    MISSING_SKILL = "missingSkill"
    DUPLICATE_SKILL = "duplicateSkill"

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind}: {name}")


class InstallError(SkillpackError):
    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"failed to write {path}: {reason}")


class ValidationErrorKind(str, Enum):
    DUPLICATE_NAME = "duplicateName"
    MISSING_REFERENCE = "missingReference"
    UNKNOWN_BUNDLE_MEMBER = "unknownBundleMember"
    UNKNOWN_BUNDLE = "unknownBundle"
    BUNDLE_CYCLE = "bundleCycle"


@dataclass(frozen=True)
class ValidationError:
    """One integrity finding. Not an exception: the validator returns a list of these."""

    kind: ValidationErrorKind
    name: str
    detail: str = ""
    path: Optional[str] = None
    others: Tuple[str, ...] = ()

    def __str__(self) -> str:
        msg = f"{self.kind.value}: {self.name}"
        if self.path:
            msg += f" ({self.path})"
        if self.detail:
            msg += f" - {self.detail}"
        return msg
