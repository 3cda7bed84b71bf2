"""Application-level configuration assembled by a ``ConfigLoader`` or ``Autodetector``."""

from __future__ import annotations

from dataclasses import dataclass, field

from covgate.model.policy import FileRule, Policy
from covgate.model.types import Format, Language

DEFAULT_DIFF_BASE = "origin/main"


@dataclass(frozen=True, slots=True)
class ProfileConfig:
    format: Format = Format.AUTO
    path: str | None = None


@dataclass(frozen=True, slots=True)
class DiffConfig:
    enabled: bool = False
    base: str = DEFAULT_DIFF_BASE


@dataclass(frozen=True, slots=True)
class MergeConfig:
    profiles: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class AnnotationsConfig:
    enabled: bool = False


@dataclass(frozen=True, slots=True)
class Config:
    """Validated, application-ready configuration."""

    version: int = 1
    language: Language = Language.AUTO
    module_path: str = ""
    profile: ProfileConfig = field(default_factory=ProfileConfig)
    policy: Policy = field(default_factory=Policy)
    exclude: tuple[str, ...] = ()
    files: tuple[FileRule, ...] = ()
    diff: DiffConfig = field(default_factory=DiffConfig)
    merge: MergeConfig = field(default_factory=MergeConfig)
    annotations: AnnotationsConfig = field(default_factory=AnnotationsConfig)

    def profile_paths(self, primary: str | None = None) -> list[str]:
        """Primary profile (argument, else configured path) followed by merge profiles."""
        first = primary or self.profile.path
        paths = [first] if first else []
        paths.extend(p for p in self.merge.profiles if p not in paths)
        return paths


__all__ = [
    "DEFAULT_DIFF_BASE",
    "AnnotationsConfig",
    "Config",
    "DiffConfig",
    "MergeConfig",
    "ProfileConfig",
]
