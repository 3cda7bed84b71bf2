"""Coverage policy value objects: domains, file rules and annotations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covgate.errors import ConfigurationError
from covgate.model.types import FULL_COVERAGE

if TYPE_CHECKING:
    from collections.abc import Iterable


def _check_percentage(value: float, *, what: str) -> None:
    if value < 0 or value > float(FULL_COVERAGE):
        msg = f"{what} must be between 0 and 100, got {value}"
        raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class DomainSpec:
    """A named, directory-scoped group of files with its own thresholds.

    Fields
    ------
    name:
        Unique name within a policy.
    match:
        Directory patterns resolved by a ``DomainResolver``.
    min:
        Minimum coverage percentage; ``None`` falls back to the policy default.
    warn:
        Optional warning threshold; a domain at or above ``min`` but below
        ``warn`` is reported as ``WARN``.
    exclude:
        Glob patterns (module-relative paths) removed from this domain only.
    """

    name: str
    match: tuple[str, ...] = ()
    min: float | None = None
    warn: float | None = None
    exclude: tuple[str, ...] = ()

    def required(self, default_min: float) -> float:
        return self.min if self.min is not None else default_min


@dataclass(frozen=True, slots=True)
class FileRule:
    """Per-file minimum applied to every tracked file matching ``match``."""

    match: tuple[str, ...]
    min: float


@dataclass(frozen=True, slots=True)
class Annotation:
    """Per-file override found in source (``covgate:ignore`` / ``covgate:domain=``)."""

    ignore: bool = False
    domain: str | None = None


@dataclass(frozen=True, slots=True)
class Policy:
    default_min: float = 0.0
    domains: tuple[DomainSpec, ...] = field(default_factory=tuple)

    def domain(self, name: str) -> DomainSpec | None:
        for spec in self.domains:
            if spec.name == name:
                return spec
        return None

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(d.name for d in self.domains)

    def validate(self) -> Policy:
        """Raise ``ConfigurationError`` unless the policy is usable; return self."""
        if not self.domains:
            msg = "no domains configured"
            raise ConfigurationError(msg)
        _check_percentage(self.default_min, what="default minimum")
        seen: set[str] = set()
        for spec in self.domains:
            if not spec.name or not spec.name.strip():
                msg = "domain name cannot be empty"
                raise ConfigurationError(msg)
            if spec.name in seen:
                msg = f"duplicate domain name: {spec.name!r}"
                raise ConfigurationError(msg)
            seen.add(spec.name)
            if spec.min is not None:
                _check_percentage(spec.min, what=f"domain {spec.name!r} min")
            if spec.warn is not None:
                _check_percentage(spec.warn, what=f"domain {spec.name!r} warn")
        return self

    def select(self, names: Iterable[str]) -> Policy:
        """Return a policy restricted to ``names`` (all domains when empty)."""
        wanted = set(names)
        if not wanted:
            return self
        return Policy(
            default_min=self.default_min,
            domains=tuple(d for d in self.domains if d.name in wanted),
        )


def validate_file_rules(rules: Iterable[FileRule]) -> None:
    for rule in rules:
        _check_percentage(rule.min, what="file rule min")


__all__ = ["Annotation", "DomainSpec", "FileRule", "Policy", "validate_file_rules"]
