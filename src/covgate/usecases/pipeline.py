"""Profile -> normalised file coverage -> per-domain coverage, shared by the use cases."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covgate._meta import logger
from covgate.coverage.discover import resolve_profile_paths
from covgate.engine.aggregate import AggregationInput, aggregate
from covgate.engine.normalize import PathNormalizer, normalize_coverage_map
from covgate.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping, Sequence
    from pathlib import Path

    from covgate.model.config import Config
    from covgate.model.coverage import CoverageStat
    from covgate.model.policy import Annotation, DomainSpec, Policy
    from covgate.usecases.ports import AnnotationScanner, DomainResolver, ProfileSource


@dataclass(frozen=True, slots=True)
class CoverageContext:
    module_root: str
    module_path: str
    file_coverage: Mapping[str, CoverageStat]
    annotations: Mapping[str, Annotation] = field(default_factory=dict)
    domain_dirs: Mapping[str, Sequence[str]] = field(default_factory=dict)
    domain_coverage: Mapping[str, CoverageStat] = field(default_factory=dict)


def select_domains(policy: Policy, names: Sequence[str]) -> Policy:
    """Restrict ``policy`` to ``names``; an empty selection is a configuration error."""
    selected = policy.select(names)
    if not selected.domains:
        msg = f"no matching domains found for: {', '.join(names)}"
        raise ConfigurationError(msg)
    return selected


def domain_excludes(domains: Sequence[DomainSpec]) -> dict[str, tuple[str, ...]]:
    return {d.name: d.exclude for d in domains if d.exclude}


def profile_paths(cfg: Config, primary: str | Path | None, *, base: Path) -> tuple[Path, ...]:
    paths = cfg.profile_paths(str(primary) if primary else None)
    if not paths:
        msg = "no coverage profile given and none configured (profile.path)"
        raise ConfigurationError(msg)
    return resolve_profile_paths(paths, base=base)


def load_file_coverage(
    profiles: ProfileSource,
    resolver: DomainResolver,
    cfg: Config,
    paths: Sequence[Path],
) -> tuple[PathNormalizer, dict[str, CoverageStat]]:
    """Parse and merge ``paths``, re-keyed by module-relative file path."""
    module_path = cfg.module_path or resolver.module_path()
    normalizer = PathNormalizer(resolver.module_root(), module_path)
    raw = profiles.parse_all(paths, cfg.profile.format)
    coverage = normalize_coverage_map(raw, normalizer)
    logger.debug("loaded coverage for %d files from %d profile(s)", len(coverage), len(paths))
    return normalizer, coverage


def scan_annotations(
    scanner: AnnotationScanner | None,
    cfg: Config,
    module_root: str,
    files: Collection[str],
) -> dict[str, Annotation]:
    if not cfg.annotations.enabled or scanner is None:
        return {}
    return dict(scanner.scan(module_root, sorted(files)))


def aggregate_domains(
    normalizer: PathNormalizer,
    coverage: Mapping[str, CoverageStat],
    domain_dirs: Mapping[str, Sequence[str]],
    cfg: Config,
    domains: Sequence[DomainSpec],
    annotations: Mapping[str, Annotation],
) -> dict[str, CoverageStat]:
    return aggregate(
        AggregationInput(
            file_coverage=coverage,
            domain_dirs=domain_dirs,
            global_excludes=cfg.exclude,
            domain_excludes=domain_excludes(domains),
            annotations=annotations,
        ),
        normalizer,
    )


def prepare_coverage(
    *,
    cfg: Config,
    policy: Policy,
    paths: Sequence[Path],
    profiles: ProfileSource,
    resolver: DomainResolver,
    scanner: AnnotationScanner | None = None,
) -> CoverageContext:
    normalizer, coverage = load_file_coverage(profiles, resolver, cfg, paths)
    annotations = scan_annotations(scanner, cfg, normalizer.module_root, coverage)
    domain_dirs = resolver.resolve(policy.domains)
    domain_coverage = aggregate_domains(normalizer, coverage, domain_dirs, cfg, policy.domains, annotations)
    return CoverageContext(
        module_root=normalizer.module_root,
        module_path=normalizer.module_path,
        file_coverage=coverage,
        annotations=annotations,
        domain_dirs=domain_dirs,
        domain_coverage=domain_coverage,
    )


__all__ = [
    "CoverageContext",
    "aggregate_domains",
    "domain_excludes",
    "load_file_coverage",
    "prepare_coverage",
    "profile_paths",
    "scan_annotations",
    "select_domains",
]
