"""Project language detection from marker files.

``MARKER_RULES`` is ordered strongest marker first. Detection looks at the
start directory and then at most ``max_parents`` ancestors; the nearest
directory holding any marker decides, and within that directory the first
matching rule in table order wins.
"""

from __future__ import annotations

from pathlib import Path
from typing import NamedTuple

from covgate._meta import logger
from covgate.model.types import Format, Language

DEFAULT_MAX_PARENTS = 5


class MarkerRule(NamedTuple):
    filename: str
    language: Language


MARKER_RULES: tuple[MarkerRule, ...] = (
    # Primary manifests.
    MarkerRule("go.mod", Language.GO),
    MarkerRule("tsconfig.json", Language.TYPESCRIPT),
    MarkerRule("pyproject.toml", Language.PYTHON),
    MarkerRule("pom.xml", Language.JAVA),
    MarkerRule("build.gradle", Language.JAVA),
    MarkerRule("build.gradle.kts", Language.JAVA),
    MarkerRule("Cargo.toml", Language.RUST),
    # Secondary manifests and lockfiles.
    MarkerRule("go.sum", Language.GO),
    MarkerRule("setup.py", Language.PYTHON),
    MarkerRule("package.json", Language.JAVASCRIPT),
    MarkerRule("settings.gradle", Language.JAVA),
    MarkerRule("settings.gradle.kts", Language.JAVA),
    MarkerRule("Cargo.lock", Language.RUST),
    MarkerRule("Pipfile", Language.PYTHON),
    MarkerRule("poetry.lock", Language.PYTHON),
    MarkerRule("requirements.txt", Language.PYTHON),
    MarkerRule("yarn.lock", Language.JAVASCRIPT),
    MarkerRule("pnpm-lock.yaml", Language.JAVASCRIPT),
    MarkerRule("package-lock.json", Language.JAVASCRIPT),
)

_DEFAULT_PROFILES: dict[Language, tuple[str, ...]] = {
    Language.GO: ("coverage.out", "cover.out", "c.out"),
    Language.PYTHON: ("coverage.xml", "coverage.info", "coverage.lcov"),
    Language.JAVASCRIPT: ("coverage/lcov.info", "coverage/cobertura-coverage.xml", "coverage/cobertura.xml"),
    Language.TYPESCRIPT: ("coverage/lcov.info", "coverage/cobertura-coverage.xml", "coverage/cobertura.xml"),
    Language.JAVA: (
        "target/site/jacoco/jacoco.xml",
        "build/reports/jacoco/test/jacocoTestReport.xml",
        "target/site/cobertura/coverage.xml",
        "build/reports/cobertura/coverage.xml",
    ),
    Language.RUST: ("target/coverage/lcov.info", "target/coverage/cobertura.xml", "coverage/lcov.info"),
}

_DEFAULT_FORMATS: dict[Language, Format] = {
    Language.GO: Format.NATIVE,
    Language.PYTHON: Format.COBERTURA,
    Language.JAVASCRIPT: Format.LCOV,
    Language.TYPESCRIPT: Format.LCOV,
    Language.JAVA: Format.JACOCO,
    Language.RUST: Format.LCOV,
}


def _search_dirs(start: Path, max_parents: int) -> list[Path]:
    start = start.resolve()
    return [start, *list(start.parents)[:max_parents]]


def detect_language(
    start: Path | None = None,
    *,
    rules: tuple[MarkerRule, ...] = MARKER_RULES,
    max_parents: int = DEFAULT_MAX_PARENTS,
) -> Language:
    """Return the project language, or ``Language.AUTO`` when no marker is found."""
    for directory in _search_dirs(start or Path.cwd(), max_parents):
        for rule in rules:
            if (directory / rule.filename).exists():
                logger.debug("detected %s from %s", rule.language.value, directory / rule.filename)
                return rule.language
    return Language.AUTO


def default_profile_paths(language: Language) -> tuple[str, ...]:
    return _DEFAULT_PROFILES.get(language, ())


def default_format(language: Language) -> Format:
    return _DEFAULT_FORMATS.get(language, Format.AUTO)


def go_module_path(root: Path) -> str:
    """Module path declared by the ``module`` directive of ``go.mod``; empty when absent."""
    go_mod = root / "go.mod"
    if not go_mod.is_file():
        return ""
    for line in go_mod.read_text(encoding="utf-8", errors="replace").splitlines():
        fields = line.split("//", 1)[0].split()
        if len(fields) == 2 and fields[0] == "module":  # noqa: PLR2004
            return fields[1].strip('"')
    return ""


__all__ = [
    "DEFAULT_MAX_PARENTS",
    "MARKER_RULES",
    "MarkerRule",
    "default_format",
    "default_profile_paths",
    "detect_language",
    "go_module_path",
]
