"""Build a default configuration from the project layout when no config file exists."""

from __future__ import annotations

from pathlib import Path

from covgate._meta import logger
from covgate.adapters.language import default_format, default_profile_paths, detect_language, go_module_path
from covgate.model.config import Config, ProfileConfig
from covgate.model.policy import DomainSpec, Policy
from covgate.model.types import Language

DEFAULT_MIN = 80.0

IGNORED_DIRS = frozenset(
    {
        "__pycache__",
        "__pypackages__",
        "node_modules",
        "venv",
        "env",
        "target",
        "build",
        "dist",
        "eggs",
        "mocks",
        "mock",
        "generated",
        "testdata",
    }
)

_GO_TOP = ("cmd", "internal", "pkg")
_PYTHON_TOP = ("src", "lib", "app", "api", "core", "utils", "services", "models")
_JS_TOP = ("src", "lib", "app", "components", "pages", "api", "utils", "services", "hooks")


def _subdirs(path: Path) -> list[str]:
    if not path.is_dir():
        return []
    return sorted(
        p.name for p in path.iterdir() if p.is_dir() and not p.name.startswith(".") and p.name not in IGNORED_DIRS
    )


def _dedupe(domains: list[DomainSpec]) -> tuple[DomainSpec, ...]:
    seen: dict[str, DomainSpec] = {}
    for d in domains:
        seen.setdefault(d.name, d)
    return tuple(seen.values())


def _go_domains(root: Path) -> list[DomainSpec]:
    out: list[DomainSpec] = []
    for top in _GO_TOP:
        if not (root / top).is_dir():
            continue
        if top == "internal":
            subs = _subdirs(root / top)
            out.extend(DomainSpec(name=s, match=(f"./internal/{s}/...",)) for s in subs)
            if not subs:
                out.append(DomainSpec(name="internal", match=("./internal/...",)))
            continue
        out.append(DomainSpec(name=top, match=(f"./{top}/...",)))
    return out or [DomainSpec(name="module", match=("./...",))]


def _top_level_domains(root: Path, candidates: tuple[str, ...]) -> list[DomainSpec]:
    return [DomainSpec(name=d, match=(f"{d}/**",)) for d in candidates if (root / d).is_dir()]


def _python_domains(root: Path) -> list[DomainSpec]:
    out = _top_level_domains(root, _PYTHON_TOP)
    out.extend(DomainSpec(name=s, match=(f"src/{s}/**",)) for s in _subdirs(root / "src"))
    return out or [DomainSpec(name="project", match=("**",))]


def _js_domains(root: Path) -> list[DomainSpec]:
    return _top_level_domains(root, _JS_TOP) or [DomainSpec(name="project", match=("**",))]


def _rust_domains(root: Path) -> list[DomainSpec]:
    out = [DomainSpec(name=s, match=(f"src/{s}/**",)) for s in _subdirs(root / "src")]
    return out or [DomainSpec(name="crate", match=("src/**",))]


def _java_domains(root: Path) -> list[DomainSpec]:
    main = root / "src" / "main" / "java"
    out = [DomainSpec(name=s, match=(f"src/main/java/{s}/**",)) for s in _subdirs(main)]
    if (root / "app" / "src" / "main" / "java").is_dir():
        out.append(DomainSpec(name="app", match=("app/src/main/java/**",)))
    return out or [DomainSpec(name="project", match=("**",))]


_DETECTORS = {
    Language.GO: _go_domains,
    Language.PYTHON: _python_domains,
    Language.JAVASCRIPT: _js_domains,
    Language.TYPESCRIPT: _js_domains,
    Language.RUST: _rust_domains,
    Language.JAVA: _java_domains,
}


class LayoutAutodetector:
    """``Autodetector`` deriving domains from the conventional layout of the detected language."""

    def __init__(self, root: Path | None = None, *, language: Language = Language.AUTO) -> None:
        self.root = (root or Path.cwd()).resolve()
        self.language = language

    def detect(self) -> Config:
        language = self.language if self.language is not Language.AUTO else detect_language(self.root)
        # Unknown projects fall back to the Go module layout.
        detector = _DETECTORS.get(language, _go_domains)
        domains = _dedupe(detector(self.root))
        logger.info("autodetected %d domain(s) for %s project at %s", len(domains), language.value, self.root)

        profile_path = next((p for p in default_profile_paths(language) if (self.root / p).is_file()), None)
        return Config(
            language=language,
            module_path=go_module_path(self.root) if language is Language.GO else "",
            profile=ProfileConfig(format=default_format(language), path=profile_path),
            policy=Policy(default_min=DEFAULT_MIN, domains=domains),
        )


__all__ = ["DEFAULT_MIN", "IGNORED_DIRS", "LayoutAutodetector"]
