"""TOML configuration loading with JSON Schema validation and ``extends`` inheritance.

Configuration lives either at the top level of ``.covgate.toml`` /
``covgate.toml`` or under ``[tool.covgate]`` in ``pyproject.toml``.
"""

from __future__ import annotations

import json
import tomllib
from functools import cache
from importlib import resources
from pathlib import Path
from typing import Any

import tomli_w
from jsonschema import ValidationError, validate

from covgate._meta import logger
from covgate.errors import ConfigNotFoundError, ConfigurationError
from covgate.model.config import (
    DEFAULT_DIFF_BASE,
    AnnotationsConfig,
    Config,
    DiffConfig,
    MergeConfig,
    ProfileConfig,
)
from covgate.model.policy import DomainSpec, FileRule, Policy
from covgate.model.types import Format, Language

CONFIG_NAMES: tuple[str, ...] = (".covgate.toml", "covgate.toml", "pyproject.toml")
PYPROJECT = "pyproject.toml"
SUPPORTED_VERSION = 1

RawConfig = dict[str, Any]


@cache
def get_schema() -> dict[str, object]:
    """Load and cache the JSON schema for configuration documents."""
    text = resources.files("covgate.data").joinpath("config.schema.json").read_text(encoding="utf-8")
    return json.loads(text)


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except FileNotFoundError as exc:
        msg = f"configuration file not found: {path}"
        raise ConfigNotFoundError(msg) from exc
    except tomllib.TOMLDecodeError as exc:
        msg = f"invalid TOML in {path}: {exc}"
        raise ConfigurationError(msg) from exc
    except OSError as exc:
        msg = f"failed to read configuration {path}: {exc}"
        raise ConfigurationError(msg) from exc


def read_raw(path: Path) -> RawConfig | None:
    """Return the covgate table of ``path``; ``None`` for a pyproject without one."""
    data = _read_toml(path)
    if path.name == PYPROJECT:
        table = data.get("tool", {}).get("covgate")
        return dict(table) if isinstance(table, dict) else None
    return data


def validate_raw(raw: RawConfig, *, source: Path) -> None:
    try:
        validate(raw, get_schema())
    except ValidationError as exc:
        where = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        msg = f"{source}: invalid configuration at {where}: {exc.message}"
        raise ConfigurationError(msg) from exc


def find_config(start: Path | None = None) -> Path | None:
    """Nearest configuration file in ``start`` or any parent directory."""
    directory = (start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        for name in CONFIG_NAMES:
            candidate = candidate_dir / name
            if not candidate.is_file():
                continue
            if name == PYPROJECT and read_raw(candidate) is None:
                continue
            return candidate
    return None


def merge_raw(parent: RawConfig, child: RawConfig) -> RawConfig:
    """Overlay ``child`` on ``parent``.

    Scalars and tables present in the child win; domains merge by name (parent
    order first, then new child domains); ``exclude`` and ``merge.profiles``
    are appended; ``files`` is replaced.
    """
    out: RawConfig = {k: v for k, v in parent.items() if k != "extends"}
    for key, value in child.items():
        if key == "extends":
            continue
        if key == "policy":
            out["policy"] = _merge_policy(out.get("policy", {}), value)
        elif key == "exclude":
            out["exclude"] = [*out.get("exclude", []), *value]
        elif key == "merge":
            profiles = [*out.get("merge", {}).get("profiles", []), *value.get("profiles", [])]
            out["merge"] = {**out.get("merge", {}), **value, "profiles": profiles}
        elif key == "profile":
            out["profile"] = {**out.get("profile", {}), **value}
        else:
            out[key] = value
    return out


def _merge_policy(parent: RawConfig, child: RawConfig) -> RawConfig:
    merged: RawConfig = {**parent, **{k: v for k, v in child.items() if k != "domains"}}
    if "domains" in child:
        by_name = {d["name"]: d for d in parent.get("domains", [])}
        order = list(by_name)
        for domain in child["domains"]:
            if domain["name"] not in by_name:
                order.append(domain["name"])
            by_name[domain["name"]] = domain
        merged["domains"] = [by_name[name] for name in order]
    return merged


def build_config(raw: RawConfig) -> Config:
    policy_raw = raw.get("policy", {})
    domains = tuple(
        DomainSpec(
            name=d["name"],
            match=tuple(d.get("match", ())),
            min=d.get("min"),
            warn=d.get("warn"),
            exclude=tuple(d.get("exclude", ())),
        )
        for d in policy_raw.get("domains", [])
    )
    profile_raw = raw.get("profile", {})
    diff_raw = raw.get("diff", {})
    return Config(
        version=raw.get("version", SUPPORTED_VERSION),
        language=Language(raw.get("language", Language.AUTO)),
        module_path=raw.get("module_path", ""),
        profile=ProfileConfig(
            format=Format(profile_raw.get("format", Format.AUTO)),
            path=profile_raw.get("path") or None,
        ),
        policy=Policy(default_min=float(policy_raw.get("default_min", 0.0)), domains=domains),
        exclude=tuple(raw.get("exclude", ())),
        files=tuple(FileRule(match=tuple(r["match"]), min=float(r["min"])) for r in raw.get("files", [])),
        diff=DiffConfig(
            enabled=bool(diff_raw.get("enabled", False)),
            base=diff_raw.get("base") or DEFAULT_DIFF_BASE,
        ),
        merge=MergeConfig(profiles=tuple(raw.get("merge", {}).get("profiles", ()))),
        annotations=AnnotationsConfig(enabled=bool(raw.get("annotations", {}).get("enabled", False))),
    )


def config_to_raw(cfg: Config) -> RawConfig:
    """Inverse of ``build_config``; default-valued sections are left out."""
    domains: list[RawConfig] = []
    for spec in cfg.policy.domains:
        domain: RawConfig = {"name": spec.name, "match": list(spec.match)}
        if spec.min is not None:
            domain["min"] = spec.min
        if spec.warn is not None:
            domain["warn"] = spec.warn
        if spec.exclude:
            domain["exclude"] = list(spec.exclude)
        domains.append(domain)

    raw: RawConfig = {"version": cfg.version, "language": cfg.language.value}
    if cfg.module_path:
        raw["module_path"] = cfg.module_path
    if cfg.exclude:
        raw["exclude"] = list(cfg.exclude)
    profile: RawConfig = {"format": cfg.profile.format.value}
    if cfg.profile.path:
        profile["path"] = cfg.profile.path
    raw["profile"] = profile
    raw["policy"] = {"default_min": cfg.policy.default_min, "domains": domains}
    if cfg.files:
        raw["files"] = [{"match": list(r.match), "min": r.min} for r in cfg.files]
    if cfg.diff != DiffConfig():
        raw["diff"] = {"enabled": cfg.diff.enabled, "base": cfg.diff.base}
    if cfg.merge.profiles:
        raw["merge"] = {"profiles": list(cfg.merge.profiles)}
    if cfg.annotations.enabled:
        raw["annotations"] = {"enabled": True}
    return raw


def write_config(path: Path, cfg: Config, *, force: bool = False) -> Path:
    """Serialise ``cfg`` as TOML at ``path``; an existing file is kept unless ``force``."""
    if path.exists() and not force:
        msg = f"{path} already exists (use --force to overwrite)"
        raise ConfigurationError(msg)
    raw = config_to_raw(cfg)
    validate_raw(raw, source=path)
    try:
        path.write_text(tomli_w.dumps(raw), encoding="utf-8")
    except OSError as exc:
        msg = f"failed to write configuration {path}: {exc}"
        raise ConfigurationError(msg) from exc
    logger.info("wrote configuration to %s", path)
    return path


class TomlConfigLoader:
    """``ConfigLoader`` over TOML files; without an explicit path it searches upwards from ``start``."""

    def __init__(self, start: Path | None = None) -> None:
        self.start = start

    def _locate(self, path: Path | None) -> Path | None:
        if path is not None:
            return Path(path)
        return find_config(self.start)

    def exists(self, path: Path | None = None) -> bool:
        located = self._locate(path)
        return located is not None and located.exists()

    def load(self, path: Path | None = None) -> Config:
        located = self._locate(path)
        if located is None:
            msg = "no configuration found (.covgate.toml, covgate.toml or [tool.covgate] in pyproject.toml)"
            raise ConfigNotFoundError(msg)
        raw = self.load_raw(located)
        logger.info("loaded configuration from %s", located)
        return build_config(raw)

    def load_raw(self, path: Path, _visited: frozenset[Path] = frozenset()) -> RawConfig:
        """Read, validate and resolve ``extends`` for ``path``."""
        resolved = path.resolve()
        if resolved in _visited:
            msg = f"circular config inheritance detected: {resolved}"
            raise ConfigurationError(msg)

        raw = read_raw(resolved)
        if raw is None:
            msg = f"{resolved} has no [tool.covgate] table"
            raise ConfigNotFoundError(msg)
        validate_raw(raw, source=resolved)

        version = raw.get("version", SUPPORTED_VERSION)
        if version != SUPPORTED_VERSION:
            msg = f"unsupported config version: {version}"
            raise ConfigurationError(msg)

        parent_ref = raw.get("extends")
        if not parent_ref:
            return raw
        parent_path = Path(parent_ref)
        if not parent_path.is_absolute():
            parent_path = resolved.parent / parent_path
        logger.debug("%s extends %s", resolved, parent_path)
        try:
            parent = self.load_raw(parent_path, _visited | {resolved})
        except ConfigNotFoundError as exc:
            msg = f"loading parent config {parent_ref}: {exc}"
            raise ConfigurationError(msg) from exc
        return merge_raw(parent, raw)


__all__ = [
    "CONFIG_NAMES",
    "TomlConfigLoader",
    "build_config",
    "config_to_raw",
    "find_config",
    "get_schema",
    "merge_raw",
    "read_raw",
    "validate_raw",
    "write_config",
]
