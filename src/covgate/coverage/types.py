from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from covgate.model.coverage import CoverageStat
    from covgate.model.types import Format


class ElementLike(Protocol):
    """Simplified Element protocol that matches the subset of behavior we consume."""

    tag: str | None

    def findall(self, path: str) -> list[ElementLike]: ...

    def iter(self, tag: str | None = None) -> Iterator[ElementLike]: ...

    def get(self, key: str, default: str | None = None) -> str | None: ...


class ProfileParser(Protocol):
    """A parser turning one coverage profile into per-file statement counts."""

    format: Format

    def parse(self, path: Path) -> dict[str, CoverageStat]: ...


def local_tag(elem: ElementLike) -> str:
    """Tag name without any ``{namespace}`` prefix, lower-cased."""
    return (elem.tag or "").split("}")[-1].lower()


__all__ = ["ElementLike", "ProfileParser", "local_tag"]
