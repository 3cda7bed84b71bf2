from __future__ import annotations

from typing import TYPE_CHECKING

from defusedxml import DefusedXmlException, ElementTree

from covgate.coverage.types import local_tag
from covgate.errors import ParseError, ProfileNotFoundError

if TYPE_CHECKING:
    from collections.abc import Collection
    from pathlib import Path

    from covgate.coverage.types import ElementLike


def read_root(path: Path, *, expected: Collection[str]) -> ElementLike:
    """Parse an XML coverage report and return its root element.

    The root tag (namespace-tolerant) must be one of ``expected``.
    """
    try:
        root = ElementTree.parse(path).getroot()
    except FileNotFoundError as exc:
        msg = f"coverage profile not found: {path}"
        raise ProfileNotFoundError(msg) from exc
    except (ElementTree.ParseError, DefusedXmlException) as exc:
        msg = f"failed to decode coverage XML {path}: {exc}"
        raise ParseError(msg) from exc
    except OSError as exc:
        msg = f"failed to read coverage XML {path}: {exc}"
        raise ParseError(msg) from exc

    if local_tag(root) not in expected:
        msg = f"unexpected root tag {root.tag!r} in {path}"
        raise ParseError(msg)
    return root


__all__ = ["read_root"]
