from __future__ import annotations

import logging
from importlib.metadata import version

__version__ = version("covgate")

LOG_FORMAT = "%(levelname)s: %(message)s"

logger = logging.getLogger("covgate")

__all__ = ["LOG_FORMAT", "__version__", "logger"]
