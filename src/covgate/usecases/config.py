from __future__ import annotations

from typing import TYPE_CHECKING

from covgate._meta import logger
from covgate.errors import ConfigurationError
from covgate.model.policy import validate_file_rules

if TYPE_CHECKING:
    from pathlib import Path

    from covgate.model.config import Config
    from covgate.usecases.ports import Autodetector, ConfigLoader


def load_or_detect(loader: ConfigLoader, detector: Autodetector, path: Path | None = None) -> Config:
    """Load the configuration at ``path`` (or the discovered one), else autodetect.

    Raises ``ConfigurationError`` when the resulting policy is unusable.
    """
    if loader.exists(path):
        cfg = loader.load(path)
    else:
        logger.info("no configuration found; detecting domains from the project layout")
        cfg = detector.detect()

    if not cfg.policy.domains:
        msg = "no domains configured"
        raise ConfigurationError(msg)
    cfg.policy.validate()
    validate_file_rules(cfg.files)
    return cfg


__all__ = ["load_or_detect"]
