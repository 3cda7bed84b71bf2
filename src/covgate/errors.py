"""Centralised exception hierarchy for covgate."""

from __future__ import annotations


class CovgateError(Exception):
    """Base class for all custom covgate exceptions."""


class ConfigurationError(CovgateError):
    """Policy or configuration is invalid; raised before any profile is parsed."""


class ConfigNotFoundError(ConfigurationError):
    """No configuration file could be located."""


class ParseError(CovgateError):
    """A coverage profile could not be read or decoded."""


class ProfileNotFoundError(ParseError):
    """A coverage profile does not exist on disk."""


class ResolutionError(CovgateError):
    """Module root, module path, or domain directories could not be resolved."""


class HistoryError(CovgateError):
    """Coverage history is unavailable or corrupt."""


class WatchCancelledError(CovgateError):
    """The watch loop was cancelled by its caller."""


__all__ = [
    "ConfigNotFoundError",
    "ConfigurationError",
    "CovgateError",
    "HistoryError",
    "ParseError",
    "ProfileNotFoundError",
    "ResolutionError",
    "WatchCancelledError",
]
