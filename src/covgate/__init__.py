"""Coverage policy enforcement for codebases organised into domains."""

from covgate._meta import __version__, logger

__all__ = ["__version__", "logger"]
