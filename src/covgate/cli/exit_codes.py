from __future__ import annotations

from covgate.errors import (
    ConfigurationError,
    CovgateError,
    HistoryError,
    ParseError,
    ProfileNotFoundError,
)

# mirror <sysexits.h>
EXIT_OK = 0  # Normal success
EXIT_GENERIC = 1  # Generic failure (fallback)
EXIT_THRESHOLD = 2  # Coverage policy not met
EXIT_DATAERR = 65  # Input data was invalid (e.g., malformed profile, corrupt history)
EXIT_NOINPUT = 66  # Input file not found (e.g., coverage profile missing)
EXIT_CONFIG = 78  # Invalid configuration (e.g., bad .covgate.toml)

# Most specific first: ProfileNotFoundError is a ParseError.
_CODES: tuple[tuple[type[CovgateError], int], ...] = (
    (ProfileNotFoundError, EXIT_NOINPUT),
    (ParseError, EXIT_DATAERR),
    (HistoryError, EXIT_DATAERR),
    (ConfigurationError, EXIT_CONFIG),
)


def exit_code_for(exc: BaseException) -> int:
    for kind, code in _CODES:
        if isinstance(exc, kind):
            return code
    return EXIT_GENERIC


__all__ = [
    "EXIT_CONFIG",
    "EXIT_DATAERR",
    "EXIT_GENERIC",
    "EXIT_NOINPUT",
    "EXIT_OK",
    "EXIT_THRESHOLD",
    "exit_code_for",
]
