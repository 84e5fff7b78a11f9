"""Exceptions raised by raobt."""

from typing import Optional


class RaobtError(Exception):
    """Base class for all raobt errors."""


class ServiceUnavailable(RaobtError):
    """The RAOB archive could not be reached or reported itself unavailable."""


class InvalidArgument(RaobtError, ValueError):
    """A search or export was requested with malformed or conflicting arguments."""


class NoCatalogLoaded(RaobtError):
    """A station search was attempted before a station catalog was loaded."""


class RangeUnavailable(RaobtError):
    """The requested export window is not covered by the supplied soundings."""


class StationParseError(RaobtError, ValueError):
    """A line of the station listing could not be parsed."""

    def __init__(self, reason: str, line: Optional[str] = None):
        self.reason = reason
        self.line = line
        if line is None:
            super().__init__(f"Could not parse station listing: {reason}")
        else:
            super().__init__(f"Could not parse station line {line!r}: {reason}")


class SoundingParseError(RaobtError, ValueError):
    """FSL sounding text could not be parsed."""
