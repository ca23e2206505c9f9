"""Race lookup errors.

Ambiguous and not-found lookups are outcomes, not errors; see
``MatchConfidence`` in models.py.
"""


class RaceLookupError(Exception):
    """Base race lookup error."""
    pass


class UnsupportedRace(RaceLookupError):
    """No race configuration matches the given name/tag."""
    pass


class NotSupportedForYear(RaceLookupError):
    """Race is known but has no platform identifiers for the year."""

    def __init__(self, race_name: str, year: int):
        self.race_name = race_name
        self.year = year
        super().__init__(f"{race_name}: results not available for {year}")


class NetworkError(RaceLookupError):
    """Platform unreachable, timed out or temporarily failing. Safe to retry."""
    pass


class ParseError(RaceLookupError):
    """Platform response did not have the expected shape (site drift)."""
    pass


class RegistryError(RaceLookupError):
    """Invalid race table (collisions, unknown platforms, bad rules)."""
    pass
