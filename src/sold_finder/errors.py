"""Error taxonomy.

Only ``MissingInputError`` ever reaches a caller. The ``SourceError`` family
is raised inside a fetcher and converted into an empty ``FetchResult`` at
the fetch boundary.
"""


class SoldFinderError(Exception):
    """Base class for all sold-finder errors."""


class MissingInputError(SoldFinderError, ValueError):
    """Raised when the postcode parameter is missing or blank."""


class SourceError(SoldFinderError):
    """An upstream source could not produce records."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class UpstreamUnavailableError(SourceError):
    """Connection failure or non-2xx response from an upstream source."""


class UpstreamTimeoutError(SourceError):
    """An upstream call exceeded its time budget."""


class MalformedUpstreamPayloadError(SourceError):
    """An upstream response could not be decoded into records."""
