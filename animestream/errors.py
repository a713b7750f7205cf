class AnimeStreamError(Exception):
    """Base class for errors raised by animestream."""


class CatalogFetchError(AnimeStreamError):
    """The metadata API could not be reached or returned an unusable payload."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


class EmptyQueryError(AnimeStreamError, ValueError):
    """Search text was blank after trimming."""
