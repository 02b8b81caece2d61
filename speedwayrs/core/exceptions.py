"""Exception hierarchy shared by the scraper and the loader."""


class SpeedwayError(Exception):
    """Base class for all speedwayrs errors."""
    pass


class ScraperError(SpeedwayError):
    """Raised when a page cannot be fetched or discovery fails."""
    pass


class ExtractionError(ScraperError):
    """Raised when a page does not have the expected structure."""

    def __init__(self, url: str, message: str):
        self.url = url
        self.message = message
        super().__init__(f"{message} (site: {url})")


class LoaderError(SpeedwayError):
    """Base class for loader failures."""
    pass


class ArtifactDecodeError(LoaderError):
    """Raised when the scraper artifact holds something other than GameInfo values."""

    def __init__(self, message: str, offset: int):
        self.offset = offset
        super().__init__(f"{message} (offset {offset})")


class ResolutionError(LoaderError):
    """Raised when a reference entity can neither be found nor created."""
    pass
