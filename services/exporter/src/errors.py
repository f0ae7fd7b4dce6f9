class ScrapeError(Exception):
    """Base class for failures inside a scrape cycle."""


class FetchError(ScrapeError):
    """The feed could not be retrieved: transport error, timeout or bad status."""


class ParseError(ScrapeError):
    """The feed body does not have the expected shape or values."""
