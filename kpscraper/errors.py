"""
Exception taxonomy for the scraper.

Field-level gaps are not exceptions: they show up as defaults on the
record and in its ``missing`` tuple.
"""
from typing import Optional


class ScraperError(Exception):
    """Base class for every error raised by kpscraper."""


class ConfigError(ScraperError):
    """Invalid settings or unreadable configuration files."""


class NavigationError(ScraperError):
    """The remote view could not reach the expected address or state in time."""

    def __init__(self, url: str, reason: Optional[str] = None):
        self.url = url
        self.reason = reason
        msg = f"could not load {url}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class NotFoundError(ScraperError):
    """A category slug has no match in the known category tree."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"unknown category: {slug!r}")


class CategoryMappingError(ScraperError):
    """A known category slug has no numeric id in the category-id mapping."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"no category id mapped for slug {slug!r}")


class DetailUnavailableError(ScraperError):
    """The detail page of a listing could not be reached at all."""

    def __init__(self, url: str, reason: Optional[str] = None):
        self.url = url
        self.reason = reason
        msg = f"detail page unavailable: {url}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class ExtractionError(ScraperError):
    """An element query or read failed on a page that did load."""
