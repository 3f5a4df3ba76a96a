"""
Crawler exceptions.

Only failures that end a crawl are raised. Per-page problems (bad URLs,
navigation timeouts, extraction failures) are recorded in ``CrawlStats.errors``
instead.
"""


class CrawlError(Exception):
    """Base class for crawler errors."""


class ConfigurationError(CrawlError):
    """Invalid start URL or crawl configuration, raised before crawling begins."""


class BrowserUnavailableError(CrawlError):
    """The browser backend cannot be reached; the crawl is aborted."""


class CrawlStateError(CrawlError):
    """start_crawl() called on a crawler that is running or already finished."""

    def __init__(self, state: str):
        super().__init__(f"Crawl cannot be started in state '{state}'")
        self.state = state
