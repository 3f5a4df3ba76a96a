# crawler.py
import asyncio
import inspect
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Optional, Set, Union

from playwright.async_api import async_playwright, Page, Browser, BrowserContext, TimeoutError as PlaywrightTimeoutError

from .analysis import infer_page_type
from .config import build_config, validate_start_url
from .constants import logger
from .errors import BrowserUnavailableError, CrawlStateError
from .graph import SiteGraph
from .interactions import (
    ElementIndex, explore_clicks, record_button_interactions, record_form_interactions,
)
from .models import CrawlConfig, CrawlState, CrawlStats, PageExtraction, ProgressUpdate, QueueItem
from .snapshots import inspect_page
from .urls import UrlFilter
from .utils import now_iso

ProgressCallback = Callable[[ProgressUpdate], Any]


@dataclass
class CrawlResult:
    graph: SiteGraph
    elements: ElementIndex
    stats: CrawlStats
    config: CrawlConfig
    state: CrawlState


async def _dismiss_dialog(dialog):
    await dialog.dismiss()


class SiteCrawler:
    """Breadth-first site crawler building a page graph and an element index.

    Use as an async context manager to launch Playwright, or pass an existing
    BrowserContext (anything with ``new_page()``) as ``context``.
    """

    def __init__(
        self,
        start_url: str,
        config: Optional[Union[CrawlConfig, Dict[str, Any]]] = None,
        context: Optional[BrowserContext] = None,
    ):
        self.base_hostname = validate_start_url(start_url)
        self.start_url = start_url
        self.config = build_config(config)

        self.context = context
        self.playwright = None
        self.browser: Optional[Browser] = None
        self._owns_browser = False

        self.graph = SiteGraph()
        self.elements = ElementIndex()
        self.stats = CrawlStats()
        self.url_filter = UrlFilter(self.base_hostname, self.config, self.stats)
        self.queue: Deque[QueueItem] = deque()
        self.state = CrawlState.IDLE
        self.on_progress: Optional[ProgressCallback] = None

        self._open_pages: Set[Page] = set()
        self._in_flight = 0
        self._stop_requested = False
        self._work_available: Optional[asyncio.Event] = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    async def initialize(self):
        if self.context is not None:
            return
        try:
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(headless=self.config.headless)
            self.context = await self.browser.new_context()
            self._owns_browser = True
        except Exception as e:
            await self.cleanup()
            raise BrowserUnavailableError(f"Cannot start browser: {e}") from e

    async def cleanup(self):
        await self._close_open_pages()
        if not self._owns_browser and self.playwright is None:
            return
        if self.context and self._owns_browser:
            await self.context.close()
        if self.browser:
            await self.browser.close()
        if self.playwright:
            await self.playwright.stop()
        self.context = self.browser = self.playwright = None
        self._owns_browser = False

    @property
    def result(self) -> CrawlResult:
        return CrawlResult(self.graph, self.elements, self.stats, self.config, self.state)

    async def start_crawl(self, on_progress: Optional[ProgressCallback] = None) -> CrawlResult:
        if self.state != CrawlState.IDLE:
            raise CrawlStateError(self.state.value)
        if self.context is None:
            raise BrowserUnavailableError("No browser context; use 'async with SiteCrawler(...)' or pass one in")

        self.on_progress = on_progress
        self.state = CrawlState.RUNNING
        self.stats.start_time = now_iso()
        self._work_available = asyncio.Event()
        start = self.url_filter.normalize(self.start_url) or self.start_url
        self.queue.append(QueueItem(start, 0))

        logger.info(f"Starting crawl of {self.base_hostname} from {start}")
        logger.info(
            f"Max depth: {self.config.max_depth}, max pages: {self.config.max_pages}, "
            f"workers: {self.config.concurrency}"
        )

        workers = [asyncio.create_task(self._worker()) for _ in range(self.config.concurrency)]
        try:
            await asyncio.gather(*workers)
        except BrowserUnavailableError:
            self._stop_requested = True
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            await self._close_open_pages()
            self.state = CrawlState.STOPPED
            self.stats.end_time = now_iso()
            logger.error("Browser became unavailable, crawl aborted")
            raise

        if self.state == CrawlState.RUNNING:
            self.state = CrawlState.COMPLETED
            self.stats.end_time = now_iso()

        logger.info(
            f"Crawl {self.state.value}! pages: {self.stats.pages_visited}, "
            f"nodes: {self.graph.node_count}, edges: {self.graph.edge_count}, "
            f"elements: {self.stats.elements_found}, errors: {len(self.stats.errors)}, "
            f"unvisited queue: {len(self.queue)}"
        )
        await self._report(complete=True)
        return self.result

    async def stop_crawl(self) -> Dict[str, int]:
        """Stop after the current page, closing every open page. Partial results are kept."""
        self._stop_requested = True
        # A crawler stopped before it started can no longer be started.
        if self.state in (CrawlState.IDLE, CrawlState.RUNNING):
            self.state = CrawlState.STOPPED
        await self._close_open_pages()
        self.stats.end_time = now_iso()
        if self._work_available is not None:
            self._work_available.set()
        logger.info(f"Crawl stopped after {self.stats.pages_visited} pages")
        return {
            'pages_visited': self.stats.pages_visited,
            'elements_found': self.stats.elements_found,
            'errors': len(self.stats.errors),
        }

    async def _worker(self):
        while not self._stop_requested:
            item = self._claim_next()
            if item is None:
                if self._in_flight == 0:
                    self._work_available.set()
                    return
                self._work_available.clear()
                await self._work_available.wait()
                continue

            self._in_flight += 1
            try:
                await self._visit(item)
            finally:
                self._in_flight -= 1
                self._work_available.set()

    def _claim_next(self) -> Optional[QueueItem]:
        # No await in here: pop and mark visited happen as one step.
        while self.queue:
            if self.stats.pages_visited + self._in_flight >= self.config.max_pages:
                return None
            item = self.queue.popleft()
            if item.depth > self.config.max_depth or not self.url_filter.should_crawl(item.url):
                logger.debug(f"Skipping {item.url} (depth {item.depth})")
                continue
            self.url_filter.mark_visited(item.url)
            return item
        return None

    async def _visit(self, item: QueueItem):
        url = item.url
        logger.info(
            f"[{self.stats.pages_visited + 1}/{self.config.max_pages}] "
            f"Crawling (depth {item.depth}/{self.config.max_depth}): {url}"
        )
        page = await self._open_page(url)
        if page is None:
            return

        recorded = False
        try:
            if not await self._navigate(page, url) or self._stop_requested:
                return

            node_id = self.url_filter.node_id(url)
            try:
                extraction = await inspect_page(page, url, self.config, node_id)
            except Exception as e:
                if not self._stop_requested:
                    self.stats.add_error(f"Error extracting data from {url}: {e}")
                return

            click_states = []
            if self.config.explore_clicks and not self._stop_requested:
                click_states = await explore_clicks(page, url, extraction, self.config, self.stats)
            if self._stop_requested:
                return

            self._record_page(item, node_id, extraction, click_states)
            recorded = True
        finally:
            await self._release_page(page)

        if recorded:
            await self._report()

    async def _open_page(self, url: str) -> Optional[Page]:
        try:
            page = await self.context.new_page()
        except Exception as e:
            if not self._backend_alive():
                raise BrowserUnavailableError(f"Browser unavailable while opening {url}: {e}") from e
            self.stats.add_error(f"Error creating page for {url}: {e}")
            return None
        self._open_pages.add(page)
        page.on('dialog', _dismiss_dialog)
        return page

    async def _navigate(self, page: Page, url: str) -> bool:
        timeout = self.config.timeout
        try:
            await asyncio.wait_for(
                page.goto(url, wait_until=self.config.wait_until, timeout=timeout),
                timeout / 1000 if timeout else None,
            )
            return True
        except (PlaywrightTimeoutError, asyncio.TimeoutError):
            if not self._stop_requested:
                self.stats.add_error(f"Timeout waiting for {url} to load")
        except Exception as e:
            if not self._stop_requested:
                self.stats.add_error(f"Error crawling {url}: {e}")
        return False

    async def _release_page(self, page: Page):
        self._open_pages.discard(page)
        try:
            await page.close()
        except Exception as e:
            if not self._stop_requested:
                self.stats.add_error(f"Error closing page: {e}")

    async def _close_open_pages(self):
        pages = list(self._open_pages)
        self._open_pages.clear()
        for page in pages:
            try:
                await page.close()
            except Exception as e:
                logger.debug(f"Page already closed: {e}")

    def _backend_alive(self) -> bool:
        browser = self.browser or getattr(self.context, 'browser', None)
        if browser is None:
            return True
        return browser.is_connected()

    def _record_page(self, item: QueueItem, node_id: str, extraction: PageExtraction, click_states: list):
        url = item.url
        page_type = infer_page_type(extraction)
        self.graph.add_node(node_id, url, page_type=page_type, **extraction.node_metadata())

        self.stats.elements_found += self.elements.add_page(node_id, url, extraction, page_type)
        for state in click_states:
            self.stats.elements_found += self.elements.add_click_state(node_id, url, state)

        self._process_links(item, node_id, extraction)
        if self.config.capture_button_interactions:
            record_button_interactions(self.graph, node_id, url, extraction)
        if self.config.capture_form_interactions:
            record_form_interactions(self.graph, node_id, url, extraction)

        self.stats.pages_visited += 1
        logger.info(
            f"    {extraction.title or node_id}: {len(extraction.links)} links, "
            f"{len(extraction.buttons)} buttons, {len(extraction.elements)} elements"
        )

    def _process_links(self, item: QueueItem, node_id: str, extraction: PageExtraction):
        self.stats.links_found += len(extraction.links)
        next_depth = item.depth + 1
        for link in extraction.links[:self.config.max_links_per_page]:
            target = self.url_filter.normalize(link.url, item.url)
            if not target or not self.url_filter.should_crawl(target):
                continue
            self.graph.add_edge(node_id, self.url_filter.node_id(target), 'link', link.text, link.selector)
            if next_depth <= self.config.max_depth:
                self.queue.append(QueueItem(target, next_depth))

    async def _report(self, complete: bool = False):
        if self.on_progress is None:
            return
        update = ProgressUpdate(
            pages_visited=self.stats.pages_visited,
            pages_total=self.stats.pages_visited + self._in_flight + len(self.queue),
            links_found=self.stats.links_found,
            elements_found=self.stats.elements_found,
            errors=len(self.stats.errors),
            complete=complete,
            node_count=self.graph.node_count if complete else None,
            edge_count=self.graph.edge_count if complete else None,
        )
        try:
            result = self.on_progress(update)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.stats.add_error(f"Error in progress callback: {e}")


async def crawl_site(
    start_url: str,
    config: Optional[Union[CrawlConfig, Dict[str, Any]]] = None,
    on_progress: Optional[ProgressCallback] = None,
    context: Optional[BrowserContext] = None,
) -> CrawlResult:
    """Run a complete crawl and return its graph, element index and stats."""
    async with SiteCrawler(start_url, config, context=context) as crawler:
        return await crawler.start_crawl(on_progress)
