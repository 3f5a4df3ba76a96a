# interactions.py
import asyncio
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from .analysis import analyze_element
from .constants import logger
from .graph import SiteGraph
from .keywords import KeywordDisambiguator
from .models import CrawlConfig, CrawlStats, InteractiveElement, Form, Modal, PageExtraction
from .snapshots import extract_raw, parse_extraction, new_elements
from .utils import slugify


@dataclass
class ClickState:
    """Elements that appeared after clicking ``trigger`` on a page."""
    index: int
    trigger: InteractiveElement
    elements: List[InteractiveElement] = field(default_factory=list)


@dataclass
class PageElements:
    url: str
    title: str = ''
    path: str = ''
    page_type: Optional[str] = None
    elements: List[InteractiveElement] = field(default_factory=list)
    forms: List[Form] = field(default_factory=list)
    modals: List[Modal] = field(default_factory=list)
    parent_url: Optional[str] = None
    trigger: Optional[InteractiveElement] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'url': self.url, 'title': self.title, 'path': self.path}
        if self.page_type:
            data['pageType'] = self.page_type
        data['elements'] = [e.to_dict() for e in self.elements]
        if self.forms:
            data['forms'] = [f.to_dict() for f in self.forms]
        if self.modals:
            data['modals'] = [m.to_dict() for m in self.modals]
        if self.parent_url:
            data['parentUrl'] = self.parent_url
        if self.trigger:
            data['triggerElement'] = self.trigger.to_dict()
        return data


class ElementIndex:
    """Per-page map of interactive elements annotated with keywords."""

    def __init__(self):
        self.pages: Dict[str, PageElements] = {}

    def __len__(self):
        return len(self.pages)

    @property
    def element_count(self) -> int:
        return sum(len(p.elements) for p in self.pages.values())

    def add_page(self, page_id: str, url: str, extraction: PageExtraction, page_type: Optional[str] = None) -> int:
        """Index one extraction pass; a revisit replaces the page's previous entry."""
        keywords = KeywordDisambiguator()
        elements = list(extraction.elements) + list(extraction.buttons)
        for position, element in enumerate(elements):
            keywords.assign(element, position)
            element.analysis = analyze_element(element)

        self.pages[page_id] = PageElements(
            url=url,
            title=extraction.title,
            path=extraction.path,
            page_type=page_type,
            elements=elements,
            forms=list(extraction.forms),
            modals=list(extraction.modals),
        )
        return len(elements)

    def add_click_state(self, page_id: str, url: str, state: ClickState) -> int:
        keywords = KeywordDisambiguator()
        for position, element in enumerate(state.elements):
            keywords.assign(element, position)
            element.analysis = analyze_element(element)
        parent = self.pages.get(page_id)
        self.pages[f"{page_id}#click-{state.index}"] = PageElements(
            url=url,
            title=parent.title if parent else '',
            path=parent.path if parent else '',
            elements=state.elements,
            parent_url=url,
            trigger=state.trigger,
        )
        return len(state.elements)

    def find(self, keyword: str) -> List[InteractiveElement]:
        """Elements whose primary or full keyword matches, across all pages."""
        return [
            e for p in self.pages.values() for e in p.elements
            if e.keywords and keyword in (e.keywords.primary, e.keywords.full_keyword)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {page_id: page.to_dict() for page_id, page in self.pages.items()}


def button_node_id(node_id: str, text: str) -> str:
    return f"{node_id}_button_{slugify(text)}"


def form_node_id(node_id: str, form: Form, index: int) -> str:
    return f"{node_id}_form_{slugify(form.id or form.form_type or str(index))}"


def record_button_interactions(graph: SiteGraph, node_id: str, url: str, extraction: PageExtraction) -> int:
    """Add a virtual node and a ``button`` edge for every button on the page."""
    for button in extraction.buttons:
        target = graph.add_virtual_node(
            button_node_id(node_id, button.text),
            parent_url=url,
            action_type='button',
            action_text=button.text,
            action_selector=button.selector,
            page_title=extraction.title,
        )
        graph.add_edge(node_id, target.id, 'button', button.text, button.selector)
    return len(extraction.buttons)


def record_form_interactions(graph: SiteGraph, node_id: str, url: str, extraction: PageExtraction) -> int:
    for index, form in enumerate(extraction.forms):
        text = form.id or form.form_type or 'form'
        target = graph.add_virtual_node(
            form_node_id(node_id, form, index),
            parent_url=url,
            action_type='form',
            action_text=text,
            action_selector=form.selector,
            page_title=extraction.title,
        )
        graph.add_edge(node_id, target.id, 'form', text, form.selector)
    return len(extraction.forms)


async def explore_clicks(
    page: Page,
    url: str,
    extraction: PageExtraction,
    config: CrawlConfig,
    stats: CrawlStats,
) -> List[ClickState]:
    """Click safe buttons one at a time and collect elements each click reveals."""
    states = []
    baseline = list(extraction.elements) + list(extraction.buttons)
    candidates = [b for b in extraction.buttons if b.is_safe_button and b.selector]

    for index, button in enumerate(candidates[:config.max_clicks_per_page]):
        logger.debug(f"Clicking button '{button.text}' on {url}")
        try:
            await page.click(button.selector, timeout=config.settle_wait)
            await page.wait_for_load_state('networkidle', timeout=config.settle_wait)
        except (PlaywrightTimeoutError, asyncio.TimeoutError):
            stats.add_error(f"Timeout waiting for {url} to settle after clicking '{button.text}'")
            continue
        except Exception as e:
            stats.add_error(f"Error clicking '{button.text}' on {url}: {e}")
            continue

        try:
            after = parse_extraction(await extract_raw(page), url)
        except Exception as e:
            stats.add_error(f"Error extracting data after clicking '{button.text}' on {url}: {e}")
            continue

        revealed = new_elements(baseline, after.elements + after.buttons)
        if revealed:
            states.append(ClickState(index=index, trigger=button, elements=revealed))

        # The click navigated away: go back before the next one.
        if page.url != url:
            try:
                await page.goto(url, wait_until=config.wait_until, timeout=config.timeout)
            except Exception as e:
                stats.add_error(f"Error returning to {url} after click: {e}")
                break
    return states
