# models.py
from dataclasses import dataclass, field, asdict, fields
from enum import Enum
from typing import Optional, List, Dict, Any

from .constants import (
    MAX_DEPTH, MAX_PAGES, MAX_LINKS_PER_PAGE, PAGE_TIMEOUT, SETTLE_WAIT,
    MAX_CLICKS_PER_PAGE, PARALLEL_TASKS, logger,
)
from .utils import camelize, snakify_keys


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in snakify_keys(data).items() if k in names}


class CrawlState(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    STOPPED = 'stopped'
    COMPLETED = 'completed'


@dataclass(frozen=True)
class CrawlConfig:
    max_depth: int = MAX_DEPTH
    max_pages: int = MAX_PAGES
    max_links_per_page: int = MAX_LINKS_PER_PAGE
    ignore_params: bool = True
    follow_external_links: bool = False
    include_screenshots: bool = True
    timeout: int = PAGE_TIMEOUT  # ms, per navigation
    capture_button_interactions: bool = True
    capture_form_interactions: bool = True
    concurrency: int = PARALLEL_TASKS
    settle_wait: int = SETTLE_WAIT  # ms, per click
    explore_clicks: bool = False
    max_clicks_per_page: int = MAX_CLICKS_PER_PAGE
    screenshots_dir: Optional[str] = None
    wait_until: str = 'load'
    headless: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return camelize(asdict(self))


@dataclass
class PageNode:
    id: str
    url: str
    title: str = ''
    description: str = ''
    headings: List[Dict[str, Any]] = field(default_factory=list)
    links: int = 0
    forms: int = 0
    buttons: int = 0
    inputs: int = 0
    screenshot: str = ''
    last_visited: str = ''
    virtual: bool = False
    page_type: Optional[str] = None
    is_form_page: bool = False
    has_modals: bool = False
    parent_url: Optional[str] = None
    action_type: Optional[str] = None
    action_text: Optional[str] = None
    action_selector: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return camelize({k: v for k, v in asdict(self).items() if v is not None})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PageNode':
        return cls(**_known_fields(cls, data))


@dataclass
class Edge:
    from_id: str
    to_id: str
    type: str = 'link'  # link, button, form
    text: str = ''
    selector: str = ''
    timestamp: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.from_id,
            'to': self.to_id,
            'type': self.type,
            'text': self.text,
            'selector': self.selector,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Edge':
        return cls(
            from_id=data['from'],
            to_id=data['to'],
            type=data.get('type', 'link'),
            text=data.get('text', ''),
            selector=data.get('selector', ''),
            timestamp=data.get('timestamp', ''),
        )


@dataclass
class KeywordInfo:
    primary: str
    type: str
    full_keyword: str


@dataclass
class InteractiveElement:
    type: str  # input, textarea, select, img, button
    selector: str = ''
    text: str = ''
    aria_label: str = ''
    placeholder: str = ''
    alt: str = ''
    name: str = ''
    id: str = ''
    title: str = ''
    href: str = ''
    src: str = ''
    input_type: str = ''
    label: str = ''
    context_hint: str = ''
    required: bool = False
    options: List[str] = field(default_factory=list)
    bbox: Optional[Dict[str, float]] = None
    is_safe_button: Optional[bool] = None
    form_id: Optional[str] = None
    form_action: Optional[str] = None
    keywords: Optional[KeywordInfo] = None
    analysis: Optional[Dict[str, Any]] = None

    @property
    def keyword(self) -> Optional[str]:
        return self.keywords.primary if self.keywords else None

    @property
    def full_keyword(self) -> Optional[str]:
        return self.keywords.full_keyword if self.keywords else None

    def to_dict(self) -> Dict[str, Any]:
        data = {k: v for k, v in asdict(self).items() if v is not None and k != 'keywords'}
        if self.keywords:
            data['keyword'] = self.keywords.primary
            data['keyword_type'] = self.keywords.type
            data['full_keyword'] = self.keywords.full_keyword
        return camelize(data)


@dataclass
class Link:
    url: str
    text: str = ''
    selector: str = ''


@dataclass
class FormField:
    name: str = ''
    id: str = ''
    type: str = ''
    required: bool = False
    placeholder: str = ''
    label: str = ''


@dataclass
class Form:
    id: str = ''
    action: str = ''
    method: str = 'get'
    selector: str = ''
    fields: List[FormField] = field(default_factory=list)
    form_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return camelize({k: v for k, v in asdict(self).items() if v is not None})


@dataclass
class Modal:
    selector: str = ''
    title: str = ''
    buttons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PageExtraction:
    """Structured result of inspecting one loaded page."""
    url: str
    title: str = ''
    description: str = ''
    path: str = ''
    headings: List[Dict[str, Any]] = field(default_factory=list)
    link_count: int = 0
    form_count: int = 0
    button_count: int = 0
    input_count: int = 0
    links: List[Link] = field(default_factory=list)
    buttons: List[InteractiveElement] = field(default_factory=list)
    forms: List[Form] = field(default_factory=list)
    elements: List[InteractiveElement] = field(default_factory=list)
    modals: List[Modal] = field(default_factory=list)
    screenshot: str = ''

    def node_metadata(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'description': self.description,
            'headings': self.headings,
            'links': self.link_count,
            'forms': self.form_count,
            'buttons': self.button_count,
            'inputs': self.input_count,
            'screenshot': self.screenshot,
            'is_form_page': bool(self.forms),
            'has_modals': bool(self.modals),
        }


@dataclass
class CrawlStats:
    pages_visited: int = 0
    links_found: int = 0
    elements_found: int = 0
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    def add_error(self, message: str):
        logger.warning(message)
        self.errors.append(message)

    def to_dict(self, node_count: int = 0, edge_count: int = 0) -> Dict[str, Any]:
        data = camelize(asdict(self))
        data['nodeCount'] = node_count
        data['edgeCount'] = edge_count
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CrawlStats':
        return cls(**_known_fields(cls, data))


@dataclass
class QueueItem:
    """BFS frontier entry."""
    url: str
    depth: int


@dataclass
class ProgressUpdate:
    pages_visited: int
    pages_total: int
    links_found: int
    elements_found: int
    errors: int
    complete: bool = False
    node_count: Optional[int] = None
    edge_count: Optional[int] = None
