"""
Semantic keyword generation for interactive elements.

A keyword is the element's most descriptive attribute, normalized to
``[a-z0-9_]``. The enriched ``type`` adds a detected action verb and the
container the element lives in, so that e.g. the submit button of a login form
and that of a search form get different ``full_keyword`` values.
"""
import hashlib
import re
from typing import Dict, Optional

from .constants import ACTION_WORDS, KEYWORD_MAX_LENGTH, FULL_KEYWORD_MAX_LENGTH
from .models import InteractiveElement, KeywordInfo

# Attribute priority for the raw keyword
KEYWORD_ATTRIBUTES = ('aria_label', 'placeholder', 'alt', 'name', 'id', 'title', 'text')


def normalize_keyword(raw: str, max_length: int = KEYWORD_MAX_LENGTH) -> str:
    text = re.sub(r'\s+', ' ', (raw or '').lower()).strip()
    return re.sub(r'[^a-z0-9]', '_', text)[:max_length]


def raw_keyword(element: InteractiveElement) -> str:
    for attr in KEYWORD_ATTRIBUTES:
        value = getattr(element, attr, '') or ''
        if value.strip():
            return value.strip()
    return ''


def synthesize_keyword(element: InteractiveElement, position: int = 0) -> str:
    """``<tag>_<token>`` for elements without any descriptive attribute.

    The token is a hash of tag, selector and position so re-extracting an
    unchanged page yields the same keyword.
    """
    seed = f"{element.type}|{element.selector}|{position}"
    token = hashlib.sha256(seed.encode()).hexdigest()[:8]
    return f"{element.type}_{token}"


def detect_action(keyword: str) -> Optional[str]:
    for action in ACTION_WORDS:
        if action in keyword:
            return action
    return None


def generate_keyword(element: InteractiveElement, position: int = 0) -> KeywordInfo:
    keyword = normalize_keyword(raw_keyword(element) or synthesize_keyword(element, position))

    element_type = element.type or 'element'
    action = detect_action(keyword)
    if action:
        element_type = f"{action}_{element_type}"

    hint = normalize_keyword(element.context_hint) if element.context_hint else ''
    if hint:
        element_type = f"{element_type}_in_{hint}"

    return KeywordInfo(
        primary=keyword,
        type=element_type,
        full_keyword=f"{element_type}_{keyword}"[:FULL_KEYWORD_MAX_LENGTH],
    )


class KeywordDisambiguator:
    """Makes primary keywords unique within one page's extraction pass."""

    def __init__(self):
        self._seen: Dict[str, int] = {}

    def unique(self, keyword: str) -> str:
        count = self._seen.get(keyword)
        if count is None:
            self._seen[keyword] = 0
            return keyword
        while True:
            count += 1
            candidate = f"{keyword}-{count}"
            if candidate not in self._seen:
                break
        self._seen[keyword] = count
        self._seen[candidate] = 0
        return candidate

    def assign(self, element: InteractiveElement, position: int = 0) -> KeywordInfo:
        info = generate_keyword(element, position)
        primary = self.unique(info.primary)
        if primary != info.primary:
            info = KeywordInfo(
                primary=primary,
                type=info.type,
                full_keyword=f"{info.type}_{primary}"[:FULL_KEYWORD_MAX_LENGTH],
            )
        element.keywords = info
        return info
