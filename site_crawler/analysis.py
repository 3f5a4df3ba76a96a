"""
Heuristic classifiers for pages, forms and interactive elements.

Every function here is pure: it looks only at the structured data passed in, so
the word lists and thresholds can be changed without touching the crawler.
"""
import re
from typing import Dict, Any, Iterable

from .constants import DANGER_WORDS
from .models import InteractiveElement, Form, PageExtraction

TEXT_INPUT_TYPES = ('text', 'email', 'password', 'search', 'tel', 'url', 'number')


def is_safe_button(text: str, danger_words: Iterable[str] = DANGER_WORDS) -> bool:
    """False when the label contains a danger word (logout, delete, ...)."""
    lowered = (text or '').lower()
    return not any(word in lowered for word in danger_words)


def _classes(element: InteractiveElement) -> str:
    selector = element.selector or ''
    if selector.startswith('#') or '.' not in selector:
        return ''
    return ' '.join(selector.split('.')[1:]).lower()


def _content(element: InteractiveElement) -> str:
    keyword = element.keywords.primary if element.keywords else ''
    return ' '.join([keyword, element.text, element.id, _classes(element)]).lower()


def classify_element_type(element: InteractiveElement) -> str:
    tag = element.type
    input_type = element.input_type
    classes = _classes(element)
    text = element.text or ''

    if tag == 'button' or input_type in ('submit', 'button') or 'btn' in classes or 'button' in classes:
        if input_type == 'submit' or re.search(r'submit|save|ok|apply', text, re.I):
            return 'submit-button'
        if re.search(r'cancel|back|return', text, re.I):
            return 'cancel-button'
        return 'button'

    if tag == 'input':
        if input_type in TEXT_INPUT_TYPES or not input_type:
            return 'text-input'
        if input_type == 'checkbox':
            return 'checkbox'
        if input_type == 'radio':
            return 'radio-button'
        if input_type == 'file':
            return 'file-upload'
        if input_type in ('date', 'datetime-local'):
            return 'date-picker'
        return 'input-other'

    if tag == 'a':
        if re.match(r'^(mailto:|tel:)', element.href or ''):
            return 'contact-link'
        return 'link'
    if tag == 'select':
        return 'dropdown'
    if tag == 'textarea':
        return 'text-area'
    if tag == 'img':
        return 'image'

    if re.search(r'tab|nav-item', classes):
        return 'tab'
    if re.search(r'dropdown|select', classes):
        return 'dropdown'
    if re.search(r'modal-close|close|dismiss', classes):
        return 'close-button'
    return 'generic-interactive'


def determine_interaction_type(element: InteractiveElement) -> str:
    tag = element.type
    input_type = element.input_type
    classes = _classes(element)

    if tag == 'a' or 'link' in classes:
        return 'navigation'
    if tag == 'button' or input_type in ('button', 'submit') or re.search(r'btn|button', classes):
        return 'click'
    if tag == 'input':
        if input_type in TEXT_INPUT_TYPES or not input_type:
            return 'text-entry'
        if input_type in ('checkbox', 'radio'):
            return 'toggle'
        if input_type == 'file':
            return 'file-selection'
        if input_type == 'range':
            return 'slider'
        if input_type in ('date', 'time', 'datetime-local'):
            return 'date-selection'
        if input_type == 'color':
            return 'color-selection'
    if tag == 'select':
        return 'selection'
    if tag == 'textarea':
        return 'text-entry'
    if re.search(r'toggle|switch|checkbox', classes):
        return 'toggle'
    if re.search(r'accordion|collapse', classes):
        return 'expand-collapse'
    return 'click'


def determine_purpose(element: InteractiveElement) -> str:
    content = _content(element)
    tag = element.type

    if re.search(r'login|log in|signin|sign in|signup|register', content):
        return 'authentication'
    if re.search(r'search|find|filter|query', content):
        return 'search'
    if (tag == 'button' or element.input_type == 'submit') and \
            re.search(r'submit|save|send|apply|ok|continue|confirm', content):
        return 'form-submission'
    if re.search(r'home|menu|navbar|nav|navigation|next|previous|sitemap', content):
        return 'navigation'
    if re.search(r'cancel|close|dismiss|abort|back', content):
        return 'cancellation'
    if re.search(r'edit|update|modify|change|create|new|add|remove|delete|clear', content):
        return 'content-manipulation'
    if re.search(r'share|like|follow|comment|post|tweet|subscribe', content):
        return 'social-interaction'
    if tag == 'select' or element.input_type in ('checkbox', 'radio') or \
            re.search(r'select|choose|option|preference|setting', content):
        return 'selection'
    return 'general-interaction'


def calculate_importance(element: InteractiveElement) -> int:
    """Score 0-10, starting at 5."""
    score = 5
    content = _content(element)

    if re.search(r'primary|main|important|submit|confirm|save|create|add|login|signup|register', content):
        score += 2
    if re.search(r'cancel|back|close|secondary', content):
        score -= 1
    if element.type == 'button' or element.input_type == 'submit':
        score += 1

    bbox = element.bbox or {}
    if bbox.get('width', 0) > 200 or bbox.get('height', 0) > 50:
        score += 1
    if bbox and bbox.get('y', 0) + bbox.get('height', 0) / 2 < 500:
        score += 1

    return max(0, min(10, score))


def assess_safety(element: InteractiveElement) -> Dict[str, bool]:
    content = _content(element)
    dangerous = re.search(r'delete|remove|clear|reset|logout|log out|sign out|unsubscribe', content) is not None
    href = element.href or ''
    external = bool(href) and not href.startswith(('/', '#', 'javascript:'))
    return {
        'is_dangerous': dangerous,
        'is_external': external,
        'safe_to_click': not dangerous and not external,
    }


def analyze_element(element: InteractiveElement) -> Dict[str, Any]:
    return {
        'element_type': classify_element_type(element),
        'interaction_type': determine_interaction_type(element),
        'semantic_purpose': determine_purpose(element),
        'importance': calculate_importance(element),
        'safety': assess_safety(element),
    }


def infer_form_type(form: Form) -> str:
    """Guess what a form is for from its id, action and fields."""
    field_types = {f.type for f in form.fields}
    names = ' '.join(
        [form.id, form.action] + [f"{f.name} {f.id} {f.placeholder} {f.label}" for f in form.fields]
    ).lower()

    if 'password' in field_types:
        if re.search(r'register|signup|sign up|confirm', names) or \
                sum(1 for f in form.fields if f.type == 'password') > 1:
            return 'registration'
        return 'login'
    if 'search' in field_types or re.search(r'search|query|\bq\b', names):
        return 'search'
    if re.search(r'contact|message|feedback|subject', names):
        return 'contact'
    if re.search(r'subscribe|newsletter', names):
        return 'subscription'
    if 'file' in field_types or re.search(r'upload', names):
        return 'upload'
    if re.search(r'checkout|payment|card|billing', names):
        return 'checkout'
    return 'data-entry'


def infer_page_type(extraction: PageExtraction) -> str:
    """Guess the role of a page from its path, headings and forms."""
    form_types = [f.form_type or infer_form_type(f) for f in extraction.forms]
    text = ' '.join(
        [extraction.path or '', extraction.title or ''] + [h.get('text', '') for h in extraction.headings]
    ).lower()

    if 'login' in form_types:
        return 'login'
    if 'registration' in form_types:
        return 'registration'
    if 'search' in form_types and re.search(r'search|results', text):
        return 'search'
    if re.search(r'dashboard|overview', text):
        return 'dashboard'
    if re.search(r'settings|preferences|account|profile', text):
        return 'settings'
    if re.search(r'contact', text) or 'contact' in form_types:
        return 'contact'
    if extraction.path in ('', '/'):
        return 'home'
    if extraction.forms:
        return 'form'
    if extraction.link_count > 20 and not extraction.forms:
        return 'listing'
    return 'content'
