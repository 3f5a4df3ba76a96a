# snapshots.py
import base64
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import Page

from .analysis import is_safe_button, infer_form_type
from .constants import CONTEXT_HINT_DEPTH, MODAL_SELECTORS, logger
from .models import (
    CrawlConfig, PageExtraction, Link, InteractiveElement, Form, FormField, Modal,
)

# Runs inside the page; must stay self-contained and return JSON-serializable data.
EXTRACT_PAGE_SCRIPT = '''
    ([contextDepth, modalSelectors]) => {
        function getUniqueSelector(el) {
            if (el.id) return '#' + el.id;
            const tag = el.tagName.toLowerCase();
            const classes = Array.from(el.classList || []).join('.');
            return classes ? tag + '.' + classes : tag;
        }

        function findContainerContext(el) {
            let node = el.parentNode;
            for (let i = 0; i < contextDepth && node && node !== document.body && node.nodeType === Node.ELEMENT_NODE; i++) {
                if (node.id) return node.id;
                const cls = typeof node.className === 'string' ? node.className.trim() : '';
                if (cls) return cls.split(/\\s+/)[0];
                node = node.parentNode;
            }
            return '';
        }

        function findLabelText(el) {
            if (el.id) {
                const label = document.querySelector('label[for="' + CSS.escape(el.id) + '"]');
                if (label) return label.textContent.trim();
            }
            let parent = el.parentNode;
            while (parent && parent !== document) {
                if (parent.tagName === 'LABEL') return parent.textContent.trim();
                parent = parent.parentNode;
            }
            const prev = el.previousSibling;
            if (prev && (prev.nodeType === Node.TEXT_NODE || prev.nodeType === Node.ELEMENT_NODE)) {
                return (prev.textContent || '').trim();
            }
            return '';
        }

        function bbox(el) {
            const r = el.getBoundingClientRect();
            return {x: r.x, y: r.y, width: r.width, height: r.height};
        }

        const descriptionTag = document.querySelector('meta[name="description"]');
        const headings = Array.from(document.querySelectorAll('h1, h2, h3')).map(h => ({
            level: parseInt(h.tagName.substring(1)),
            text: (h.innerText || h.textContent || '').trim()
        }));

        const links = [];
        document.querySelectorAll('a').forEach(a => {
            const href = a.getAttribute('href');
            if (!href) return;
            links.push({
                url: href,
                text: (a.innerText || '').trim() || a.getAttribute('title') || '',
                selector: getUniqueSelector(a)
            });
        });

        const buttonSelector = 'button, input[type="button"], input[type="submit"]';
        const buttons = [];
        document.querySelectorAll(buttonSelector).forEach(b => {
            buttons.push({
                text: ((b.innerText || b.value || '').trim()) || b.id || 'Button',
                selector: getUniqueSelector(b),
                ariaLabel: b.getAttribute('aria-label') || '',
                id: b.id || '',
                name: b.getAttribute('name') || '',
                title: b.getAttribute('title') || '',
                inputType: b.getAttribute('type') || '',
                formId: b.form ? (b.form.id || null) : null,
                formAction: b.form ? (b.form.getAttribute('action') || null) : null,
                contextHint: findContainerContext(b),
                bbox: bbox(b)
            });
        });

        const forms = [];
        document.querySelectorAll('form').forEach(form => {
            const fields = [];
            form.querySelectorAll('input, textarea, select').forEach(f => {
                if (f.type === 'button' || f.type === 'submit') return;
                fields.push({
                    name: f.getAttribute('name') || '',
                    id: f.id || '',
                    type: f.type || f.tagName.toLowerCase(),
                    required: !!f.required,
                    placeholder: f.getAttribute('placeholder') || '',
                    label: findLabelText(f)
                });
            });
            forms.push({
                id: form.id || '',
                action: form.getAttribute('action') || '',
                method: (form.getAttribute('method') || 'get').toLowerCase(),
                selector: getUniqueSelector(form),
                fields: fields
            });
        });

        const elements = [];
        document.querySelectorAll('input:not([type="button"]):not([type="submit"]), textarea').forEach(el => {
            elements.push({
                type: el.tagName.toLowerCase(),
                inputType: el.getAttribute('type') || 'text',
                placeholder: el.getAttribute('placeholder') || '',
                ariaLabel: el.getAttribute('aria-label') || '',
                name: el.getAttribute('name') || '',
                id: el.id || '',
                title: el.getAttribute('title') || '',
                required: !!el.required,
                selector: getUniqueSelector(el),
                label: findLabelText(el),
                contextHint: findContainerContext(el),
                bbox: bbox(el)
            });
        });
        document.querySelectorAll('select').forEach(el => {
            elements.push({
                type: 'select',
                ariaLabel: el.getAttribute('aria-label') || '',
                name: el.getAttribute('name') || '',
                id: el.id || '',
                title: el.getAttribute('title') || '',
                options: Array.from(el.options).map(o => o.text),
                selector: getUniqueSelector(el),
                label: findLabelText(el),
                contextHint: findContainerContext(el),
                bbox: bbox(el)
            });
        });
        document.querySelectorAll('img').forEach(el => {
            elements.push({
                type: 'img',
                src: el.getAttribute('src') || '',
                alt: el.getAttribute('alt') || '',
                id: el.id || '',
                title: el.getAttribute('title') || '',
                selector: getUniqueSelector(el),
                contextHint: findContainerContext(el),
                bbox: bbox(el)
            });
        });

        const modals = [];
        document.querySelectorAll(modalSelectors).forEach(modal => {
            const style = window.getComputedStyle(modal);
            if (style.display === 'none' || style.visibility === 'hidden') return;
            const heading = modal.querySelector('h1, h2, h3, h4, h5, .title, .header');
            modals.push({
                selector: getUniqueSelector(modal),
                title: heading ? heading.textContent.trim() : '',
                buttons: Array.from(modal.querySelectorAll(buttonSelector))
                    .map(b => (b.textContent || b.value || 'Button').trim())
            });
        });

        return {
            title: document.title,
            description: descriptionTag ? (descriptionTag.getAttribute('content') || '') : '',
            path: window.location.pathname,
            headings: headings,
            linkCount: document.querySelectorAll('a').length,
            formCount: document.querySelectorAll('form').length,
            buttonCount: document.querySelectorAll(buttonSelector).length,
            inputCount: document.querySelectorAll('input:not([type="button"]):not([type="submit"]), textarea, select').length,
            links: links,
            buttons: buttons,
            forms: forms,
            elements: elements,
            modals: modals
        };
    }
'''

_ELEMENT_KEYS = {
    'type': 'type', 'selector': 'selector', 'text': 'text', 'ariaLabel': 'aria_label',
    'placeholder': 'placeholder', 'alt': 'alt', 'name': 'name', 'id': 'id', 'title': 'title',
    'href': 'href', 'src': 'src', 'inputType': 'input_type', 'label': 'label',
    'contextHint': 'context_hint', 'required': 'required', 'options': 'options', 'bbox': 'bbox',
    'formId': 'form_id', 'formAction': 'form_action',
}


def _element(raw: Dict[str, Any], default_type: str) -> InteractiveElement:
    values = {attr: raw[key] for key, attr in _ELEMENT_KEYS.items() if raw.get(key) is not None}
    values.setdefault('type', default_type)
    return InteractiveElement(**values)


def _button(raw: Dict[str, Any]) -> InteractiveElement:
    button = _element(raw, 'button')
    button.type = 'button'
    button.is_safe_button = is_safe_button(button.text)
    return button


def _form(raw: Dict[str, Any]) -> Form:
    form = Form(
        id=raw.get('id') or '',
        action=raw.get('action') or '',
        method=(raw.get('method') or 'get').lower(),
        selector=raw.get('selector') or '',
        fields=[
            FormField(
                name=f.get('name') or '',
                id=f.get('id') or '',
                type=f.get('type') or '',
                required=bool(f.get('required')),
                placeholder=f.get('placeholder') or '',
                label=f.get('label') or '',
            )
            for f in raw.get('fields') or []
        ],
    )
    form.form_type = infer_form_type(form)
    return form


def parse_extraction(raw: Dict[str, Any], url: str) -> PageExtraction:
    """Turn the in-page script's result into a PageExtraction."""
    return PageExtraction(
        url=url,
        title=raw.get('title') or '',
        description=raw.get('description') or '',
        path=raw.get('path') or '',
        headings=list(raw.get('headings') or []),
        link_count=int(raw.get('linkCount') or 0),
        form_count=int(raw.get('formCount') or 0),
        button_count=int(raw.get('buttonCount') or 0),
        input_count=int(raw.get('inputCount') or 0),
        links=[
            Link(
                url=l['url'],
                text=l.get('text') or '',
                selector=l.get('selector') or '',
            )
            for l in raw.get('links') or [] if l.get('url')
        ],
        buttons=[_button(b) for b in raw.get('buttons') or []],
        forms=[_form(f) for f in raw.get('forms') or []],
        elements=[_element(e, 'input') for e in raw.get('elements') or []],
        modals=[
            Modal(selector=m.get('selector') or '', title=m.get('title') or '', buttons=list(m.get('buttons') or []))
            for m in raw.get('modals') or []
        ],
    )


async def extract_raw(page: Page) -> Dict[str, Any]:
    raw = await page.evaluate(EXTRACT_PAGE_SCRIPT, [CONTEXT_HINT_DEPTH, MODAL_SELECTORS])
    if not isinstance(raw, dict):
        raise ValueError(f"extraction script returned {type(raw).__name__}")
    return raw


async def capture_screenshot(page: Page, node_id: str, config: CrawlConfig) -> str:
    """Screenshot reference (file path or data URL); '' when none could be taken."""
    try:
        image = await page.screenshot(full_page=False)
    except Exception as e:
        logger.info(f"No screenshot for {node_id}: {e}")
        return ''
    if not image:
        return ''

    if config.screenshots_dir:
        directory = Path(config.screenshots_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{node_id}.png"
        path.write_bytes(image)
        return str(path)
    return 'data:image/png;base64,' + base64.b64encode(image).decode('utf-8')


async def inspect_page(page: Page, url: str, config: CrawlConfig, node_id: Optional[str] = None) -> PageExtraction:
    raw = await extract_raw(page)
    extraction = parse_extraction(raw, url)
    if config.include_screenshots:
        extraction.screenshot = await capture_screenshot(page, node_id or 'page', config)
    return extraction


def new_elements(before: List[InteractiveElement], after: List[InteractiveElement]) -> List[InteractiveElement]:
    """Elements in ``after`` whose (type, selector, text) was not present in ``before``."""
    seen = {(e.type, e.selector, e.text, e.name, e.placeholder) for e in before}
    return [e for e in after if (e.type, e.selector, e.text, e.name, e.placeholder) not in seen]
