"""
テスト用のフェイクブラウザ（Playwright の Page / BrowserContext 互換）
"""
import asyncio
import copy
import os
import sys

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

# プロジェクトルートをPythonパスに追加
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def make_page(title='', path='/', links=(), buttons=(), elements=(), forms=(), headings=()):
    """インページ抽出スクリプトの戻り値と同じ形の dict を作る"""
    links = [l if isinstance(l, dict) else {'url': l, 'text': l, 'selector': 'a'} for l in links]
    buttons = [b if isinstance(b, dict) else {'text': b, 'selector': f'button.{b.lower().replace(" ", "-")}'} for b in buttons]
    return {
        'title': title,
        'description': '',
        'path': path,
        'headings': list(headings),
        'linkCount': len(links),
        'formCount': len(forms),
        'buttonCount': len(buttons),
        'inputCount': len(elements),
        'links': links,
        'buttons': buttons,
        'forms': list(forms),
        'elements': list(elements),
        'modals': [],
    }


class FakePage:
    def __init__(self, context):
        self.context = context
        self.url = 'about:blank'
        self.closed = False
        self.handlers = {}

    async def goto(self, url, wait_until=None, timeout=None):
        await asyncio.sleep(0)
        self.context.visits.append(url)
        error = self.context.errors.get(url)
        if error is not None:
            raise error
        if url not in self.context.site:
            raise Exception(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        self.url = url

    async def evaluate(self, script, arg=None):
        return copy.deepcopy(self.context.site[self.url])

    async def screenshot(self, full_page=False):
        return b'\x89PNG fake'

    async def click(self, selector, timeout=None):
        revealed = self.context.on_click.get((self.url, selector))
        if revealed is not None:
            self.context.site[self.url] = revealed

    async def wait_for_load_state(self, state=None, timeout=None):
        return None

    def on(self, event, handler):
        self.handlers[event] = handler

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, connected=True):
        self.connected = connected

    def is_connected(self):
        return self.connected


class FakeContext:
    """url -> 抽出結果 のサイトマップを返すブラウザコンテキスト"""

    def __init__(self, site=None, errors=None, on_click=None):
        self.site = dict(site or {})
        self.errors = dict(errors or {})
        self.on_click = dict(on_click or {})
        self.visits = []
        self.pages = []
        self.browser = FakeBrowser()
        self.fail_new_page = None

    async def new_page(self):
        if self.fail_new_page is not None:
            raise self.fail_new_page
        page = FakePage(self)
        self.pages.append(page)
        return page


def timeout_error(url):
    return PlaywrightTimeoutError(f"Timeout 30000ms exceeded navigating to {url}")


@pytest.fixture
def simple_site():
    """home -> about, home -> 外部リンク, about -> home"""
    return FakeContext({
        'https://example.com/': make_page(
            'Home', '/', links=['/about', 'https://other.com/x'], buttons=['Save Changes', 'Delete Account'],
        ),
        'https://example.com/about': make_page('About', '/about', links=['/']),
    })
