"""
ページ抽出（snapshots / interactions）のテスト
"""
from unittest.mock import AsyncMock

import pytest

from site_crawler.interactions import ElementIndex, button_node_id, record_form_interactions
from site_crawler.graph import SiteGraph
from site_crawler.models import CrawlConfig, Link
from site_crawler.snapshots import capture_screenshot, extract_raw, inspect_page, new_elements, parse_extraction

from conftest import FakeContext, make_page

RAW = {
    'title': 'Sign in',
    'description': 'Account access',
    'path': '/login',
    'headings': [{'level': 1, 'text': 'Sign in'}],
    'linkCount': 2,
    'formCount': 1,
    'buttonCount': 2,
    'inputCount': 2,
    'links': [{'url': '/help', 'text': 'Help', 'selector': 'a'}, {'url': '', 'text': 'empty'}],
    'buttons': [
        {'text': 'Log in', 'selector': '#login', 'inputType': 'submit', 'formId': 'login-form'},
        {'text': 'Delete Account', 'selector': 'button.danger'},
    ],
    'forms': [{
        'id': 'login-form', 'action': '/session', 'method': 'POST', 'selector': '#login-form',
        'fields': [
            {'name': 'user', 'type': 'text', 'required': True},
            {'name': 'password', 'type': 'password'},
        ],
    }],
    'elements': [
        {'type': 'input', 'inputType': 'text', 'name': 'user', 'selector': '#user', 'contextHint': 'login-form'},
        {'type': 'input', 'inputType': 'password', 'name': 'password', 'selector': '#password'},
    ],
    'modals': [{'selector': 'div.modal', 'title': 'Cookies', 'buttons': ['OK']}],
}


class TestParseExtraction:

    def test_fields(self):
        extraction = parse_extraction(RAW, 'https://example.com/login')

        assert extraction.title == 'Sign in'
        assert extraction.path == '/login'
        assert [l.url for l in extraction.links] == ['/help']
        assert extraction.links[0] == Link(url='/help', text='Help', selector='a')
        assert extraction.elements[0].context_hint == 'login-form'
        assert extraction.elements[1].input_type == 'password'
        assert extraction.modals[0].buttons == ['OK']

    def test_buttons_and_forms(self):
        extraction = parse_extraction(RAW, 'https://example.com/login')

        assert [b.is_safe_button for b in extraction.buttons] == [True, False]
        assert all(b.type == 'button' for b in extraction.buttons)
        assert extraction.buttons[0].form_id == 'login-form'
        form = extraction.forms[0]
        assert form.method == 'post'
        assert form.form_type == 'login'
        assert form.fields[0].required is True

    def test_node_metadata(self):
        metadata = parse_extraction(RAW, 'https://example.com/login').node_metadata()
        assert metadata['links'] == 2
        assert metadata['is_form_page'] is True
        assert metadata['has_modals'] is True

    def test_missing_keys(self):
        extraction = parse_extraction({}, 'https://example.com/')
        assert extraction.title == ''
        assert extraction.links == []


class TestInspectPage:

    @pytest.mark.asyncio
    async def test_inspect_with_screenshot_file(self, tmp_path):
        context = FakeContext({'https://example.com/login': RAW})
        page = await context.new_page()
        await page.goto('https://example.com/login')

        config = CrawlConfig(screenshots_dir=str(tmp_path / 'shots'))
        extraction = await inspect_page(page, 'https://example.com/login', config, 'login')

        assert extraction.screenshot == str(tmp_path / 'shots' / 'login.png')
        assert (tmp_path / 'shots' / 'login.png').read_bytes() == b'\x89PNG fake'

    @pytest.mark.asyncio
    async def test_inline_screenshot(self):
        page = AsyncMock()
        page.screenshot.return_value = b'png'
        assert (await capture_screenshot(page, 'home', CrawlConfig())).startswith('data:image/png;base64,')

    @pytest.mark.asyncio
    async def test_screenshot_failure_is_empty(self):
        page = AsyncMock()
        page.screenshot.side_effect = Exception('page crashed')
        assert await capture_screenshot(page, 'home', CrawlConfig()) == ''

    @pytest.mark.asyncio
    async def test_extract_raw_rejects_non_dict(self):
        page = AsyncMock()
        page.evaluate.return_value = None
        with pytest.raises(ValueError):
            await extract_raw(page)


class TestElementIndex:

    def test_add_page_assigns_keywords(self):
        index = ElementIndex()
        extraction = parse_extraction(RAW, 'https://example.com/login')
        count = index.add_page('login', 'https://example.com/login', extraction, 'login')

        assert count == 4
        page = index.pages['login']
        assert [e.keyword for e in page.elements] == ['user', 'password', 'log_in', 'delete_account']
        assert page.elements[0].full_keyword == 'input_in_login_form_user'
        assert index.find('log_in')[0].selector == '#login'

    def test_to_dict_is_camel_case(self):
        index = ElementIndex()
        index.add_page('login', 'https://example.com/login', parse_extraction(RAW, 'https://example.com/login'), 'login')
        data = index.to_dict()['login']

        assert data['pageType'] == 'login'
        assert data['elements'][2]['keyword'] == 'log_in'
        assert data['elements'][2]['isSafeButton'] is True
        assert data['forms'][0]['formType'] == 'login'

    def test_keywords_are_flat(self):
        index = ElementIndex()
        index.add_page('login', 'https://example.com/login', parse_extraction(RAW, 'https://example.com/login'))
        user = index.to_dict()['login']['elements'][0]

        assert 'keywords' not in user
        assert user['keyword'] == 'user'
        assert user['keywordType'] == 'input_in_login_form'
        assert user['fullKeyword'] == 'input_in_login_form_user'

    def test_modals_are_exported(self):
        index = ElementIndex()
        index.add_page('login', 'https://example.com/login', parse_extraction(RAW, 'https://example.com/login'))
        data = index.to_dict()['login']

        assert data['modals'] == [{'selector': 'div.modal', 'title': 'Cookies', 'buttons': ['OK']}]
        index.add_page('plain', 'https://example.com/plain', parse_extraction(make_page('Plain'), 'https://example.com/plain'))
        assert 'modals' not in index.to_dict()['plain']

    def test_revisit_replaces_page(self):
        index = ElementIndex()
        extraction = parse_extraction(RAW, 'https://example.com/login')
        index.add_page('login', 'https://example.com/login', extraction)
        index.add_page('login', 'https://example.com/login', parse_extraction(make_page('Sign in'), 'https://example.com/login'))

        assert index.element_count == 0
        assert len(index) == 1


class TestInteractions:

    def test_button_node_id(self):
        assert button_node_id('home', 'Save Changes!') == 'home_button_save_changes_'

    def test_form_nodes(self):
        graph = SiteGraph()
        extraction = parse_extraction(RAW, 'https://example.com/login')
        record_form_interactions(graph, 'login', 'https://example.com/login', extraction)

        node = graph.get('login_form_login_form')
        assert node.virtual and node.action_type == 'form'
        assert graph.edges[0].type == 'form'

    def test_new_elements(self):
        before = parse_extraction(RAW, 'u').elements
        after = parse_extraction(RAW, 'u').elements + parse_extraction(
            make_page(elements=[{'type': 'textarea', 'name': 'note', 'selector': '#note'}]), 'u').elements
        assert [e.name for e in new_elements(before, after)] == ['note']
