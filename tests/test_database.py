"""
Neo4j 永続化のテスト
"""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from site_crawler.database import create_relation, push_graph, save_node
from site_crawler.graph import SiteGraph
from site_crawler.models import Edge, PageNode


def _driver():
    """driver.session() を async with で使えるモック"""
    session = AsyncMock()
    driver = MagicMock()
    driver.session.return_value.__aenter__.return_value = session
    driver.session.return_value.__aexit__.return_value = None
    return driver, session


class TestDatabase:

    @pytest.mark.asyncio
    async def test_save_node_merges_by_id(self):
        driver, session = _driver()
        node = PageNode(id='home', url='https://example.com/', headings=[{'level': 1, 'text': 'Hi'}],
                        screenshot='data:image/png;base64,AAAA')
        await save_node(driver, node)

        query = session.run.call_args.args[0]
        kwargs = session.run.call_args.kwargs
        assert 'MERGE (n:Page {id: $id})' in query
        assert kwargs['id'] == 'home'
        assert json.loads(kwargs['props']['headings']) == [{'level': 1, 'text': 'Hi'}]
        assert kwargs['props']['screenshot'] == ''

    @pytest.mark.asyncio
    async def test_relation_types(self):
        driver, session = _driver()
        await create_relation(driver, Edge('home', 'about', 'link'))
        await create_relation(driver, Edge('home', 'home_button_go', 'button', 'Go'))
        await create_relation(driver, Edge('login', 'login_form_x', 'form'))

        queries = [c.args[0] for c in session.run.call_args_list]
        assert 'LINKS_TO' in queries[0]
        assert 'CLICK_TO' in queries[1]
        assert 'SUBMITS_TO' in queries[2]
        assert all('CREATE (a)-[' in q for q in queries)

    @pytest.mark.asyncio
    async def test_push_graph(self):
        driver, session = _driver()
        graph = SiteGraph()
        graph.add_node('home', 'https://example.com/')
        graph.add_node('about', 'https://example.com/about')
        graph.add_edge('home', 'about')

        await push_graph(driver, graph)

        queries = [c.args[0] for c in session.run.call_args_list]
        assert queries[0] == "MATCH (n) DETACH DELETE n"
        # clear + constraint + index + 2 nodes + 1 edge
        assert len(queries) == 6

    @pytest.mark.asyncio
    async def test_push_graph_without_clear(self):
        driver, session = _driver()
        await push_graph(driver, SiteGraph(), clear=False)

        queries = [c.args[0] for c in session.run.call_args_list]
        assert not any('DETACH DELETE' in q for q in queries)
