"""
エクスポート（JSON / DOT）のテスト
"""
import json

import pytest

from site_crawler.crawler import CrawlResult, crawl_site
from site_crawler.exporters import (
    export_dot, export_elements_json, export_graph_json, load_graph_json, write_graph_json, write_outputs,
)
from site_crawler.graph import SiteGraph
from site_crawler.interactions import ElementIndex
from site_crawler.models import CrawlConfig, CrawlState, CrawlStats


def _result(graph=None):
    stats = CrawlStats(pages_visited=1, links_found=2, start_time='2024-01-01T00:00:00')
    return CrawlResult(graph or SiteGraph(), ElementIndex(), stats, CrawlConfig(max_depth=2), CrawlState.COMPLETED)


class TestGraphJson:

    def test_document_shape(self):
        graph = SiteGraph()
        graph.add_node('home', 'https://example.com/', title='Home')
        data = export_graph_json(_result(graph))

        assert set(data) == {'graph', 'stats', 'config'}
        assert data['stats']['nodeCount'] == 1
        assert data['stats']['edgeCount'] == 0
        assert data['stats']['pagesVisited'] == 1
        assert data['config']['maxDepth'] == 2
        assert data['config']['ignoreParams'] is True

    @pytest.mark.asyncio
    async def test_round_trip(self, simple_site, tmp_path):
        result = await crawl_site('https://example.com/', context=simple_site)
        path = write_graph_json(result, tmp_path / 'graph.json')

        graph, stats, config = load_graph_json(path)
        document = json.loads(path.read_text(encoding='utf-8'))
        assert graph.node_count == document['stats']['nodeCount'] == result.graph.node_count
        assert graph.edge_count == document['stats']['edgeCount'] == result.graph.edge_count
        assert stats.pages_visited == 2
        assert config['maxPages'] == 100


class TestDot:

    def test_empty_graph_placeholder(self):
        dot = export_dot(SiteGraph())
        assert dot.startswith('digraph SiteMap {')
        assert '"no_data" [label="No data collected yet", fillcolor=lightgrey];' in dot
        assert dot.rstrip().endswith('}')

    def test_nodes_without_edges(self):
        graph = SiteGraph()
        graph.add_node('home', 'https://example.com/', title='Home "Page"')
        dot = export_dot(graph)

        assert '"home" [label="Home \\"Page\\""];' in dot
        assert '// No connections between nodes' in dot

    def test_edges_and_virtual_nodes(self):
        graph = SiteGraph()
        graph.add_node('home', 'https://example.com/', title='Home')
        graph.add_virtual_node('home_button_go', 'https://example.com/', 'button', 'Go', '#go', 'Home')
        graph.add_edge('home', 'about', 'link', 'About')
        graph.add_edge('home', 'home_button_go', 'button', 'Go')
        dot = export_dot(graph)

        assert 'fillcolor=lightgreen' in dot
        assert '"home" -> "about" [label="About"];' in dot
        assert '"home" -> "home_button_go" [label="Go", color=red];' in dot


class TestOutputs:

    @pytest.mark.asyncio
    async def test_write_outputs(self, simple_site, tmp_path):
        result = await crawl_site('https://example.com/', context=simple_site)
        paths = write_outputs(result, tmp_path / 'out')

        assert paths['graph'].name == 'site-graph.json'
        assert paths['dot'].read_text(encoding='utf-8').startswith('digraph SiteMap {')
        elements = json.loads(paths['elements'].read_text(encoding='utf-8'))
        assert elements['stats']['pageCount'] == 2
        assert elements['stats']['elementCount'] == 2
        assert [e['keyword'] for e in elements['elements']['home']['elements']] == ['save_changes', 'delete_account']

    def test_elements_document(self):
        doc = export_elements_json(ElementIndex(), CrawlStats())
        assert doc == {'elements': {}, 'stats': {'elementCount': 0, 'pageCount': 0, 'elementsFound': 0}}
