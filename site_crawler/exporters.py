# exporters.py
import json
from pathlib import Path
from typing import Any, Dict, Tuple

from .constants import GRAPH_FILENAME, DOT_FILENAME, ELEMENTS_FILENAME, logger
from .graph import SiteGraph
from .interactions import ElementIndex
from .models import CrawlStats


def export_graph_json(result) -> Dict[str, Any]:
    """``{graph, stats, config}`` document for a finished (or stopped) crawl."""
    graph = result.graph
    return {
        'graph': graph.to_dict(),
        'stats': result.stats.to_dict(graph.node_count, graph.edge_count),
        'config': result.config.to_dict(),
    }


def write_graph_json(result, path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(export_graph_json(result), f, indent=2, ensure_ascii=False)
    return path


def load_graph_json(path) -> Tuple[SiteGraph, CrawlStats, Dict[str, Any]]:
    """Read a graph document back; returns the graph, stats and raw config."""
    with open(path, encoding='utf-8') as f:
        data = json.load(f)
    graph = SiteGraph.from_dict(data.get('graph') or {})
    stats = CrawlStats.from_dict(data.get('stats') or {})
    return graph, stats, data.get('config') or {}


def _dot_escape(text: str) -> str:
    return (text or '').replace('\\', '\\\\').replace('"', '\\"').replace('\n', ' ')


def export_dot(graph: SiteGraph) -> str:
    """Graphviz rendering of the site graph."""
    lines = [
        'digraph SiteMap {',
        '  rankdir=LR;',
        '  node [shape=box, style=filled, fillcolor=lightblue];',
        '',
    ]

    if not graph.nodes:
        lines.append('  "no_data" [label="No data collected yet", fillcolor=lightgrey];')
        lines.append('}')
        return '\n'.join(lines) + '\n'

    for node_id, node in graph.nodes.items():
        label = _dot_escape(node.title or node.url or node_id)
        if node.virtual:
            lines.append(f'  "{_dot_escape(node_id)}" [label="{label}", fillcolor=lightgreen];')
        else:
            lines.append(f'  "{_dot_escape(node_id)}" [label="{label}"];')

    lines.append('')
    if not graph.edges:
        lines.append('  // No connections between nodes')
    for edge in graph.edges:
        attrs = [f'label="{_dot_escape(edge.text)}"']
        if edge.type == 'button':
            attrs.append('color=red')
        elif edge.type == 'form':
            attrs.append('color=darkgreen')
        lines.append(f'  "{_dot_escape(edge.from_id)}" -> "{_dot_escape(edge.to_id)}" [{", ".join(attrs)}];')

    lines.append('}')
    return '\n'.join(lines) + '\n'


def export_elements_json(index: ElementIndex, stats: CrawlStats) -> Dict[str, Any]:
    return {
        'elements': index.to_dict(),
        'stats': {
            'elementCount': index.element_count,
            'pageCount': len(index),
            'elementsFound': stats.elements_found,
        },
    }


def write_outputs(result, output_dir) -> Dict[str, Path]:
    """Write the graph JSON, DOT and elements JSON files into ``output_dir``."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        'graph': write_graph_json(result, output_dir / GRAPH_FILENAME),
        'dot': output_dir / DOT_FILENAME,
        'elements': output_dir / ELEMENTS_FILENAME,
    }
    paths['dot'].write_text(export_dot(result.graph), encoding='utf-8')
    with open(paths['elements'], 'w', encoding='utf-8') as f:
        json.dump(export_elements_json(result.elements, result.stats), f, indent=2, ensure_ascii=False)

    for name, path in paths.items():
        logger.info(f"Wrote {name} output to {path}")
    return paths
