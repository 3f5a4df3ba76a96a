# graph.py
from dataclasses import replace
from typing import Dict, List, Any, Optional

from .models import PageNode, Edge
from .utils import now_iso


class SiteGraph:
    """In-memory directed graph of pages and the transitions between them.

    Nodes are upserted by id; edges are append-only. Nothing is removed during a
    session.
    """

    def __init__(self):
        self.nodes: Dict[str, PageNode] = {}
        self.edges: List[Edge] = []

    def __len__(self):
        return len(self.nodes)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def real_nodes(self) -> List[PageNode]:
        return [n for n in self.nodes.values() if not n.virtual]

    def virtual_nodes(self) -> List[PageNode]:
        return [n for n in self.nodes.values() if n.virtual]

    def add_node(self, node_id: str, url: str, **metadata: Any) -> PageNode:
        existing = self.nodes.get(node_id)
        if existing is None:
            node = PageNode(id=node_id, url=url, **metadata, last_visited=now_iso())
        else:
            # last write wins
            node = replace(existing, url=url, **metadata, last_visited=now_iso())
        self.nodes[node_id] = node
        return node

    def add_virtual_node(
        self,
        node_id: str,
        parent_url: str,
        action_type: str,
        action_text: str,
        action_selector: str,
        page_title: str = '',
    ) -> PageNode:
        """Synthetic state reached by a button/form interaction. Created once."""
        if node_id in self.nodes:
            return self.nodes[node_id]
        node = PageNode(
            id=node_id,
            url=f"{parent_url}#action-{action_text}",
            title=f"After {action_text} on {page_title}",
            virtual=True,
            parent_url=parent_url,
            action_type=action_type,
            action_text=action_text,
            action_selector=action_selector,
            last_visited=now_iso(),
        )
        self.nodes[node_id] = node
        return node

    def add_edge(self, from_id: str, to_id: str, type: str = 'link', text: str = '', selector: str = '') -> Edge:
        edge = Edge(from_id=from_id, to_id=to_id, type=type, text=text or '', selector=selector or '', timestamp=now_iso())
        self.edges.append(edge)
        return edge

    def get(self, node_id: str) -> Optional[PageNode]:
        return self.nodes.get(node_id)

    def edges_from(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.from_id == node_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodes': {node_id: node.to_dict() for node_id, node in self.nodes.items()},
            'edges': [edge.to_dict() for edge in self.edges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SiteGraph':
        graph = cls()
        for node_id, node in (data.get('nodes') or {}).items():
            graph.nodes[node_id] = PageNode.from_dict({**node, 'id': node.get('id', node_id)})
        graph.edges = [Edge.from_dict(e) for e in data.get('edges') or []]
        return graph
