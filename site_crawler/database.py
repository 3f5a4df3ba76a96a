# database.py
import json

from .constants import logger
from .graph import SiteGraph
from .models import PageNode, Edge

# Edge type -> relationship type
RELATION_TYPES = {
    'link': 'LINKS_TO',
    'button': 'CLICK_TO',
    'form': 'SUBMITS_TO',
}


async def init_database(driver, clear: bool = True):
    async with driver.session() as session:
        if clear:
            await session.run("MATCH (n) DETACH DELETE n")
            logger.info("Database cleared - all nodes and relationships deleted")

        await session.run("CREATE CONSTRAINT page_id IF NOT EXISTS FOR (n:Page) REQUIRE n.id IS UNIQUE")
        await session.run("CREATE INDEX page_url IF NOT EXISTS FOR (n:Page) ON (n.url)")
        logger.info("Constraints and indexes created for Page")


def _node_properties(node: PageNode) -> dict:
    props = {k: v for k, v in node.to_dict().items() if v is not None}
    # Neo4j properties cannot hold maps
    props['headings'] = json.dumps(props.get('headings', []), ensure_ascii=False)
    # Data URLs are too large to store on a node
    if props.get('screenshot', '').startswith('data:'):
        props['screenshot'] = ''
    return props


async def save_node(driver, node: PageNode):
    logger.debug(f"Saving node {node.id} ({node.url})")
    async with driver.session() as session:
        await session.run(
            """
            MERGE (n:Page {id: $id})
            SET n += $props
            """,
            id=node.id,
            props=_node_properties(node),
        )


async def create_relation(driver, edge: Edge):
    rel_type = RELATION_TYPES.get(edge.type, 'LINKS_TO')
    query = f"""
        MERGE (a:Page {{id: $from_id}})
        MERGE (b:Page {{id: $to_id}})
        CREATE (a)-[r:{rel_type}]->(b)
        SET r.text = $text, r.selector = $selector, r.timestamp = $timestamp
    """
    async with driver.session() as session:
        await session.run(
            query,
            from_id=edge.from_id,
            to_id=edge.to_id,
            text=edge.text,
            selector=edge.selector,
            timestamp=edge.timestamp,
        )


async def push_graph(driver, graph: SiteGraph, clear: bool = True):
    """Write every node and edge of ``graph`` to Neo4j."""
    await init_database(driver, clear=clear)
    for node in graph.nodes.values():
        await save_node(driver, node)
    for edge in graph.edges:
        await create_relation(driver, edge)
    logger.info(f"Pushed {graph.node_count} nodes and {graph.edge_count} relations to Neo4j")
