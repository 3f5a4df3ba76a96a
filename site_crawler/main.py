# main.py
import asyncio
import argparse
import logging
import sys

from neo4j import AsyncGraphDatabase

from .config import build_config, load_config_file
from .constants import NEO4J_URI, NEO4J_USER, NEO4J_PASSWORD, OUTPUT_DIR, logger
from .crawler import crawl_site
from .database import push_graph
from .errors import CrawlError
from .exporters import write_outputs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Breadth-first site crawler building a page graph and element map')
    parser.add_argument('--url', required=True, help='Start URL (http or https)')
    parser.add_argument('--config', help='YAML file with crawl options')
    parser.add_argument('--depth', type=int, dest='max_depth', help='Max link depth')
    parser.add_argument('--limit', type=int, dest='max_pages', help='Max pages to visit')
    parser.add_argument('--links-per-page', type=int, dest='max_links_per_page', help='Max links followed per page')
    parser.add_argument('--parallel', type=int, dest='concurrency', help='Parallel page visits')
    parser.add_argument('--timeout', type=int, help='Navigation timeout in ms')
    parser.add_argument('--keep-params', action='store_true', help='Treat query strings as distinct pages')
    parser.add_argument('--external', action='store_true', help='Follow links to other hosts')
    parser.add_argument('--no-screenshots', action='store_true', help='Do not capture screenshots')
    parser.add_argument('--screenshots-dir', help='Save screenshots as PNG files here instead of inline')
    parser.add_argument('--explore-clicks', action='store_true', help='Click safe buttons to find hidden elements')
    parser.add_argument('--output', default=OUTPUT_DIR, help='Output directory')
    parser.add_argument('--headful', action='store_true', help='Show browser')
    parser.add_argument('--neo4j', action='store_true', help='Push the graph to Neo4j after crawling')
    parser.add_argument('--no-clear', action='store_true', help='Do not clear database before pushing')
    parser.add_argument('--debug', action='store_true', help='Debug logging')
    return parser


def collect_overrides(args) -> dict:
    """YAML options first, then any option given on the command line."""
    overrides = load_config_file(args.config) if args.config else {}
    for name in ('max_depth', 'max_pages', 'max_links_per_page', 'concurrency', 'timeout', 'screenshots_dir'):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    if args.keep_params:
        overrides['ignore_params'] = False
    if args.external:
        overrides['follow_external_links'] = True
    if args.no_screenshots:
        overrides['include_screenshots'] = False
    if args.explore_clicks:
        overrides['explore_clicks'] = True
    if args.headful:
        overrides['headless'] = False
    return overrides


def print_progress(update):
    logger.info(
        f"Progress: {update.pages_visited} pages, {update.links_found} links, "
        f"{update.elements_found} elements, {update.errors} errors"
    )


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO, format='%(asctime)s %(levelname)-5s %(message)s', datefmt='%Y-%m-%d %H:%M:%S')

    try:
        config = build_config(collect_overrides(args))
        result = await crawl_site(args.url, config, on_progress=print_progress)
    except CrawlError as e:
        logger.error(str(e))
        return 1

    write_outputs(result, args.output)

    if args.neo4j:
        driver = AsyncGraphDatabase.driver(NEO4J_URI, auth=(NEO4J_USER, NEO4J_PASSWORD))
        try:
            await push_graph(driver, result.graph, clear=not args.no_clear)
        finally:
            await driver.close()
    return 0


def run():
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
