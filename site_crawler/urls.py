# urls.py
import re
import secrets
from typing import Optional, Set, AbstractSet
from urllib.parse import urljoin, urlparse, urlunparse

from .constants import ALLOWED_SCHEMES, DEFAULT_PORTS, EXCLUDED_EXTENSIONS
from .models import CrawlConfig, CrawlStats


class UrlFilter:
    """Canonicalizes URLs and decides crawl eligibility for one crawl session."""

    def __init__(self, base_hostname: str, config: CrawlConfig, stats: CrawlStats):
        self.base_hostname = base_hostname.lower()
        self.config = config
        self.stats = stats
        self._visited: Set[str] = set()

    @property
    def visited(self) -> AbstractSet[str]:
        return frozenset(self._visited)

    def is_visited(self, url: str) -> bool:
        return url in self._visited

    def mark_visited(self, url: str):
        self._visited.add(url)

    def normalize(self, url: str, base: Optional[str] = None) -> Optional[str]:
        """Resolve ``url`` against ``base``, drop the fragment and, if configured, the query."""
        try:
            absolute = urljoin(base, url.strip()) if base else url.strip()
            parsed = urlparse(absolute)
            scheme = parsed.scheme.lower()
            netloc = self._canonical_netloc(scheme, parsed)
            path = parsed.path
            if scheme in ALLOWED_SCHEMES and not path:
                path = '/'
            query = '' if self.config.ignore_params else parsed.query
            return urlunparse((scheme, netloc, path, parsed.params, query, ''))
        except (ValueError, TypeError, AttributeError) as e:
            self.stats.add_error(f"Error normalizing URL {url}: {e}")
            return None

    @staticmethod
    def _canonical_netloc(scheme: str, parsed) -> str:
        """Lowercase host, default port dropped, userinfo kept."""
        port = parsed.port  # raises ValueError on a malformed port
        hostname = parsed.hostname
        if not hostname:
            return parsed.netloc
        host = f"[{hostname}]" if ':' in hostname else hostname
        if port is not None and DEFAULT_PORTS.get(scheme) != port:
            host = f"{host}:{port}"
        userinfo, sep, _ = parsed.netloc.rpartition('@')
        return f"{userinfo}@{host}" if sep else host

    def should_crawl(self, url: str) -> bool:
        try:
            parsed = urlparse(url)
            hostname = parsed.hostname
        except (ValueError, TypeError, AttributeError) as e:
            self.stats.add_error(f"Error checking URL {url}: {e}")
            return False

        if parsed.scheme not in ALLOWED_SCHEMES:
            return False
        if not self.config.follow_external_links and hostname != self.base_hostname:
            return False
        if url in self._visited:
            return False
        if parsed.path.lower().endswith(EXCLUDED_EXTENSIONS):
            return False
        return True

    def node_id(self, url: str) -> str:
        """Slug derived from the URL path only."""
        try:
            path = urlparse(url).path
            node_id = re.sub(r'[^a-zA-Z0-9]', '_', path.strip('/')).lower()
            return node_id or 'home'
        except (ValueError, TypeError, AttributeError) as e:
            self.stats.add_error(f"Error generating ID for {url}: {e}")
            return f"unknown_{secrets.token_hex(4)}"
