# config.py
from dataclasses import fields, replace
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

import yaml

from .constants import ALLOWED_SCHEMES, logger
from .errors import ConfigurationError
from .models import CrawlConfig
from .utils import to_snake

_INT_FIELDS = ('max_depth', 'max_pages', 'max_links_per_page', 'timeout', 'settle_wait', 'max_clicks_per_page')


def build_config(overrides: Optional[Union[CrawlConfig, Dict[str, Any]]] = None) -> CrawlConfig:
    """Merge caller overrides over the defaults.

    Keys may be given in snake_case or camelCase (``maxDepth``). Unknown keys and
    out-of-range values raise ConfigurationError.
    """
    if overrides is None:
        return CrawlConfig()
    if isinstance(overrides, CrawlConfig):
        config = overrides
    else:
        known = {f.name for f in fields(CrawlConfig)}
        values = {}
        for key, value in overrides.items():
            name = to_snake(key)
            if name not in known:
                raise ConfigurationError(f"Unknown config option: {key}")
            if value is not None:
                values[name] = value
        config = replace(CrawlConfig(), **values)
    _validate(config)
    return config


def _validate(config: CrawlConfig):
    for name in _INT_FIELDS:
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigurationError(f"{name} must be a non-negative integer, got {value!r}")
    if config.max_pages < 1:
        raise ConfigurationError("max_pages must be at least 1")
    if isinstance(config.concurrency, bool) or not isinstance(config.concurrency, int) or config.concurrency < 1:
        raise ConfigurationError(f"concurrency must be >= 1, got {config.concurrency!r}")


def load_config_file(path: str) -> Dict[str, Any]:
    """Read crawl overrides from a YAML file (top-level mapping or a ``crawl:`` section)."""
    with open(path, encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping at the top level")
    if isinstance(data.get('crawl'), dict):
        data = data['crawl']
    logger.debug(f"Loaded {len(data)} config options from {path}")
    return data


def validate_start_url(url: str) -> str:
    """Return the start URL's hostname, or raise ConfigurationError."""
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError as e:
        raise ConfigurationError(f"Invalid start URL {url!r}: {e}") from e
    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ConfigurationError(f"Start URL must use http or https: {url!r}")
    if not hostname:
        raise ConfigurationError(f"Start URL has no host: {url!r}")
    return hostname
