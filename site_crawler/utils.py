# utils.py
import re
from datetime import datetime
from typing import Any


def now_iso() -> str:
    return datetime.now().isoformat()


def slugify(text: str) -> str:
    """Lowercase and replace every non-alphanumeric character with '_'."""
    return re.sub(r'[^a-z0-9]', '_', (text or '').lower())


def to_camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in rest)


def to_snake(name: str) -> str:
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name).lower()


def camelize(value: Any) -> Any:
    """Recursively convert dict keys to camelCase for the exported JSON artifacts."""
    if isinstance(value, dict):
        return {to_camel(k) if isinstance(k, str) else k: camelize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [camelize(v) for v in value]
    return value


def snakify_keys(data: dict) -> dict:
    return {to_snake(k): v for k, v in data.items()}
