"""
Collection configuration: validation and normalisation.

Options arrive either from Python (functions passed directly) or from a
``folio.yml`` file, where functions are named by string: a built-in permalink
formatter (``date``, ``ordinal``, ``none``), an import path such as
``mysite.hooks:transform``, or a ``{page}`` format string for pagination output.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from . import permalinks as jekyll
from .errors import ConfigError

DATA_KEY = '_collections'
PAGES_KEY = '_pages'

DEFAULT_COLLECTIONS = {'posts': {'files': 'posts/**'}}
DEFAULT_PER_PAGE = 10

COLLECTION_KEYS = {'files', 'transform', 'permalinks', 'markdown_layout', 'paginate'}
PAGINATE_KEYS = {'template', 'output', 'per_page'}
OPTION_KEYS = {'collections', 'add_data_to'}


@dataclass
class PaginateConfig:
    template: str
    output: Callable[[int], str]
    per_page: int = DEFAULT_PER_PAGE


@dataclass
class CollectionConfig:
    name: str
    files: str
    transform: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None
    permalinks: Optional[Callable[[str, Dict[str, Any]], str]] = None
    markdown_layout: Optional[str] = None
    paginate: Optional[PaginateConfig] = None


def import_callable(reference: str, where: str) -> Callable:
    """Import ``package.module:attribute`` and return the callable it names."""
    module_name, sep, attr = reference.partition(':')
    if not sep or not module_name or not attr:
        raise ConfigError(f"{where}: expected 'module:function', got {reference!r}")
    try:
        module = importlib.import_module(module_name)
        func = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"{where}: cannot import {reference!r}: {e}") from e
    if not callable(func):
        raise ConfigError(f"{where}: {reference!r} is not callable")
    return func


def output_formatter(template: str) -> Callable[[int], str]:
    """Turn a ``{page}`` format string into a page-number -> path function."""
    if '{page}' not in template:
        raise ConfigError(f"paginate output {template!r} must contain '{{page}}'")

    def output(page):
        return template.format(page=page)
    return output


def _resolve_function(value, name: str, key: str, builtins=None):
    where = f"collection '{name}' {key}"
    if value is None or callable(value):
        return value
    if isinstance(value, str):
        if builtins and value in builtins:
            return builtins[value]
        return import_callable(value, where)
    raise ConfigError(f"{where} must be a function or string, got {type(value).__name__}")


def _validate_paginate(name: str, raw: Any) -> PaginateConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"collection '{name}' paginate must be a mapping")

    unknown = set(raw) - PAGINATE_KEYS
    if unknown:
        raise ConfigError(f"collection '{name}' paginate has unknown keys: {', '.join(sorted(unknown))}")
    for required in ('template', 'output'):
        if raw.get(required) is None:
            raise ConfigError(f"collection '{name}' paginate requires '{required}'")

    template = raw['template']
    if not isinstance(template, str):
        raise ConfigError(f"collection '{name}' paginate template must be a string")

    output = raw['output']
    if isinstance(output, str):
        output = output_formatter(output)
    elif not callable(output):
        raise ConfigError(f"collection '{name}' paginate output must be a function or format string")

    per_page = raw.get('per_page', DEFAULT_PER_PAGE)
    if isinstance(per_page, bool) or not isinstance(per_page, int) or per_page < 1:
        raise ConfigError(f"collection '{name}' paginate per_page must be a positive integer, got {per_page!r}")

    return PaginateConfig(template=template, output=output, per_page=per_page)


def validate_collection(name: str, raw: Any) -> CollectionConfig:
    """Validate one collection mapping and return its CollectionConfig."""
    if not isinstance(raw, dict):
        raise ConfigError(f"collection '{name}' must be a mapping")

    unknown = set(raw) - COLLECTION_KEYS
    if unknown:
        raise ConfigError(f"collection '{name}' has unknown keys: {', '.join(sorted(unknown))}")

    files = raw.get('files')
    if not isinstance(files, str) or not files:
        raise ConfigError(f"collection '{name}' requires a 'files' glob pattern")

    layout = raw.get('markdown_layout')
    if layout is not None and not isinstance(layout, str):
        raise ConfigError(f"collection '{name}' markdown_layout must be a string")

    paginate = raw.get('paginate')
    return CollectionConfig(
        name=name,
        files=files,
        transform=_resolve_function(raw.get('transform'), name, 'transform'),
        permalinks=_resolve_function(raw.get('permalinks'), name, 'permalinks', jekyll.FORMATTERS),
        markdown_layout=layout,
        paginate=_validate_paginate(name, paginate) if paginate is not None else None,
    )


def validate_options(options: Optional[Dict[str, Any]] = None) -> Tuple[Dict[str, CollectionConfig], Dict[str, Any]]:
    """
    Validate Folio options.

    Returns ``(collections, add_data_to)`` where ``collections`` maps each
    collection name to its CollectionConfig, in configuration order.
    """
    options = options or {}
    if not isinstance(options, dict):
        raise ConfigError("options must be a mapping")

    unknown = set(options) - OPTION_KEYS
    if unknown:
        raise ConfigError(f"unknown options: {', '.join(sorted(unknown))}")

    add_data_to = options.get('add_data_to')
    if add_data_to is None:
        add_data_to = {}
    elif not isinstance(add_data_to, dict):
        raise ConfigError("add_data_to must be a mapping")

    raw_collections = options.get('collections')
    if raw_collections is None:
        raw_collections = DEFAULT_COLLECTIONS
    elif not isinstance(raw_collections, dict):
        raise ConfigError("collections must be a mapping of name to collection")

    collections = {
        str(name): validate_collection(str(name), raw)
        for name, raw in raw_collections.items()
    }
    return collections, add_data_to
