"""
Pagination of collection documents into fixed-size pages.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .errors import RenderError

logger = logging.getLogger('Folio.Paginator')


@dataclass
class PageRecord:
    page: int
    path: str
    documents: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self):
        return {'page': self.page, 'path': self.path, 'documents': list(self.documents)}


def paginate(collection_name, documents, page_size, output_fn):
    """
    Split ``documents`` into pages of at most ``page_size``.

    Page 1 always exists, so an empty collection yields a single empty page.
    """
    if page_size < 1:
        raise ValueError(f"page size must be at least 1, got {page_size}")

    current = PageRecord(page=1, path=output_fn(1))
    pages = [current]
    for document in documents:
        if len(current.documents) == page_size:
            number = current.page + 1
            current = PageRecord(page=number, path=output_fn(number))
            pages.append(current)
        current.documents.append(document)

    logger.debug(f"Paginated '{collection_name}': {len(documents)} documents into {len(pages)} pages")
    return pages


def page_locals(pages, base_locals=None):
    """Yield ``(page, locals)`` for every page with its ``next``/``prev`` links."""
    base_locals = base_locals or {}
    for i, page in enumerate(pages):
        locals_ = dict(base_locals)
        locals_.update({
            '_current_page': page,
            'next': pages[i + 1] if i + 1 < len(pages) else None,
            'prev': pages[i - 1] if i > 0 else None,
        })
        yield page, locals_


def render_pages(pages, template_name, template_source, render, base_locals=None):
    """
    Render every page through one template.

    Returns a list of ``(path, output)``. Either every page renders or a
    RenderError identifying the failing page is raised and nothing is returned.
    """
    rendered = []
    for page, locals_ in page_locals(pages, base_locals):
        try:
            output = render(template_source, locals_)
        except RenderError as e:
            raise RenderError(template_name, e.cause, page=page.page, path=page.path) from e
        except Exception as e:
            raise RenderError(template_name, e, page=page.page, path=page.path) from e
        rendered.append((page.path, output))
    return rendered
