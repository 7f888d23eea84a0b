"""
Folio - content collections for static-site builds.

Folio groups source documents into glob-defined collections, extracts their
YAML front matter, rewrites it through optional transforms, computes output
paths (including Jekyll-style permalinks), renders Markdown into layouts and
paginates collections through a shared Jinja2 template.
"""

__version__ = "1.0.0"

from .assembler import BuildResult, CollectionAssembler, DocumentRecord
from .context import resolve_locals
from .core import Folio
from .pagination import PageRecord, paginate

__all__ = [
    'BuildResult',
    'CollectionAssembler',
    'DocumentRecord',
    'Folio',
    'PageRecord',
    'paginate',
    'resolve_locals',
]
