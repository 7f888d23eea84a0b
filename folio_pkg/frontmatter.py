"""
Front matter extraction and Markdown layout substitution.
"""

import os
import re
from collections import namedtuple

import mistune
import yaml

from .errors import ParseError

# Only \n-terminated fence lines are recognised; \r\n sources have no front matter.
FRONTMATTER_RE = re.compile(r'\A---[ \t]*\n(.*?)^---[ \t]*$\n?(.*)', re.DOTALL | re.MULTILINE)

MARKDOWN_EXTENSIONS = ('.md', '.markdown', '.mdown')

FrontMatter = namedtuple('FrontMatter', ['metadata', 'body'])


def create_markdown_parser():
    """Create a Mistune markdown parser with a custom renderer."""
    class CustomRenderer(mistune.HTMLRenderer):
        def __init__(self):
            super().__init__(escape=False)

        def block_code(self, code, info=None):
            escaped_code = mistune.escape(code)
            return '<pre style="white-space: pre-wrap;"><code>{}</code></pre>\n'.format(escaped_code)
    return mistune.create_markdown(
        renderer=CustomRenderer(),
        plugins=['table', 'task_lists', 'strikethrough']
    )


def is_markdown(path):
    """Return True if the path has a Markdown-family extension."""
    return os.path.splitext(str(path))[1].lower() in MARKDOWN_EXTENSIONS


def extract(source, path=None):
    """
    Split a raw document into its YAML front matter and body.

    Documents without a leading ``---`` block yield empty metadata and the
    whole source as body. Malformed YAML raises ParseError naming ``path``.
    """
    match = FRONTMATTER_RE.match(source)
    if not match:
        return FrontMatter({}, source)

    raw_metadata, body = match.groups()
    try:
        metadata = yaml.safe_load(raw_metadata)
    except yaml.YAMLError as e:
        raise ParseError(path or '<string>', e) from e

    if metadata is None:
        metadata = {}
    elif not isinstance(metadata, dict):
        raise ParseError(path or '<string>', f"expected a mapping, got {type(metadata).__name__}")

    return FrontMatter(metadata, body)


def apply_layout(front_matter, path, layout_source, markdown=None):
    """
    Swap a Markdown document's body for its collection's layout.

    The body is rendered to HTML and exposed as ``_content``; the layout's raw
    source becomes the effective body. Non-Markdown documents, or documents
    without a layout, are returned unchanged.
    """
    if layout_source is None or not is_markdown(path):
        return front_matter

    markdown = markdown or create_markdown_parser()
    metadata = dict(front_matter.metadata)
    metadata['_content'] = markdown(front_matter.body)
    return FrontMatter(metadata, layout_source)
