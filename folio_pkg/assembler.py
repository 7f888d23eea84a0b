"""
Collection assembly: glob -> front matter -> transform -> permalink -> record.
"""

import glob
import logging
import os
import posixpath
from collections import namedtuple
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from fnmatch import fnmatch

from .config import DATA_KEY
from .errors import PermalinkError, TransformError
from .frontmatter import create_markdown_parser, extract, is_markdown

# Collections at least this large have their sources read on a thread pool
PARALLEL_READ_THRESHOLD = 12

RESERVED_KEYS = ('_path', '_collection', '_content')

OutputRemap = namedtuple('OutputRemap', ['source_path', 'original_path', 'new_path'])


class DocumentRecord(dict):
    """
    Front matter of one collection document plus its computed fields.

    Author keys live alongside the reserved ``_path``, ``_collection`` and
    ``_content`` keys so templates can use the record as a plain mapping.
    """

    def __init__(self, data=(), source_path=None, relative_path=None):
        super().__init__(data)
        self.source_path = source_path
        self.relative_path = relative_path

    def author_fields(self):
        """Return the front matter fields, without reserved keys."""
        return {k: v for k, v in self.items() if k not in RESERVED_KEYS}


class BuildResult:
    """Everything one assembly pass produces."""

    def __init__(self):
        # name -> [DocumentRecord], in configuration order
        self.collections = {}
        # source-relative path -> DocumentRecord
        self.index = {}
        # source-relative path -> raw front matter as written by the author
        self.front_matter = {}
        # source-relative path -> document body after the front matter
        self.bodies = {}
        self.remaps = []
        # absolute source path -> OutputRemap
        self.remapped = {}

    def documents(self, name):
        return self.collections.get(name, [])

    def publish(self, context):
        """Expose the assembled collections to templates through ``context``."""
        context[DATA_KEY] = self.collections
        return context

    def add_remap(self, remap):
        self.remaps.append(remap)
        self.remapped[remap.source_path] = remap

    def output_path(self, source_path, default):
        """Return the remapped output path for a source file, if any."""
        remap = self.remapped.get(source_path)
        return remap.new_path if remap else default


def to_posix(path):
    return path.replace(os.sep, '/')


def html_path(path):
    """Replace a path's extension with ``.html``."""
    root, _ext = posixpath.splitext(path)
    return f"{root}.html"


def is_ignored(relative_path, patterns):
    """Check a project-relative posix path against ignore globs."""
    for pattern in patterns or ():
        if fnmatch(relative_path, pattern):
            return True
        # '**/_*' should also catch top-level '_layout.html'
        if pattern.startswith('**/') and fnmatch(relative_path, pattern[3:]):
            return True
    return False


def discover_files(pattern, base_dir, exclude_patterns=None):
    """Expand a glob pattern to a sorted list of absolute file paths."""
    base_dir = os.path.abspath(base_dir)
    matches = glob.glob(os.path.join(glob.escape(base_dir), pattern), recursive=True)
    files = []
    for match in sorted(matches):
        if not os.path.isfile(match):
            continue
        relative = to_posix(os.path.relpath(match, base_dir))
        if is_ignored(relative, exclude_patterns):
            continue
        files.append(os.path.realpath(match))
    return files


def read_source(path):
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


class CollectionAssembler:
    """Builds the document records of every configured collection."""

    def __init__(self, collections, root='.', ignore=None, markdown=None):
        self.collections = collections
        self.root = os.path.realpath(root)
        self.ignore = list(ignore or [])
        self.markdown = markdown or create_markdown_parser()
        self.logger = logging.getLogger('Folio.CollectionAssembler')

    def relative_path(self, path):
        return to_posix(os.path.relpath(path, self.root))

    def resolve_files(self):
        """Glob every collection, dropping (with a warning) those that match nothing."""
        files = {}
        for name, conf in self.collections.items():
            paths = discover_files(conf.files, self.root, self.ignore)
            if not paths:
                self.logger.warning(f"Empty collection at path \"{conf.files}\"")
                continue
            files[name] = paths
        return files

    def read_sources(self, paths):
        """Read source files, in order, using threads for larger collections."""
        if len(paths) >= PARALLEL_READ_THRESHOLD:
            self.logger.debug(f"Reading {len(paths)} files with {os.cpu_count()} workers")
            with ThreadPoolExecutor(max_workers=os.cpu_count()) as executor:
                # map() yields in submission order
                return list(executor.map(read_source, paths))
        return [read_source(p) for p in paths]

    def assemble(self):
        """Run one assembly pass and return its BuildResult."""
        result = BuildResult()
        for name, paths in self.resolve_files().items():
            conf = self.collections[name]
            sources = self.read_sources(paths)
            records = []
            for path, source in zip(paths, sources):
                record = self.process(conf, path, source, result)
                records.append(record)
                result.index[record.relative_path] = record
            result.collections[name] = records
            self.logger.info(f"Assembled collection '{name}' with {len(records)} documents")
        return result

    def process(self, conf, path, source, result):
        """Build the DocumentRecord for one source file."""
        relative = self.relative_path(path)
        front_matter = extract(source, relative)
        result.front_matter[relative] = dict(front_matter.metadata)
        result.bodies[relative] = front_matter.body

        locals_ = dict(front_matter.metadata)
        default_path = html_path(relative)
        locals_['_path'] = default_path
        locals_['_collection'] = conf.name

        if is_markdown(path):
            locals_['_content'] = self.markdown(front_matter.body)

        if conf.transform:
            try:
                locals_ = conf.transform(locals_)
            except Exception as e:
                raise TransformError(relative, e) from e
            if not isinstance(locals_, Mapping):
                raise TransformError(relative, f"expected a mapping, got {type(locals_).__name__}")

        record = DocumentRecord(locals_, source_path=path, relative_path=relative)

        if conf.permalinks:
            try:
                out_path = conf.permalinks(path, record)
            except Exception as e:
                raise PermalinkError(relative, e) from e
            if not isinstance(out_path, str) or not out_path:
                raise PermalinkError(relative, f"expected a path string, got {out_path!r}")
            record['_path'] = html_path(to_posix(out_path))
            result.add_remap(OutputRemap(path, default_path, record['_path']))
            self.logger.debug(f"Permalink {default_path} -> {record['_path']}")

        return record
