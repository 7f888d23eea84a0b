import os
import logging

from jinja2 import Environment, FileSystemLoader, TemplateError

from .assembler import CollectionAssembler, discover_files, html_path, read_source, to_posix
from .config import PAGES_KEY, validate_options
from .context import resolve_locals
from .errors import ConfigError, RenderError
from .frontmatter import FrontMatter, apply_layout, create_markdown_parser, extract, is_markdown
from .pagination import paginate, render_pages


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages (and anything louder) to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Total documents generated:",
            "Total pagination pages generated:",
            "Total standalone pages generated:",
            "Assembled collection",
            "Paginating collection",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


class Folio:
    """
    Builds a site from content collections.

    Folio is the host around the collection pipeline: it globs and assembles
    the collections, publishes them to templates, renders every document,
    pagination page and standalone page with Jinja2, and writes the results
    under ``output_dir``.
    """

    def __init__(self, root='.', output_dir='public', collections=None, add_data_to=None, pages=None, ignore=None, log_file=None):
        self.collections, self.add_data_to = validate_options({
            'collections': collections,
            'add_data_to': add_data_to,
        })

        if not os.path.isdir(root):
            raise FileNotFoundError(f"Project directory not found: {root}")
        self.root = os.path.realpath(root)
        if os.path.isabs(output_dir):
            self.output_dir = output_dir
        else:
            self.output_dir = os.path.join(self.root, output_dir)
        self.pages = ['*.html'] if pages is None else list(pages)
        self.ignore = ['**/_*'] if ignore is None else list(ignore)
        self.log_file = log_file

        self.documents_generated = 0
        self.pagination_pages_generated = 0
        self.standalone_pages_generated = 0
        self.result = None

        self.setup_logging()

        # Never pick up previous build output or the templates themselves as content
        output_rel = to_posix(os.path.relpath(self.output_dir, self.root))
        if not output_rel.startswith('..'):
            self.ignore.append(f"{output_rel}/*")
        self.ignore.extend(self.template_paths())

        # Templates may extend/include each other relative to the project root
        self.env = Environment(loader=FileSystemLoader(self.root))
        self.markdown_parser = create_markdown_parser()

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Folio')
        self.logger.setLevel(logging.DEBUG if self.log_file else logging.INFO)

        if not self.logger.handlers:
            # Console handler with filter
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.addFilter(InfoFilter())
            console_handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(console_handler)

        # File handler for all logs
        if self.log_file:
            log_path = os.path.abspath(self.log_file)
            if not any(getattr(h, 'baseFilename', None) == log_path for h in self.logger.handlers):
                os.makedirs(os.path.dirname(log_path), exist_ok=True)
                file_handler = logging.FileHandler(log_path, encoding='utf-8')
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
                self.logger.addHandler(file_handler)

    def template_paths(self):
        """Project-relative paths of every layout and pagination template."""
        paths = []
        for conf in self.collections.values():
            if conf.markdown_layout:
                paths.append(to_posix(os.path.normpath(conf.markdown_layout)))
            if conf.paginate:
                paths.append(to_posix(os.path.normpath(conf.paginate.template)))
        return paths

    def load_template_source(self, relative_path, purpose):
        path = os.path.join(self.root, relative_path)
        if not os.path.isfile(path):
            raise ConfigError(f"{purpose} not found: {relative_path}")
        return read_source(path)

    def load_layouts(self):
        """Read each collection's markdown layout once per build."""
        layouts = {}
        for name, conf in self.collections.items():
            if conf.markdown_layout:
                layouts[name] = self.load_template_source(conf.markdown_layout, f"Markdown layout for '{name}'")
        return layouts

    def render(self, source, context, name):
        """Render a Jinja2 template source with the given locals."""
        try:
            return self.env.from_string(source).render(context)
        except TemplateError as e:
            raise RenderError(name, e) from e

    def render_documents(self, result):
        """Render every collection document, honouring permalink remaps."""
        layouts = self.load_layouts()
        outputs = []
        for name, records in result.collections.items():
            layout_source = layouts.get(name)
            for record in records:
                front_matter = FrontMatter(
                    dict(result.front_matter[record.relative_path]),
                    result.bodies[record.relative_path],
                )
                front_matter = apply_layout(front_matter, record.source_path, layout_source, self.markdown_parser)
                context = resolve_locals(result, record.relative_path, self.add_data_to, front_matter.metadata)

                if is_markdown(record.source_path) and layout_source is None:
                    output = self.markdown_parser(front_matter.body)
                else:
                    template_name = self.collections[name].markdown_layout if layout_source is not None else record.relative_path
                    output = self.render(front_matter.body, context, template_name)

                out_path = result.output_path(record.source_path, html_path(record.relative_path))
                outputs.append((out_path, output))
        return outputs

    def build_pagination(self, result):
        """Split every paginated collection into pages and publish them under ``_pages``."""
        paginated = {}
        for name, conf in self.collections.items():
            if conf.paginate is None:
                continue
            documents = result.documents(name)
            self.logger.info(f"Paginating collection '{name}' ({len(documents)} documents, {conf.paginate.per_page} per page)")
            paginated[name] = paginate(name, documents, conf.paginate.per_page, conf.paginate.output)

        if paginated:
            self.add_data_to.setdefault(PAGES_KEY, {}).update(paginated)
        return paginated

    def render_pagination(self, paginated):
        outputs = []
        for name, pages in paginated.items():
            template = self.collections[name].paginate.template
            source = self.load_template_source(template, f"Pagination template for '{name}'")
            outputs.extend(render_pages(
                pages, template, source,
                lambda src, context: self.render(src, context, template),
                self.add_data_to,
            ))
        return outputs

    def render_standalone_pages(self, result):
        """Render pages that belong to no collection."""
        in_collections = {r.source_path for records in result.collections.values() for r in records}
        seen = set()
        outputs = []
        for pattern in self.pages:
            for path in discover_files(pattern, self.root, self.ignore):
                if path in in_collections or path in seen:
                    continue
                seen.add(path)
                relative = to_posix(os.path.relpath(path, self.root))
                front_matter = extract(read_source(path), relative)
                if is_markdown(path):
                    output = self.markdown_parser(front_matter.body)
                else:
                    context = resolve_locals(result, relative, self.add_data_to, front_matter.metadata)
                    output = self.render(front_matter.body, context, relative)
                outputs.append((html_path(relative), output))
        return outputs

    def write_outputs(self, outputs):
        """Write rendered files below the output directory."""
        output_root = os.path.abspath(self.output_dir)
        for relative, content in outputs:
            output_file_path = os.path.abspath(os.path.join(output_root, relative))
            # Verify the final path is within output_dir
            if os.path.commonpath([output_root, output_file_path]) != output_root:
                raise ValueError(f"Path traversal attempt detected: {relative}")
            os.makedirs(os.path.dirname(output_file_path), exist_ok=True)
            try:
                with open(output_file_path, 'w', encoding='utf-8') as output_file:
                    output_file.write(content)
                self.logger.debug(f"Generated HTML: {output_file_path}")
            except (IOError, OSError, PermissionError) as e:
                self.logger.error(f"Failed to write HTML file {output_file_path}: {e}")
                raise

    def build(self):
        """Main build process."""
        self.logger.info("Starting site build...")

        assembler = CollectionAssembler(self.collections, self.root, self.ignore, self.markdown_parser)
        result = assembler.assemble()
        result.publish(self.add_data_to)
        self.result = result

        # Everything is rendered before anything is written
        paginated = self.build_pagination(result)
        documents = self.render_documents(result)
        pagination_pages = self.render_pagination(paginated)
        standalone = self.render_standalone_pages(result)

        os.makedirs(self.output_dir, exist_ok=True)
        self.write_outputs(documents + pagination_pages + standalone)

        self.documents_generated = len(documents)
        self.pagination_pages_generated = len(pagination_pages)
        self.standalone_pages_generated = len(standalone)
        return result
