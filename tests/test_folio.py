"""End-to-end tests for the Folio site builder."""

import os
import pytest
from pathlib import Path

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from folio_pkg import Folio
from folio_pkg.assembler import CollectionAssembler
from folio_pkg.errors import ConfigError, RenderError


def read_output(root, relative):
    return (Path(root) / 'public' / relative).read_text(encoding='utf-8')


def page_output(page):
    return f"posts/p{page}.html"


class TestFolioBuild:
    """Test cases for Folio.build()."""

    def test_init_missing_root(self, temp_dir):
        with pytest.raises(FileNotFoundError, match='Project directory not found'):
            Folio(root=os.path.join(temp_dir, 'nope'))

    def test_init_invalid_collections(self, mock_site_dir):
        with pytest.raises(ConfigError):
            Folio(root=mock_site_dir, collections={'posts': {'glob': 'posts/**'}})

    def test_markdown_without_layout(self, mock_site_dir):
        """Test markdown documents are written as rendered HTML at their _path."""
        site = Folio(root=mock_site_dir)
        site.build()

        assert '<p>hello <strong>bar</strong></p>' in read_output(mock_site_dir, 'posts/bar.html')
        assert '<p>hello foo</p>' in read_output(mock_site_dir, 'posts/foo.html')
        assert site.documents_generated == 2

    def test_all_posts_listing(self, mock_site_dir):
        """Test standalone pages see every collection in glob order."""
        site = Folio(root=mock_site_dir)
        site.build()

        index = read_output(mock_site_dir, 'index.html')
        assert '<h1>Home</h1><a>posts/bar.html</a><a>posts/foo.html</a>' in index
        assert site.standalone_pages_generated == 1

    def test_templates_are_not_emitted(self, mock_site_dir):
        Folio(root=mock_site_dir).build()
        output = Path(mock_site_dir) / 'public' / 'posts'
        assert sorted(p.name for p in output.iterdir()) == ['bar.html', 'foo.html']

    def test_markdown_layout(self, mock_site_dir):
        """Test markdown bodies are rendered into the collection layout."""
        Folio(root=mock_site_dir, collections={
            'posts': {'files': 'posts/**', 'markdown_layout': 'posts/_layout.html'},
        }).build()

        bar = read_output(mock_site_dir, 'posts/bar.html')
        assert '<article><p>hello <strong>bar</strong></p>' in bar
        assert '<locals>snargle</locals>' in bar
        assert '<locals></locals>' in read_output(mock_site_dir, 'posts/foo.html')

    def test_pagination(self, mock_site_dir):
        """Test one page per post with next/prev links."""
        data = {}
        site = Folio(root=mock_site_dir, add_data_to=data, collections={
            'posts': {
                'files': 'posts/**',
                'paginate': {'template': 'posts/_template.html', 'per_page': 1, 'output': page_output},
            },
        })
        site.build()

        page1 = read_output(mock_site_dir, 'posts/p1.html')
        page2 = read_output(mock_site_dir, 'posts/p2.html')
        assert '<current>1:posts/bar.html </current><prev></prev><next>posts/p2.html</next>' in page1
        assert '<current>2:posts/foo.html </current><prev>posts/p1.html</prev><next></next>' in page2

        assert [p.page for p in data['_pages']['posts']] == [1, 2]
        assert data['_collections'] is site.result.collections
        assert site.pagination_pages_generated == 2

    def test_pagination_of_empty_collection(self, mock_site_dir, caplog):
        """Test an empty collection still gets one (empty) page."""
        Folio(root=mock_site_dir, collections={
            'drafts': {
                'files': 'drafts/**',
                'paginate': {'template': 'posts/_template.html', 'output': 'drafts/page{page}.html'},
            },
        }).build()

        page = read_output(mock_site_dir, 'drafts/page1.html')
        assert '<current>1:</current><prev></prev><next></next>' in page
        assert 'Empty collection at path "drafts/**"' in caplog.text

    def test_pagination_render_failure_writes_nothing(self, mock_site_dir, write_file):
        """Test a failing page aborts the build before any output is written."""
        write_file('posts/_broken.html',
                   "{% if _current_page.page == 2 %}{{ missing.attribute }}{% endif %}ok")
        site = Folio(root=mock_site_dir, collections={
            'posts': {
                'files': 'posts/**',
                'paginate': {'template': 'posts/_broken.html', 'per_page': 1, 'output': page_output},
            },
        })

        with pytest.raises(RenderError) as exc_info:
            site.build()
        assert exc_info.value.page == 2
        assert exc_info.value.path == 'posts/p2.html'
        assert exc_info.value.template == 'posts/_broken.html'
        assert not os.path.exists(os.path.join(mock_site_dir, 'public'))

    def test_missing_pagination_template(self, mock_site_dir):
        site = Folio(root=mock_site_dir, collections={
            'posts': {
                'files': 'posts/**',
                'paginate': {'template': 'posts/_nope.html', 'output': page_output},
            },
        })
        with pytest.raises(ConfigError, match='posts/_nope.html'):
            site.build()

    def test_layout_render_error_names_layout(self, mock_site_dir, write_file):
        write_file('posts/_bad_layout.html', '{{ _content | no_such_filter }}')
        site = Folio(root=mock_site_dir, collections={
            'posts': {'files': 'posts/**', 'markdown_layout': 'posts/_bad_layout.html'},
        })
        with pytest.raises(RenderError, match='posts/_bad_layout.html'):
            site.build()

    def test_permalinks_move_output(self, dated_posts_dir):
        """Test documents are written to their permalink, not their source path."""
        site = Folio(root=dated_posts_dir, collections={
            'posts': {'files': 'posts/**', 'permalinks': 'date'},
        })
        site.build()

        output = Path(dated_posts_dir) / 'public' / 'posts'
        assert (output / '2017' / '01' / '12' / 'testing.html').exists()
        assert (output / '2017' / '07' / '22' / 'summer.html').exists()
        assert not (output / '2017-01-12-testing.html').exists()

    def test_transform_visible_to_templates(self, mock_site_dir, write_file):
        write_file('posts/_shout_layout.html', '<shout>{{ shout }}</shout><locals>{{ dingle }}</locals>')

        def transform(record):
            record['shout'] = str(record.get('wow', record.get('dingle'))).upper()
            return record

        Folio(root=mock_site_dir, collections={
            'posts': {'files': 'posts/**', 'transform': transform, 'markdown_layout': 'posts/_shout_layout.html'},
        }).build()

        assert '<shout>SNARGLE</shout>' in read_output(mock_site_dir, 'posts/bar.html')
        assert '<shout>AMAZE</shout>' in read_output(mock_site_dir, 'posts/foo.html')
        # Front matter still wins over the collection record for the layout's locals
        assert '<locals>snargle</locals>' in read_output(mock_site_dir, 'posts/bar.html')

    def test_non_string_front_matter_keys(self, mock_site_dir, write_file):
        """Test YAML keys that are not strings still reach the template context."""
        write_file('posts/archived.html', "---\n2017: archived\ntitle: A\n---\n<h1>{{ title }}</h1>")
        Folio(root=mock_site_dir).build()
        assert '<h1>A</h1>' in read_output(mock_site_dir, 'posts/archived.html')

    def test_documents_render_from_assembled_source(self, mock_site_dir, write_file):
        """Test a source edited after assembly does not change the rendered document."""
        site = Folio(root=mock_site_dir)
        result = CollectionAssembler(site.collections, site.root, site.ignore, site.markdown_parser).assemble()
        write_file('posts/bar.md', "---\ndingle: changed\n---\nhello **edited**\n")

        outputs = dict(site.render_documents(result))
        assert '<p>hello <strong>bar</strong></p>' in outputs['posts/bar.html']
        assert 'edited' not in outputs['posts/bar.html']

    def test_add_data_to_reaches_templates(self, mock_site_dir, write_file):
        write_file('about.html', '<p>{{ site_title }} / {{ _collections.posts | length }}</p>')
        Folio(root=mock_site_dir, add_data_to={'site_title': 'Snargle'}).build()
        assert '<p>Snargle / 2</p>' in read_output(mock_site_dir, 'about.html')

    def test_rebuild_is_identical(self, mock_site_dir):
        """Test a second build ignores the previous output and produces the same files."""
        Folio(root=mock_site_dir).build()
        first = {p: p.read_text() for p in (Path(mock_site_dir) / 'public').rglob('*.html')}
        Folio(root=mock_site_dir).build()
        second = {p: p.read_text() for p in (Path(mock_site_dir) / 'public').rglob('*.html')}
        assert first == second

    def test_log_file(self, mock_site_dir, temp_dir):
        log_file = os.path.join(temp_dir, 'logs', 'build.log')
        site = Folio(root=mock_site_dir, log_file=log_file)
        try:
            site.build()
        finally:
            for handler in list(site.logger.handlers):
                if getattr(handler, 'baseFilename', None) == log_file:
                    site.logger.removeHandler(handler)
                    handler.close()

        with open(log_file, encoding='utf-8') as f:
            log = f.read()
        assert 'Starting site build...' in log
        assert "Assembled collection 'posts' with 2 documents" in log
