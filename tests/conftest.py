"""Test configuration and fixtures for Folio tests."""

import pytest
import tempfile
import shutil
import os
from pathlib import Path


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield os.path.realpath(temp_dir)
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def write_file(temp_dir):
    """Return a helper that writes a file below the temporary directory."""
    def write(relative, content):
        path = Path(temp_dir) / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')
        return str(path)
    return write


@pytest.fixture
def mock_site_dir(temp_dir, write_file):
    """Create a small site: two posts, a layout, a pagination template and an index page."""
    write_file('posts/bar.md', """---
dingle: snargle
---
hello **bar**
""")
    write_file('posts/foo.md', """---
wow: amaze
---
hello foo
""")
    write_file('posts/_layout.html',
               "<article>{{ _content }}</article><locals>{{ dingle }}</locals>")
    write_file('posts/_template.html',
               "<current>{{ _current_page.page }}:"
               "{% for p in _current_page.documents %}{{ p._path }} {% endfor %}</current>"
               "<prev>{{ prev.path if prev else '' }}</prev>"
               "<next>{{ next.path if next else '' }}</next>")
    write_file('index.html', """---
title: Home
---
<h1>{{ title }}</h1>{% for p in _collections.posts %}<a>{{ p._path }}</a>{% endfor %}
""")
    return temp_dir


@pytest.fixture
def dated_posts_dir(temp_dir, write_file):
    """Create a collection of Jekyll-style dated posts."""
    write_file('posts/2017-01-12-testing.md', """---
title: Testing
---
First post
""")
    write_file('posts/2017-07-22-summer.md', """---
title: Summer
---
Second post
""")
    return temp_dir
