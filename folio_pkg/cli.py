#!/usr/bin/env python3
"""
Command-line interface for Folio.
"""

import os
import sys
import argparse
import time
from typing import List, Optional
from .core import Folio
from .settings import FolioSettings


STARTER_FILES = {
    'index.html': """<!DOCTYPE html>
<html>
<head><title>{{ site_title }}</title></head>
<body>
  <h1>{{ site_title }}</h1>
  <ul>
  {% for post in _collections.posts %}
    <li><a href="/{{ post._path }}">{{ post.title }}</a></li>
  {% endfor %}
  </ul>
</body>
</html>
""",
    'posts/_layout.html': """<!DOCTYPE html>
<html>
<head><title>{{ title }}</title></head>
<body>
  <article>
    <h1>{{ title }}</h1>
    {{ _content }}
  </article>
</body>
</html>
""",
    'posts/_template.html': """<!DOCTYPE html>
<html>
<head><title>Posts - page {{ _current_page.page }}</title></head>
<body>
  <ul>
  {% for post in _current_page.documents %}
    <li><a href="/{{ post._path }}">{{ post.title }}</a></li>
  {% endfor %}
  </ul>
  {% if prev %}<a href="/{{ prev.path }}">Newer</a>{% endif %}
  {% if next %}<a href="/{{ next.path }}">Older</a>{% endif %}
</body>
</html>
""",
    'posts/2024-01-15-hello-world.md': """---
title: Hello World
---

Welcome to your new **Folio** site.
""",
}


def create_starter_structure(base_dir: str) -> None:
    """Create a starter project with a posts collection, its layout and pagination template."""
    for relative, content in STARTER_FILES.items():
        path = os.path.join(base_dir, relative)
        if os.path.exists(path):
            print(f"File already exists: {relative}")
            continue
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        print(f"Created: {relative}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Folio - content collections for static sites')
    parser.add_argument('--root', type=str,
                        help='Project directory containing content and templates')
    parser.add_argument('--output', type=str,
                        help='Output directory for the generated site')
    parser.add_argument('--config', type=str,
                        help='Configuration file (defaults to folio.yml/folio.yaml/folio.json in the project)')
    parser.add_argument('--pages', type=str,
                        help='Comma-separated globs of standalone pages to render')
    parser.add_argument('--ignore', type=str,
                        help='Comma-separated globs of files never to render')
    parser.add_argument('--log-file', type=str,
                        help='Write a detailed build log to this file')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter project')
    parser.add_argument('--version', action='version', version='%(prog)s 1.0.0')
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    project_dir = args.root or os.getcwd()

    # Handle init command
    if args.init:
        settings_loader = FolioSettings(config_dir=project_dir)
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")

        print("\nCreating starter project structure...")
        create_starter_structure(project_dir)

        print("\nYour new Folio site is ready!")
        print("Edit the configuration file and templates, then run 'folio' to build your site.")
        return

    overall_start_time = time.time()

    try:
        settings_loader = FolioSettings(config_dir=project_dir, config_file=args.config)
        settings_loader.load_settings()

        # Command line arguments take precedence
        args_dict = {k: v for k, v in vars(args).items() if k not in ('init', 'config')}
        final_settings = settings_loader.merge_with_args(args_dict)

        output_dir = os.path.expanduser(final_settings['output'])

        generator = Folio(
            root=final_settings['root'],
            output_dir=output_dir,
            collections=final_settings['collections'],
            add_data_to=final_settings['data'],
            pages=final_settings['pages'],
            ignore=final_settings['ignore'],
            log_file=final_settings['log_file'],
        )
        generator.build()

        # Show build statistics
        total_time = time.time() - overall_start_time
        generator.logger.info(f"Site build completed in {total_time:.6f} seconds.")
        generator.logger.info(f"Total documents generated: {generator.documents_generated}")
        generator.logger.info(f"Total pagination pages generated: {generator.pagination_pages_generated}")
        generator.logger.info(f"Total standalone pages generated: {generator.standalone_pages_generated}")

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
