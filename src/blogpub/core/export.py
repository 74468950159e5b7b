"""Export: normalized post markdown and the index.json consumed by the site generator"""

import json
from pathlib import Path

import yaml

from blogpub.crud.models import Post


HEADER_KEYS = ('layout', 'title', 'description', 'date', 'categories', 'slug')
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def build_header(post: Post, categories: list[str]) -> dict:
    """Standard header keys first, in a fixed order, then any extra front-matter keys."""
    header = {
        'layout': post.layout,
        'title': post.title,
        'description': post.description,
        'date': post.date.strftime(DATE_FORMAT),
        'categories': list(categories),
        'slug': post.slug,
    }
    for key, value in (post.frontmatter or {}).items():
        if key not in HEADER_KEYS and key != 'category':
            header[key] = value
    return header


def build_post_markdown(post: Post, categories: list[str]) -> str:
    """Return the body with a normalized YAML header prepended."""
    header = yaml.safe_dump(build_header(post, categories), default_flow_style=False,
                            allow_unicode=True, sort_keys=False)
    # leading blank lines only; indentation is content
    body = post.markdown.lstrip('\r\n')
    return f"---\n{header}---\n\n{body}"


def post_url(post: Post, categories: list[str]) -> str:
    """Permalink in the /<category>/<yyyy>/<mm>/<dd>/<slug>/ style."""
    day = post.date.strftime('%Y/%m/%d')
    prefix = f"/{categories[0]}" if categories else ""
    return f"{prefix}/{day}/{post.slug}/"


def build_index_entry(post: Post, categories: list[str]) -> dict:
    return {
        'slug': post.slug,
        'title': post.title,
        'description': post.description,
        'date': post.date.isoformat(),
        'categories': list(categories),
        'path': post.path,
        'url': post_url(post, categories),
    }


def build_index(entries: list[dict]) -> dict:
    """Posts newest first (ties by slug) plus a category -> slugs map in the same order."""
    ordered = sorted(entries, key=lambda e: e['slug'])
    ordered.sort(key=lambda e: e['date'], reverse=True)

    by_category: dict[str, list[str]] = {}
    for entry in ordered:
        for name in entry['categories']:
            by_category.setdefault(name, []).append(entry['slug'])
    return {
        'posts': ordered,
        'categories': dict(sorted(by_category.items())),
    }


def write_post(post: Post, categories: list[str], output_dir: Path) -> Path:
    """Write output_dir/posts/<slug>.md and return its path."""
    dest_dir = output_dir / 'posts'
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest = dest_dir / f"{post.slug}.md"
    dest.write_text(build_post_markdown(post, categories), encoding='utf-8')
    return dest


def write_index(entries: list[dict], output_dir: Path) -> Path:
    """Write output_dir/index.json and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    dest = output_dir / 'index.json'
    dest.write_text(json.dumps(build_index(entries), indent=2, ensure_ascii=False), encoding='utf-8')
    return dest
