"""Slug generation for post identifiers"""

import re


DATE_PREFIX_RE = re.compile(r'^\d{4}-\d{2}-\d{2}-')


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated URL-safe slug."""
    text = text.lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


def slug_from_stem(stem: str) -> str:
    """Slug for a post file name: '2023-04-01-Hello World' -> 'hello-world'."""
    return slugify(DATE_PREFIX_RE.sub('', stem))
