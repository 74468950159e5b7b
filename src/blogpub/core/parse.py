"""File discovery, front-matter extraction, and markdown-it tokenization"""

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from markdown_it import MarkdownIt

from blogpub.core.models import ParsedPost
from blogpub.core.utils.slug import slug_from_stem, slugify
from blogpub.errors import FrontmatterError


logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE)
MD_EXTENSIONS = {'.md', '.markdown', '.mdx'}


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset)


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """Return (raw_header, body); raw_header is None when the text has no header block."""
    m = FRONTMATTER_RE.match(text)
    if not m:
        return None, text
    return m.group(1), text[m.end():]


def strip_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with the YAML header removed.

    Raises FrontmatterError when the header is not a YAML mapping.
    """
    header, body = split_frontmatter(text)
    if header is None:
        return {}, text
    try:
        fm = yaml.safe_load(header) or {}
    except yaml.YAMLError as e:
        raise FrontmatterError(f"Invalid YAML frontmatter: {e}") from e
    if not isinstance(fm, dict):
        raise FrontmatterError(f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
    return fm, body


def _skipped(path: Path, root: Path) -> bool:
    """Drafts and hidden entries ('_drafts', '.git', '_index.md') are not posts."""
    return any(part.startswith(('_', '.')) for part in path.relative_to(root).parts)


def discover_files(path: Path) -> list[Path]:
    """Return sorted post files under path, or [path] if a single post file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(
        p for p in path.rglob('*')
        if p.is_file() and p.suffix in MD_EXTENSIONS and not _skipped(p, path)
    )


def parse_text(raw: str, path: Path, parser_config: str = 'commonmark') -> ParsedPost:
    """Parse post source text into a ParsedPost with token stream."""
    header, _ = split_frontmatter(raw)
    frontmatter, body = strip_frontmatter(raw)
    offset = raw[:len(raw) - len(body)].count('\n')
    tokens = _make_parser(parser_config).parse(body)
    slug = frontmatter.get('slug')
    slug = slugify(str(slug)) if slug else slug_from_stem(path.stem)
    return ParsedPost(
        path=path,
        slug=slug,
        raw_markdown=raw,
        markdown=body,
        frontmatter=frontmatter,
        has_frontmatter=header is not None,
        body_offset=offset,
        tokens=tokens,
    )


def parse_file(path: Path, parser_config: str = 'commonmark') -> ParsedPost:
    """Parse a single post file."""
    logger.debug("parsing %s", path)
    return parse_text(path.read_text(encoding='utf-8'), path, parser_config)


def parse_dir(path: Path, parser_config: str = 'commonmark') -> list[ParsedPost]:
    """Parse all post files under path (file or directory)."""
    return [parse_file(p, parser_config) for p in discover_files(path)]
