"""Convert a ParsedPost into a validated StagedPost"""

from datetime import date, datetime
from typing import Any

from blogpub.core.models import FencedBlock, ParsedPost, PostMeta, StagedPost


def _fence_language(info: str) -> str:
    """First word of a fence info string, lower-cased ('Python {linenos}' -> 'python')."""
    word = info.strip().split(maxsplit=1)[0] if info.strip() else ''
    return word.strip('{}.').lower()


def fenced_blocks(tokens: list, line_offset: int = 0) -> list[FencedBlock]:
    """Collect fenced code blocks from a markdown-it token stream.

    line_offset is the number of source lines before the tokenized body.
    """
    blocks = []
    for tok in tokens:
        if tok.type != 'fence':
            continue
        start = tok.map[0] if tok.map else 0
        blocks.append(FencedBlock(
            language=_fence_language(tok.info or ''),
            content=tok.content,
            line=line_offset + start + 1,
        ))
    return blocks


def json_safe(value: Any) -> Any:
    """Recursively convert YAML dates/datetimes to ISO strings."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    return value


def extract_post(parsed: ParsedPost, default_layout: str = 'post') -> StagedPost:
    """Validate metadata and collect code blocks. Raises pydantic.ValidationError on bad metadata."""
    fm = {'layout': default_layout, **parsed.frontmatter}
    meta = PostMeta.model_validate(json_safe(fm))
    return StagedPost(
        slug=parsed.slug,
        path=str(parsed.path),
        markdown=parsed.markdown,
        frontmatter=json_safe(parsed.frontmatter),
        meta=meta,
        blocks=fenced_blocks(parsed.tokens, parsed.body_offset),
    )
