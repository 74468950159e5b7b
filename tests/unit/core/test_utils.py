"""Unit tests for core/utils (slug, hashing, diff)"""

import pytest

from blogpub.core.utils.diff import diff_summary, unified_diff
from blogpub.core.utils.hashing import frontmatter_hash, sha256
from blogpub.core.utils.slug import slug_from_stem, slugify


@pytest.mark.parametrize("text,expected", [
    ("Hello World", "hello-world"),
    ("my_file_name", "my-file-name"),
    ("  leading and trailing  ", "leading-and-trailing"),
    ("multiple---hyphens", "multiple-hyphens"),
    ("Special! Ch@rs#", "special-chrs"),
    ("", ""),
])
def test_slugify(text, expected):
    assert slugify(text) == expected


@pytest.mark.parametrize("stem,expected", [
    ("2023-04-01-Parallel Processing", "parallel-processing"),
    ("json_loading", "json-loading"),
    ("2023-04-01", "2023-04-01"),
])
def test_slug_from_stem(stem, expected):
    """A leading date prefix followed by a title is dropped."""
    assert slug_from_stem(stem) == expected


def test_sha256_length():
    assert len(sha256("post")) == 64


def test_frontmatter_hash_ignores_key_order():
    assert frontmatter_hash({"a": 1, "b": 2}) == frontmatter_hash({"b": 2, "a": 1})
    assert frontmatter_hash(None) == frontmatter_hash({})
    assert frontmatter_hash({"a": 1}) != frontmatter_hash({"a": 2})


def test_unified_diff_identical_is_empty():
    assert unified_diff("a\nb\n", "a\nb\n") == []


def test_unified_diff_labels():
    lines = unified_diff("a\n", "b\n", "v1", "current")
    assert lines[0].startswith("--- v1")
    assert lines[1].startswith("+++ current")
    assert "-a\n" in lines and "+b\n" in lines


def test_diff_summary():
    stats = diff_summary("a\nb\nc\n", "a\nB\nc\nd\n")
    assert stats == {"added": 2, "deleted": 1, "unchanged": 2}
