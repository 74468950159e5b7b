"""Unit tests for core/lint.py"""

import pytest

from blogpub.core.lint import check_code_block, check_frontmatter, lint_post, lint_text
from blogpub.core.models import FencedBlock, Severity


def _codes(report):
    return sorted(i.code for i in report.issues)


# --- check_code_block ---

@pytest.mark.parametrize("language,content", [
    ("python", "import json\n\nwith open('data.json') as f:\n    data = json.load(f)\n"),
    ("py", "async def main():\n    await asyncio.sleep(1)\n"),
    ("python", ">>> d = {'a': 1}\n>>> d.get('b', 0)\n0\n"),
    ("json", '{"a": [1, 2, 3]}'),
    ("yaml", "a: 1\n---\nb: 2\n"),
    ("toml", "[tool]\nname = 'x'\n"),
    ("bash", "this is not ( checked"),
])
def test_check_code_block_valid(language, content):
    """Valid snippets and unchecked languages pass."""
    assert check_code_block(FencedBlock(language=language, content=content, line=1)) is None


@pytest.mark.parametrize("language,content,line", [
    ("python", "x = 1\ndef oops(:\n    pass\n", 12),
    ("json", '{\n  "a": 1,\n}\n', 13),
    ("yaml", "a: [1, 2\nb: 3\n", None),
    ("toml", "name = \n", 10),
])
def test_check_code_block_invalid(language, content, line):
    """Syntax errors are reported at the file line of the failure."""
    failure = check_code_block(FencedBlock(language=language, content=content, line=10))
    assert failure is not None
    if line is not None:
        assert failure[0] == line
    assert failure[1]


def test_check_code_block_repl_error_points_at_fence():
    """Errors in interactive transcripts are reported at the opening fence."""
    block = FencedBlock(language="python", content=">>> def f(:\n...     pass\n", line=4)
    assert check_code_block(block)[0] == 4


def test_check_code_block_indented_repl():
    """Transcripts indented as a whole are checked like flush-left ones."""
    good = FencedBlock(language="python", content="  >>> d = {'a': 1}\n  >>> d.get('b', 0)\n  0\n", line=4)
    assert check_code_block(good) is None
    bad = FencedBlock(language="python", content="    >>> def f(:\n    ...     pass\n", line=4)
    failure = check_code_block(bad)
    assert failure is not None
    assert failure[0] == 4


def test_check_code_block_respects_language_filter():
    """Languages left out of the checked set are not parsed."""
    block = FencedBlock(language="json", content="{bad", line=1)
    assert check_code_block(block, languages=["python"]) is None


# --- check_frontmatter ---

def test_check_frontmatter_clean():
    fm = {"title": "T", "date": "2023-01-01", "description": "d"}
    assert check_frontmatter("p.md", fm) == []


def test_check_frontmatter_missing_field():
    """Absent required fields are reported once, as field-missing."""
    issues = check_frontmatter("p.md", {"title": "T", "description": "d"})
    assert [i.code for i in issues] == ["field-missing"]
    assert "date" in issues[0].message


def test_check_frontmatter_extra_required_field():
    """Configured required fields beyond the schema are enforced."""
    fm = {"title": "T", "date": "2023-01-01", "description": "d"}
    issues = check_frontmatter("p.md", fm, required_fields=("title", "date", "author"))
    assert [i.code for i in issues] == ["field-missing"]


def test_check_frontmatter_invalid_field():
    issues = check_frontmatter("p.md", {"title": "T", "date": "someday", "description": "d"})
    assert [i.code for i in issues] == ["field-invalid"]
    assert issues[0].message.startswith("date:")


def test_check_frontmatter_empty_description_warns():
    issues = check_frontmatter("p.md", {"title": "T", "date": "2023-01-01"})
    assert [(i.code, i.severity) for i in issues] == [("description-empty", Severity.warning)]


# --- lint_text / lint_post ---

def test_lint_post_clean(post_file):
    """A well-formed post has no issues."""
    report = lint_post(post_file)
    assert report.ok
    assert report.issues == []


def test_lint_post_broken(broken_file):
    """Syntax errors, missing language and empty description are all reported."""
    report = lint_post(broken_file)
    assert not report.ok
    assert _codes(report) == ["code-no-language", "code-syntax", "description-empty"]
    syntax = next(i for i in report.issues if i.code == "code-syntax")
    assert syntax.line == 7


def test_lint_text_missing_frontmatter(tmp_path):
    report = lint_text("# Just a body\n", tmp_path / "p.md")
    assert _codes(report) == ["frontmatter-missing"]


def test_lint_text_invalid_frontmatter(tmp_path):
    """A malformed header stops further checks."""
    report = lint_text("---\ntitle: [oops\n---\n```python\ndef(\n```\n", tmp_path / "p.md")
    assert _codes(report) == ["frontmatter-invalid"]


def test_lint_post_unreadable(tmp_path):
    """A missing file is reported as file-unreadable instead of raising."""
    report = lint_post(tmp_path / "missing.md")
    assert _codes(report) == ["file-unreadable"]
