"""Content checks: post front-matter and fenced code block syntax"""

import ast
import json
import logging
import tomllib
from pathlib import Path
from typing import Callable, Iterable, Optional

import yaml
from pydantic import ValidationError

from blogpub.core.extract import fenced_blocks
from blogpub.core.models import FencedBlock, LintIssue, LintReport, PostMeta, Severity
from blogpub.core.parse import parse_text
from blogpub.errors import FrontmatterError


logger = logging.getLogger(__name__)

REPL_PREFIXES = ('>>> ', '... ')


def _repl_source(code: str) -> str:
    """Keep only the input lines of an interactive transcript, prompts removed."""
    lines = []
    for line in code.splitlines():
        # prompts may be indented as a whole
        line = line.lstrip()
        if line.startswith(REPL_PREFIXES):
            lines.append(line[4:])
        elif line.rstrip() in ('>>>', '...'):
            lines.append('')
    return '\n'.join(lines)


def _is_repl(code: str) -> bool:
    first = next((l for l in code.splitlines() if l.strip()), '')
    return first.lstrip().startswith('>>>')


def _check_python(code: str) -> Optional[tuple[int, str]]:
    repl = _is_repl(code)
    source = _repl_source(code) if repl else code
    try:
        ast.parse(source)
    except SyntaxError as e:
        # transcript line numbers no longer match the block
        return (None if repl else e.lineno), e.msg
    return None


def _check_json(code: str) -> Optional[tuple[int, str]]:
    try:
        json.loads(code)
    except json.JSONDecodeError as e:
        return e.lineno, e.msg
    return None


def _check_yaml(code: str) -> Optional[tuple[int, str]]:
    try:
        list(yaml.safe_load_all(code))
    except yaml.MarkedYAMLError as e:
        line = e.problem_mark.line + 1 if e.problem_mark else None
        return line, e.problem or str(e)
    except yaml.YAMLError as e:
        return None, str(e)
    return None


def _check_toml(code: str) -> Optional[tuple[int, str]]:
    try:
        tomllib.loads(code)
    except tomllib.TOMLDecodeError as e:
        return None, str(e)
    return None


CHECKERS: dict[str, Callable[[str], Optional[tuple[Optional[int], str]]]] = {
    'python': _check_python,
    'py':     _check_python,
    'json':   _check_json,
    'yaml':   _check_yaml,
    'yml':    _check_yaml,
    'toml':   _check_toml,
}


def check_code_block(block: FencedBlock, languages: Iterable[str] = CHECKERS) -> Optional[tuple[int, str]]:
    """Syntax-check a fenced block. Returns (file_line, message) on failure, else None.

    Languages without a checker, or not in `languages`, always pass.
    """
    checker = CHECKERS.get(block.language)
    if checker is None or block.language not in set(languages):
        return None
    failure = checker(block.content)
    if failure is None:
        return None
    inner_line, message = failure
    # content starts on the line after the opening fence
    line = block.line + inner_line if inner_line else block.line
    return line, message


def _issue(path: str, code: str, message: str, line: int = None, severity=Severity.error) -> LintIssue:
    return LintIssue(path=path, line=line, code=code, severity=severity, message=message)


def check_frontmatter(
    path: str,
    frontmatter: dict,
    required_fields: Iterable[str] = ('title', 'date'),
    ) -> list[LintIssue]:
    """Check required keys and PostMeta validation for a parsed header."""
    issues = []
    missing = [f for f in required_fields if frontmatter.get(f) in (None, '')]
    for name in missing:
        issues.append(_issue(path, 'field-missing', f"missing required field '{name}'", line=1))

    data = {'layout': 'post', **frontmatter}
    try:
        PostMeta.model_validate(data)
    except ValidationError as e:
        for err in e.errors():
            name = '.'.join(str(p) for p in err['loc']) or 'frontmatter'
            if name in missing:
                continue
            issues.append(_issue(path, 'field-invalid', f"{name}: {err['msg']}", line=1))

    if not str(frontmatter.get('description') or '').strip():
        issues.append(_issue(path, 'description-empty', 'post has no description', line=1, severity=Severity.warning))
    return issues


def lint_text(
    raw: str,
    path: Path,
    parser_config: str = 'commonmark',
    required_fields: Iterable[str] = ('title', 'date'),
    checked_languages: Iterable[str] = tuple(CHECKERS),
    ) -> LintReport:
    """Lint post source text. Content problems become issues; nothing is raised for them."""
    name = str(path)
    report = LintReport(path=name)
    try:
        parsed = parse_text(raw, path, parser_config)
    except FrontmatterError as e:
        report.issues.append(_issue(name, 'frontmatter-invalid', str(e), line=1))
        return report

    if not parsed.has_frontmatter:
        report.issues.append(_issue(name, 'frontmatter-missing', 'post has no front-matter header', line=1))
    else:
        report.issues.extend(check_frontmatter(name, parsed.frontmatter, required_fields))

    languages = set(checked_languages)
    for block in fenced_blocks(parsed.tokens, parsed.body_offset):
        if not block.language:
            report.issues.append(_issue(
                name, 'code-no-language', 'fenced code block has no language',
                line=block.line, severity=Severity.warning,
            ))
            continue
        failure = check_code_block(block, languages)
        if failure:
            line, message = failure
            report.issues.append(_issue(name, 'code-syntax', f"{block.language}: {message}", line=line))

    logger.debug("%s: %d error(s), %d warning(s)", name, len(report.errors), len(report.warnings))
    return report


def lint_post(
    path: Path,
    parser_config: str = 'commonmark',
    required_fields: Iterable[str] = ('title', 'date'),
    checked_languages: Iterable[str] = tuple(CHECKERS),
    ) -> LintReport:
    """Lint a single post file. Unreadable files are reported, not raised."""
    path = Path(path)
    try:
        raw = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        report = LintReport(path=str(path))
        report.issues.append(_issue(str(path), 'file-unreadable', str(e)))
        return report
    return lint_text(raw, path, parser_config, required_fields, checked_languages)
