"""Pipeline step functions: lint, extract, commit, and export orchestration"""

import logging
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Callable

from pydantic import ValidationError
from sqlmodel import Session

from blogpub.config import Settings
from blogpub.core.export import build_index_entry, write_index, write_post
from blogpub.core.extract import extract_post
from blogpub.core.lint import lint_post
from blogpub.core.models import LintReport, StagedPost
from blogpub.core.parallel import iter_completed
from blogpub.core.parse import discover_files, parse_file
from blogpub.crud.models import Post
from blogpub.crud.posts import commit_post, post_categories
from blogpub.errors import StagingError


logger = logging.getLogger(__name__)


def run_lint(
    path: str,
    settings: Settings,
    progress: Callable[[int, int, LintReport], None] | None = None,
    ) -> list[LintReport]:
    """Lint every post under path on the configured worker pool. Reports keep discovery order.

    progress, when given, is called as progress(done, total, report) each
    time a post finishes, in completion order.
    """
    files = discover_files(Path(path))
    check = partial(
        lint_post,
        parser_config=settings.parser_config,
        required_fields=tuple(settings.required_fields),
        checked_languages=tuple(settings.checked_languages),
    )
    reports: list[LintReport] = [None] * len(files)
    completed = iter_completed(check, files, settings.executor, settings.workers)
    for done, (i, report) in enumerate(completed, start=1):
        reports[i] = report
        if progress:
            progress(done, len(files), report)
    logger.info("linted %d post(s)", len(reports))
    return reports


def run_extract(
    path: str,
    parser_config: str,
    staging_dir: Path,
    default_layout: str = 'post',
    ) -> list[tuple[Path, Path]]:
    """Parse path and write StagedPost JSON to staging_dir. Returns (source_path, staging_file) pairs.

    Staged files left by earlier runs are removed once every post has been
    written, so staging_dir holds exactly this run's posts.
    """
    staging_dir.mkdir(parents=True, exist_ok=True)
    results = []
    seen: dict[str, Path] = {}
    for p in discover_files(Path(path)):
        try:
            staged = extract_post(parse_file(p, parser_config), default_layout)
        except Exception as e:
            raise RuntimeError(f"Failed to extract {p}: {e}") from e
        if staged.slug in seen:
            raise RuntimeError(f"Failed to extract {p}: slug '{staged.slug}' already used by {seen[staged.slug]}")
        seen[staged.slug] = p
        out_file = staging_dir / f"{staged.slug}.json"
        out_file.write_text(staged.model_dump_json(indent=2), encoding='utf-8')
        results.append((p, out_file))

    current = {out_file.name for _, out_file in results}
    for stale in staging_dir.glob('*.json'):
        if stale.name not in current:
            stale.unlink()
            logger.debug("removed stale staged file %s", stale)
    return results


def load_staged(path: Path) -> StagedPost:
    """Read one staged post. Raises StagingError if it is missing or malformed."""
    try:
        text = Path(path).read_text(encoding='utf-8')
    except FileNotFoundError as e:
        raise StagingError(f"Staged file not found: {path}") from e
    except OSError as e:
        raise StagingError(f"Cannot read staged file {path}: {e}") from e
    try:
        return StagedPost.model_validate_json(text)
    except ValidationError as e:
        raise StagingError(f"Malformed staged file {path}: {e}") from e


def run_commit(
    engine,
    max_versions: int,
    staging_dir: Path,
    ) -> tuple[dict[str, int], list[tuple[str, str]]]:
    """Read staged posts and commit them to the catalogue.

    Returns (counts, changes) where changes lists (status, slug) for
    created/updated posts. Returns ({}, []) when staging_dir is empty.
    Raises StagingError when two staged files come from the same source path.
    """
    files = sorted(staging_dir.glob('*.json')) if staging_dir.exists() else []
    if not files:
        return {}, []

    staged_posts = []
    sources: dict[str, Path] = {}
    for f in files:
        staged = load_staged(f)
        if staged.path in sources:
            raise StagingError(
                f"Staged files {sources[staged.path].name} and {f.name} both come from {staged.path}; "
                f"re-run extract"
            )
        sources[staged.path] = f
        staged_posts.append(staged)

    committed_at = datetime.now()
    counts = {"created": 0, "updated": 0, "unchanged": 0}
    changes = []
    with Session(engine) as session:
        for staged in staged_posts:
            post, status = commit_post(session, staged, max_versions, committed_at)
            counts[status] += 1
            if status != 'unchanged':
                changes.append((status, post.slug))
        session.commit()
    logger.info("commit: %s", counts)
    return counts, changes


def run_export(
    session: Session,
    posts: list[Post],
    output_dir: Path,
    index_posts: list[Post] | None = None,
    ) -> list[tuple[str, Path]]:
    """Write posts to output_dir and rebuild index.json. Returns (slug, path) pairs.

    The index covers index_posts when given (normally the whole catalogue),
    else just the exported posts.
    """
    results = []
    for post in posts:
        categories = post_categories(session, post.id)
        results.append((post.slug, write_post(post, categories, output_dir)))

    entries = [
        build_index_entry(p, post_categories(session, p.id))
        for p in (index_posts if index_posts is not None else posts)
    ]
    write_index(entries, output_dir)
    return results
