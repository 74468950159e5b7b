"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import Session

from blogpub.config import Settings, load_config
from blogpub.core.models import LintReport
from blogpub.core.parallel import ExecutorKind
from blogpub.core.pipeline import run_commit, run_export, run_extract, run_lint
from blogpub.core.utils.diff import diff_summary
from blogpub.crud.database import init_db, make_engine, reset_db
from blogpub.crud.posts import (
    get_all_posts,
    get_by_category,
    get_by_slug,
    get_last_committed,
    list_categories,
    post_categories,
)
from blogpub.crud.versioning import diff_current, diff_versions, list_versions, revert_to_version


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _engine(settings: Settings):
    engine = make_engine(settings.db_url)
    init_db(engine)
    return engine


def configure_logging(verbose: bool = False, debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", force=True)


def _echo_progress(done: int, total: int, report: LintReport) -> None:
    """Print one progress line to stderr as each post finishes."""
    status = "ok" if report.ok else f"{len(report.errors)} error(s)"
    typer.echo(f"[{done}/{total}] {report.path}: {status}", err=True)


def _echo_lint(reports: list[LintReport]) -> tuple[int, int]:
    """Print every issue and a summary line. Returns (errors, warnings)."""
    errors = warnings = 0
    for report in reports:
        for issue in report.issues:
            typer.echo(issue.format())
        errors += len(report.errors)
        warnings += len(report.warnings)
    typer.echo(f"Checked {len(reports)} post(s): {errors} error(s), {warnings} warning(s)")
    return errors, warnings


def _echo_commit(counts: dict, changes: list) -> None:
    """Print per-post commit status and a summary line."""
    for status, slug in changes:
        typer.echo(f"  {status}: {slug}")
    typer.echo(
        f"Commit complete - "
        f"{counts['created']} created, "
        f"{counts['updated']} updated, "
        f"{counts['unchanged']} unchanged"
    )


def _export(engine, settings: Settings, posts_of) -> None:
    """Export the posts selected by posts_of(session); the index always covers the catalogue."""
    output_dir = Path(settings.output_dir)
    try:
        with Session(engine) as session:
            posts = posts_of(session)
            results = run_export(session, posts, output_dir, index_posts=get_all_posts(session))
    except Exception as e:
        _fail("Export failed", e)
    for slug, path in results:
        typer.echo(f"  {slug} -> {path}")
    typer.echo(f"Exported {len(results)} post(s) to {output_dir}/")


def lint_cmd(
    path: Annotated[str, typer.Argument(help="Post file or directory to check")],
    executor: Annotated[Optional[ExecutorKind], typer.Option("--executor", help="Worker pool strategy")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Worker count; 0 = one per CPU")] = None,
    strict: Annotated[bool, typer.Option("--strict", help="Fail on warnings too")] = False,
    ):
    """Check post front-matter and fenced code block syntax."""
    settings = _settings(overrides={
        "executor": executor.value if executor else None, "workers": workers,
    })
    if not Path(path).exists():
        _fail(f"No such file or directory: {path}")
    reports = run_lint(path, settings, progress=_echo_progress)
    errors, warnings = _echo_lint(reports)
    if errors or (strict and warnings):
        raise typer.Exit(1)


def extract_cmd(
    path: Annotated[str, typer.Argument(help="Post file or directory to extract")],
    staging: Annotated[Optional[str], typer.Option("--staging-dir", help="Staging directory")] = None,
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    ):
    """Validate post metadata and stage posts as JSON."""
    settings = _settings(overrides={"staging_dir": staging, "parser_config": parser})
    staging_dir = Path(settings.staging_dir)
    try:
        results = run_extract(path, settings.parser_config, staging_dir, settings.default_layout)
    except RuntimeError as e:
        _fail(str(e))
    for src, out_file in results:
        typer.echo(f"  {src} -> {out_file}")
    typer.echo(f"Extracted {len(results)} post(s) to {staging_dir}/")


def commit_cmd(
    staging: Annotated[Optional[str], typer.Option("--staging-dir", help="Staging directory")] = None,
    versions: Annotated[Optional[int], typer.Option("--max-versions", help="Max stored versions per post")] = None,
    ):
    """Upsert staged posts into the catalogue."""
    settings = _settings(overrides={"staging_dir": staging, "max_versions": versions})
    engine = _engine(settings)
    try:
        counts, changes = run_commit(engine, settings.max_versions, Path(settings.staging_dir))
    except Exception as e:
        _fail("Commit failed", e)
    if not counts:
        typer.echo("Nothing staged. Run 'blogpub extract <path>' first.")
        raise typer.Exit(1)
    _echo_commit(counts, changes)


def export_cmd(
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    category: Annotated[Optional[str], typer.Option("--category", help="Export posts in this category")] = None,
    all_posts: Annotated[bool, typer.Option("--all", help="Export every post in the catalogue")] = False,
    ):
    """Write normalized posts and index.json to the output dir."""
    settings = _settings(overrides={"output_dir": out})
    engine = _engine(settings)

    if all_posts:
        posts_of, scope = get_all_posts, "all"
    elif category:
        posts_of, scope = (lambda s: get_by_category(s, category)), f"category '{category}'"
    else:
        posts_of, scope = get_last_committed, "last commit"

    with Session(engine) as session:
        empty = not posts_of(session)
    if empty:
        typer.echo(f"No posts found for scope: {scope}.")
        raise typer.Exit(1)
    _export(engine, settings, posts_of)


def build_cmd(
    path: Annotated[str, typer.Argument(help="Post file or directory to build")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    staging: Annotated[Optional[str], typer.Option("--staging-dir", help="Staging directory")] = None,
    executor: Annotated[Optional[ExecutorKind], typer.Option("--executor", help="Worker pool strategy")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Worker count; 0 = one per CPU")] = None,
    ):
    """Run the full pipeline: lint -> extract -> commit -> export."""
    settings = _settings(overrides={
        "output_dir": out, "staging_dir": staging,
        "executor": executor.value if executor else None, "workers": workers,
    })
    if not Path(path).exists():
        _fail(f"No such file or directory: {path}")

    # --- lint ---
    errors, _ = _echo_lint(run_lint(path, settings, progress=_echo_progress))
    if errors:
        _fail(f"Lint found {errors} error(s); nothing was built")

    # --- extract ---
    staging_dir = Path(settings.staging_dir)
    try:
        extracted = run_extract(path, settings.parser_config, staging_dir, settings.default_layout)
    except RuntimeError as e:
        _fail(str(e))
    typer.echo(f"Extracted {len(extracted)} post(s) to {staging_dir}/")

    # --- commit ---
    engine = _engine(settings)
    try:
        counts, changes = run_commit(engine, settings.max_versions, staging_dir)
    except Exception as e:
        _fail("Commit failed", e)
    if not counts:
        typer.echo("No posts found.")
        return
    _echo_commit(counts, changes)

    # --- export ---
    _export(engine, settings, get_all_posts)


def list_cmd():
    """List categories and their post counts."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        cats = list_categories(session)
    if not cats:
        typer.echo("No categories found in catalogue.")
        raise typer.Exit(1)
    for name, count in cats:
        typer.echo(f"{name} ({count})")


def posts_cmd(
    category: Annotated[Optional[str], typer.Option("--category", help="Only posts in this category")] = None,
    ):
    """List catalogued posts, newest first."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        posts = get_by_category(session, category) if category else get_all_posts(session)
        rows = [(p.date.strftime("%Y-%m-%d"), p.slug, p.title) for p in posts]
    if not rows:
        typer.echo("No posts found.")
        raise typer.Exit(1)
    for day, slug, title in rows:
        typer.echo(f"{day}  {slug}  {title}")


def history_cmd(
    slug: Annotated[str, typer.Argument(help="Post slug")],
    diff_from: Annotated[Optional[int], typer.Option("--from", help="Show a diff starting at this version")] = None,
    diff_to: Annotated[Optional[int], typer.Option("--to", help="Version to diff against; default is current")] = None,
    ):
    """List stored versions of a post, or diff one against another."""
    if diff_to is not None and diff_from is None:
        raise typer.BadParameter("--to requires --from", param_hint="--to")
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        post = get_by_slug(session, slug)
        if post is None:
            _fail(f"No post with slug '{slug}'")
        if diff_from is not None:
            try:
                if diff_to is None:
                    lines = diff_current(session, post, diff_from)
                else:
                    lines = diff_versions(session, post.id, diff_from, diff_to)
            except ValueError as e:
                _fail(str(e))
            typer.echo("".join(lines) or "No differences.")
            return

        versions = list_versions(session, post.id)
        if not versions:
            typer.echo(f"No stored versions for '{slug}'.")
            return
        for v in versions:
            stats = diff_summary(v.markdown, post.markdown)
            typer.echo(
                f"v{v.version_num}  {v.created_at:%Y-%m-%d %H:%M:%S}  "
                f"+{stats['added']} -{stats['deleted']} vs current"
            )


def revert_cmd(
    slug: Annotated[str, typer.Argument(help="Post slug")],
    version: Annotated[int, typer.Argument(help="Version number to restore")],
    ):
    """Restore a stored version of a post in the catalogue."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        post = get_by_slug(session, slug)
        if post is None:
            _fail(f"No post with slug '{slug}'")
        try:
            revert_to_version(session, post, version, settings.max_versions)
        except ValueError as e:
            _fail(str(e))
        session.commit()
    typer.echo(f"Reverted '{slug}' to v{version}")


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize the catalogue schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing data cleared.")
    else:
        init_db(engine)
    typer.echo(f"Catalogue initialized at: {settings.db_url}")
