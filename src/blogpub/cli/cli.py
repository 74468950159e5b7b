"""CLI entrypoint: Typer app definition and command registration"""

from typing import Annotated

import typer

from blogpub.cli.commands import (
    build_cmd, commit_cmd, configure_logging, export_cmd, extract_cmd, history_cmd,
    init_cmd, lint_cmd, list_cmd, posts_cmd, revert_cmd,
)


app = typer.Typer(name="blogpub", no_args_is_help=True, help="Markdown blog post linting and publishing")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log progress to stderr")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Log debug detail to stderr")] = False,
    ):
    configure_logging(verbose, debug)


app.command(name="lint")(lint_cmd)
app.command(name="extract")(extract_cmd)
app.command(name="commit")(commit_cmd)
app.command(name="export")(export_cmd)
app.command(name="build")(build_cmd)
app.command(name="list")(list_cmd)
app.command(name="posts")(posts_cmd)
app.command(name="history")(history_cmd)
app.command(name="revert")(revert_cmd)
app.command(name="init")(init_cmd)
