"""
Command Line Interface for filterline.

    filterline contains ERROR app.log
    filterline --save not-matches '^\\s*#' settings.ini
    cat app.log | filterline matches 'took [0-9]{4,}ms'

The filtered text goes to stdout. When the result is kept as a file instead
(the --save flag, or output too large), the file's path is printed.
"""
import asyncio
import dataclasses
import logging
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Optional

import click

from .commands import FilterCommand
from .components.source import DocumentSource, FileSource
from .config import READ_CHUNK_SIZE, load_settings
from .core.errors import ConfigError
from .core.log import configure_logging
from .history import PatternHistory
from .host import ConsoleEditorHost, Document
from .notify import Notifier
from .patterns import Polarity

STDIN_URI = "untitled:stdin"


def _default_history_path() -> Path:
    return Path(click.get_app_dir("filterline")) / "history.yml"


def _display(level: str, text: str) -> None:
    click.echo(f"{level}: {text}", err=True)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a YAML configuration file.",
)
@click.option(
    "--history",
    "history_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Pattern history file (defaults to the user config directory).",
)
@click.option(
    "--save/--no-save",
    "save",
    default=None,
    help="Save the result next to the source file (overrides the config).",
)
@click.option("-v", "--verbose", is_flag=True, help="Emit structured logs on stderr.")
@click.pass_context
def cli(ctx, config_path: Optional[str], history_path: Optional[str], save: Optional[bool], verbose: bool):
    """Keep (or drop) the lines of a file that contain a string or match a regex."""
    configure_logging(logging.INFO if verbose else logging.WARNING)
    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e))
    if save is not None:
        settings = dataclasses.replace(settings, save_after_filtering=save)

    ctx.obj = {
        "settings": settings,
        "history_path": Path(history_path) if history_path else _default_history_path(),
    }


def _spool_stdin(directory: str) -> Path:
    """Copies standard input to a scratch file, one bounded block at a time."""
    spool = Path(directory) / "stdin.txt"
    with open(spool, "wb") as f:
        shutil.copyfileobj(sys.stdin.buffer, f, READ_CHUNK_SIZE)
    return spool


def _run_filter(ctx, polarity: Polarity, pattern: str, file: str) -> None:
    settings = ctx.obj["settings"]
    try:
        history = PatternHistory.load(ctx.obj["history_path"], max_size=settings.history_size)
    except ConfigError as e:
        raise click.ClickException(str(e))

    host = ConsoleEditorHost(sys.stdout)
    command = FilterCommand(
        polarity,
        settings=settings,
        history=history,
        host=host,
        notifier=Notifier(display=_display),
    )

    if file == "-":
        with tempfile.TemporaryDirectory(prefix="filterline-") as spool_dir:
            document = host.workspace.open(
                Document(uri=STDIN_URI, spool=_spool_stdin(spool_dir))
            )
            result = asyncio.run(command.filter(pattern, DocumentSource(document.uri)))
    else:
        result = asyncio.run(command.filter(pattern, FileSource(Path(file))))

    if not result.ok:
        ctx.exit(1)


def _register(polarity: Polarity, help_text: str) -> None:
    @cli.command(name=polarity.value, help=help_text)
    @click.argument("pattern")
    @click.argument("file", type=click.Path(dir_okay=False, allow_dash=True), default="-")
    @click.pass_context
    def _command(ctx, pattern: str, file: str):
        _run_filter(ctx, polarity, pattern, file)


_register(Polarity.CONTAINS, "Keep lines that contain PATTERN.")
_register(Polarity.NOT_CONTAINS, "Keep lines that do not contain PATTERN.")
_register(Polarity.MATCHES, "Keep lines that match the regular expression PATTERN.")
_register(Polarity.NOT_MATCHES, "Keep lines that do not match the regular expression PATTERN.")


if __name__ == "__main__":
    cli()
