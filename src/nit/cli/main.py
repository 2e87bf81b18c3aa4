"""CLI entry point for nit.

Invoked as::

    nit [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m nit.cli.main

Commands
--------
run         Replay a YAML review script and print the resulting report
shell       Review files interactively
kinds       List the annotation kinds
health      Check clipboard tools, pickers and configuration
version     Show version information
"""
from __future__ import annotations

import logging
import sys
from typing import NoReturn

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from nit.config import NitConfig, load_config
from nit.errors import NitError

console = Console()
err_console = Console(stderr=True)

_LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.INFO: "cyan",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
}


def _notify(message: str, level: int = logging.INFO) -> None:
    """Print a session notification on stderr, keeping stdout for reports."""
    style = _LEVEL_STYLES.get(level, "white")
    err_console.print(Text(message, style=style))


def _fail(message: str) -> NoReturn:
    err_console.print(Text.assemble(("Error: ", "red"), message))
    sys.exit(1)


def _load_config_or_exit(path: str | None) -> NitConfig:
    try:
        return load_config(path)
    except NitError as exc:
        _fail(str(exc))


def _session(config: NitConfig, **kwargs):
    from nit.session import ReviewSession

    return ReviewSession(config, notify=_notify, **kwargs)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="nit-review")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="YAML config file (defaults to $NIT_CONFIG).",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log debug output to stderr")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Line-anchored review annotations for text documents."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    _load_plugins()
    ctx.obj = {"config_path": config_path}


def _load_plugins() -> None:
    """Register third-party sinks and pickers from installed packages."""
    from nit.export.delivery import sink_registry
    from nit.pickers import picker_registry

    for registry in (sink_registry, picker_registry):
        registry.load_entrypoints()


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from nit import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]nit-review[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# kinds command
# ---------------------------------------------------------------------------


@cli.command(name="kinds")
def kinds_command() -> None:
    """List the annotation kinds."""
    from nit.models import AnnotationKind

    table = Table(title="Annotation kinds")
    table.add_column("Kind", style="bold")
    table.add_column("Meaning")
    for kind in AnnotationKind:
        table.add_row(kind.value, kind.description)
    console.print(table)


# ---------------------------------------------------------------------------
# health command
# ---------------------------------------------------------------------------


@cli.command(name="health")
@click.pass_context
def health_command(ctx: click.Context) -> None:
    """Check clipboard tools, pickers and configuration."""
    from nit.health import HealthStatus, run_checks

    config_path = ctx.obj.get("config_path") if ctx.obj else None
    results = run_checks(load=lambda: load_config(config_path))

    colors = {
        HealthStatus.OK: "green",
        HealthStatus.INFO: "blue",
        HealthStatus.WARN: "yellow",
        HealthStatus.ERROR: "red",
    }
    table = Table(title="nit health", show_lines=True)
    table.add_column("Status", style="bold", min_width=6)
    table.add_column("Check", min_width=10)
    table.add_column("Result")
    for check in results:
        color = colors[check.status]
        detail = Text(check.message)
        for advice in check.advice:
            detail.append(f"\n- {advice}", style="dim")
        table.add_row(f"[{color}]{check.status.name}[/{color}]", check.name, detail)
    console.print(table)

    if any(check.is_error for check in results):
        sys.exit(1)


# ---------------------------------------------------------------------------
# run command
# ---------------------------------------------------------------------------


@cli.command(name="run")
@click.argument("script", type=click.Path(exists=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["markdown", "json", "yaml"], case_sensitive=False),
    default="markdown",
    help="Format of the final report",
)
@click.option("--output", "-o", default=None, help="Output file path (defaults to stdout)")
@click.pass_context
def run_command(ctx: click.Context, script: str, output_format: str, output: str | None) -> None:
    """Replay a YAML review script and print the resulting report.

    SCRIPT is the path to a YAML file with a ``steps`` list.

    Examples:

    \b
        nit run review.yaml
        nit run review.yaml --format json -o nits.json
    """
    from nit.export.delivery import FileSink
    from nit.export.serializer import ReportSerializer
    from nit.script import ScriptRunner, load_script

    base = _load_config_or_exit(ctx.obj.get("config_path") if ctx.obj else None)
    try:
        parsed = load_script(script)
    except FileNotFoundError:
        _fail(f"File not found: {script}")
    except OSError as exc:
        _fail(f"Cannot read {script}: {exc}")
    except NitError as exc:
        _fail(str(exc))

    try:
        config = NitConfig.from_mapping({**base.to_dict(), **parsed.config})
        session = _session(config)
        ScriptRunner(session, parsed.base_dir).run(parsed.steps)
    except NitError as exc:
        _fail(str(exc))

    items = session.collect()
    output_format = output_format.lower()
    if output_format == "markdown":
        text = session.render(items)
    elif output_format == "json":
        text = ReportSerializer().to_json(items)
    else:
        text = ReportSerializer().to_yaml(items)

    if output:
        try:
            FileSink(output).deliver(text)
        except NitError as exc:
            _fail(str(exc))
        err_console.print(f"[green]Report written to[/green] {output}")
    else:
        click.echo(text)

    deleted = {item.document for item in items if not item.exists}
    err_console.print(
        f"\n[bold]Summary:[/bold] {len(items)} annotation(s), {len(deleted)} warning(s)"
    )


# ---------------------------------------------------------------------------
# shell command
# ---------------------------------------------------------------------------

_SHELL_HELP = [
    ("open PATH", "open a file and make it current"),
    ("add LINE KIND TEXT", "annotate a line (NOTE, SUGGESTION, ISSUE, PRAISE)"),
    ("edit LINE KIND [TEXT]", "update an annotation; empty text deletes it"),
    ("delete LINE", "delete the annotation on a line"),
    ("next LINE / prev LINE", "jump to the next / previous annotation"),
    ("insert BEFORE TEXT", "insert a line of text"),
    ("remove START [END]", "delete lines"),
    ("move START END AFTER", "move lines below another line"),
    ("save", "write the current file to disk"),
    ("show", "print the current file with its annotations"),
    ("list", "pick an annotation from every file"),
    ("export", "deliver the review report"),
    ("clear [all]", "clear the current file (or every file)"),
    ("quit", "leave the shell"),
]


def _print_help() -> None:
    table = Table(show_header=False, box=None)
    for usage, meaning in _SHELL_HELP:
        table.add_row(f"[bold]{usage}[/bold]", meaning)
    console.print(table)


def _show(session, key: str) -> None:
    workspace = session.workspace
    notes = dict(session.store.items(key))
    for number, text in enumerate(workspace.buffer(key).lines, start=1):
        annotation = notes.get(number)
        if annotation is not None:
            console.print(
                Text(f"      # [{annotation.kind.value}] {annotation.text}", style="yellow")
            )
        marker = "●" if annotation is not None else " "
        console.print(Text(f"{marker}{number:>4} {text}"))


@cli.command(name="shell")
@click.argument("files", nargs=-1, type=click.Path(exists=False))
@click.pass_context
def shell_command(ctx: click.Context, files: tuple[str, ...]) -> None:
    """Review files interactively.

    FILES are opened up front; the last one becomes current.
    """
    from nit.errors import ScriptError
    from nit.script import ScriptRunner, parse_command

    config = _load_config_or_exit(ctx.obj.get("config_path") if ctx.obj else None)
    session = _session(config)
    runner = ScriptRunner(session)
    current: str | None = None
    for file in files:
        try:
            current = session.open(file)
        except (OSError, ValueError) as exc:
            _fail(f"Cannot open {file}: {exc}")

    console.print("[bold]nit shell[/bold]: type 'help' for commands")
    while True:
        try:
            line = click.prompt("nit", default="", show_default=False, prompt_suffix="> ")
        except click.Abort:
            break
        command = line.strip()
        if not command:
            continue
        verb = command.split()[0].lower()
        if verb in ("quit", "exit"):
            break
        if verb == "help":
            _print_help()
            continue
        if verb == "show":
            if current is None:
                _notify("No file open", logging.WARNING)
            else:
                _show(session, current)
            continue
        if verb == "list":
            chosen = session.list()
            if chosen is not None and chosen.exists:
                current = session.open(chosen.document)
                console.print(f"→ {chosen.document}:{chosen.line}")
            continue
        try:
            step = parse_command(command, current)
            result = runner.run_step(step)
        except ScriptError as exc:
            _notify(str(exc), logging.WARNING)
            continue
        except NitError as exc:
            _notify(str(exc), logging.ERROR)
            continue
        if verb == "open":
            current = result
        elif verb in ("next", "prev") and result is not None:
            console.print(
                Text(f"→ line {result.line}: [{result.annotation.kind.value}] {result.annotation.text}")
            )


if __name__ == "__main__":
    cli()
