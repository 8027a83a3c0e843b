"""
Command-line interface for tokenprint.

Fingerprints and indexes Python sources, looks files up against an index and
runs the single-file refactorings.
"""

import functools
import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import Config, create_default_config_file
from .core.errors import TokenprintError, is_store_failure
from .core.loader import collect_files
from .core.provider import exclude_kinds
from .core.types import TokenKind
from .fingerprint import extract, fingerprint_unit
from .frontend import PythonUnit, ast_dump, default_node_predicate, describe_ast, flatten_ast
from .index import FingerprintIndexer, corpus_similarity, find_matches, open_store, similarity
from .refactor import rename_at, rewrite_statements, unwrap_while_condition
from .utils.logging_setup import setup_logging


console = Console()


def handle_errors(func):
    """Report package errors in red and exit with status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TokenprintError as e:
            console.print(f"[red]✗ {escape(e.message)}[/red]")
            if is_store_failure(e):
                console.print("[yellow]The fingerprint index may need to be rebuilt[/yellow]")
            sys.exit(1)
    return wrapper


def _config(ctx: click.Context) -> Config:
    return ctx.obj["config"]


def _with_sizes(config: Config, kgram_size, window_size) -> Config:
    if kgram_size is not None:
        config.set("fingerprint.kgram_size", kgram_size)
    if window_size is not None:
        config.set("fingerprint.window_size", window_size)
    return config.require_valid()


def _with_index(config: Config, backend, db_path) -> Config:
    if backend:
        config.set("index.backend", backend)
    if db_path:
        config.set("index.db_path", str(db_path))
    return config.require_valid()


def _emit(unsaved, output) -> None:
    """Write an in-memory result to ``output`` or stdout."""
    if output:
        Path(output).write_text(unsaved.contents, encoding="utf-8")
        console.print(f"[green]✓ Wrote {output}[/green]")
    else:
        click.echo(unsaved.contents, nl=False)


kgram_option = click.option("--kgram-size", "-k", type=int, help="Tokens per k-gram")
window_option = click.option("--window-size", "-w", type=int, help="K-grams per winnowing window")
backend_option = click.option("--backend", type=click.Choice(["sqlite", "memory"]), help="Index backend")
db_option = click.option("--db", "db_path", type=click.Path(dir_okay=False), help="SQLite index path")


@click.group()
@click.version_option(__version__, prog_name="tokenprint")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Configuration file")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity")
@click.option("--log-file", is_flag=True, help="Also write JSON logs under ./logs")
@click.pass_context
@handle_errors
def main(ctx, config_path, verbose, log_file):
    """Token fingerprinting and reference-aware renaming for Python sources."""
    if config_path:
        config = Config.from_file(config_path).apply_environment_overrides()
    else:
        config = Config.find_and_load(Path.cwd())

    level = config.get("logging.level", "WARNING")
    if verbose:
        level = "DEBUG" if verbose > 1 else "INFO"
    setup_logging(
        level=level,
        log_dir=config.get("logging.log_dir"),
        file=log_file or config.get("logging.file", False),
        json_format=config.get("logging.json_format", True),
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--no-comments", is_flag=True, help="Hide comment tokens")
@handle_errors
def tokens(file, no_comments):
    """List the tokens of FILE."""
    unit = PythonUnit.from_file(file)
    predicate = exclude_kinds(TokenKind.COMMENT) if no_comments else None

    table = Table(title=f"Tokens in {file}")
    table.add_column("Position", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Spelling")
    for token in unit.tokens(predicate):
        table.add_row(f"{token.span.start_line}:{token.span.start_column}", str(token.kind), escape(token.spelling))
    console.print(table)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@kgram_option
@click.pass_context
@handle_errors
def kgrams(ctx, file, kgram_size):
    """List every k-gram of FILE before winnowing."""
    config = _with_sizes(_config(ctx), kgram_size, None)
    unit = PythonUnit.from_file(file)
    token_list = unit.tokens(exclude_kinds(TokenKind.COMMENT))

    for kgram in extract(token_list, config.get("fingerprint.kgram_size"), unit):
        start = kgram.start
        console.print(f"[cyan]{start.line}:{start.column}[/cyan] {kgram.structural_hash:>20}  {kgram.value}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@kgram_option
@window_option
@click.option("--json", "as_json", is_flag=True, help="Print fingerprint documents as JSON")
@click.pass_context
@handle_errors
def fingerprint(ctx, file, kgram_size, window_size, as_json):
    """Print the winnowed fingerprints of FILE."""
    config = _with_sizes(_config(ctx), kgram_size, window_size)
    unit = PythonUnit.from_file(file)
    fingerprints = fingerprint_unit(unit, config)

    if as_json:
        documents = [
            {"key": {"hash": kgram.structural_hash, "value": kgram.value}, "file_anchors": [kgram.document]}
            for kgram in fingerprints
        ]
        click.echo(json.dumps(documents, indent=2))
        return

    table = Table(title=f"{len(fingerprints)} fingerprints in {file}")
    table.add_column("Start", style="cyan")
    table.add_column("Hash", justify="right")
    table.add_column("Tokens")
    for kgram in fingerprints:
        table.add_row(f"{kgram.start.line}:{kgram.start.column}", str(kgram.structural_hash),
                      escape(" ".join(kgram.spellings)))
    console.print(table)


@main.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@kgram_option
@window_option
@backend_option
@db_option
@click.pass_context
@handle_errors
def index(ctx, paths, kgram_size, window_size, backend, db_path):
    """Fingerprint PATHS and record them in the index."""
    config = _with_index(_with_sizes(_config(ctx), kgram_size, window_size), backend, db_path)

    files = []
    for path in paths:
        files.extend(collect_files(
            path,
            include=config.get("paths.include"),
            exclude=config.get("paths.exclude"),
            suffixes=config.get("paths.suffixes"),
        ))
    if not files:
        console.print("[yellow]No source files found[/yellow]")
        return

    with open_store(config) as store:
        report = FingerprintIndexer(store, config).index_files(files)
        total_documents = store.count()

    console.print(
        f"[green]✓ Indexed {report.files_indexed} files, {report.total_fingerprints} fingerprints "
        f"({total_documents} keys in index) in {report.duration:.2f}s[/green]"
    )
    for path, error in sorted(report.errors.items()):
        console.print(f"[red]✗ {escape(path)}: {escape(error)}[/red]")
    if not report.success:
        sys.exit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@backend_option
@db_option
@click.pass_context
@handle_errors
def lookup(ctx, file, backend, db_path):
    """Show where the fingerprints of FILE were seen in the index."""
    config = _with_index(_config(ctx), backend, db_path)
    unit = PythonUnit.from_file(file)

    with open_store(config) as store:
        matches = find_matches(unit, store, config)
        scores = similarity(unit, store, config)

    if not matches:
        console.print(f"[green]No indexed file shares fingerprints with {file}[/green]")
        return

    table = Table(title=f"Shared fingerprints of {file}")
    table.add_column("Local", style="cyan")
    table.add_column("Seen in")
    for match in matches:
        seen = ", ".join(f"{a.file_path}:{a.start_line}" for a in match.others)
        table.add_row(f"{match.local.start_line}:{match.local.start_column}", seen)
    console.print(table)

    for other, score in scores.items():
        console.print(f"{other}: [bold]{score:.0%}[/bold] of fingerprints shared")


@main.command()
@click.option("--threshold", "-t", type=float, default=0.0, show_default=True,
              help="Minimum Jaccard similarity to report")
@backend_option
@db_option
@click.pass_context
@handle_errors
def compare(ctx, threshold, backend, db_path):
    """Rank pairs of indexed files by shared fingerprints."""
    config = _with_index(_config(ctx), backend, db_path)
    with open_store(config) as store:
        pairs = corpus_similarity(store).pairs(threshold)

    if not pairs:
        console.print("[green]No similar file pairs[/green]")
        return

    table = Table(title="Similar files")
    table.add_column("File A")
    table.add_column("File B")
    table.add_column("Jaccard", justify="right", style="bold")
    for a, b, score in pairs:
        table.add_row(a, b, f"{score:.2f}")
    console.print(table)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("line", type=int)
@click.argument("column", type=int)
@click.argument("new_name")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the result here")
@handle_errors
def rename(file, line, column, new_name, output):
    """Rename the identifier at LINE:COLUMN of FILE to NEW_NAME."""
    unit = PythonUnit.from_file(file)
    try:
        result = rename_at(unit, line, column, new_name)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="NEW_NAME")
    _emit(result, output)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--pattern", help="Regular expression to replace")
@click.option("--template", help="Replacement template (re.sub syntax)")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the result here")
@handle_errors
def rewrite(file, pattern, template, output):
    """Rewrite statements of FILE; unwraps ``while (cond):`` by default."""
    unit = PythonUnit.from_file(file)
    if pattern is None:
        result = unwrap_while_condition(unit)
    else:
        if template is None:
            raise click.UsageError("--template is required with --pattern")
        result = rewrite_statements(unit, pattern, template)
    _emit(result, output)


@main.command(name="ast")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--all", "show_all", is_flag=True, help="Keep contexts, names and expression wrappers")
@click.option("--kinds", is_flag=True, help="Print node kinds only, one per line")
@handle_errors
def ast_command(file, show_all, kinds):
    """Dump the AST of FILE."""
    unit = PythonUnit.from_file(file)
    predicate = (lambda node: True) if show_all else default_node_predicate
    if kinds:
        click.echo("\n".join(describe_ast(flatten_ast(unit, predicate))))
    else:
        click.echo(ast_dump(unit, predicate))


@main.group(name="config")
def config_group():
    """Manage tokenprint configuration."""
    pass


@config_group.command(name="init")
@click.option("--path", type=click.Path(dir_okay=False), default=".tokenprint.yml", show_default=True,
              help="Path for config file")
def config_init(path):
    """Write the default configuration file."""
    config_path = Path(path)
    if config_path.exists():
        if not click.confirm(f"Config file {path} already exists. Overwrite?"):
            console.print("[yellow]Aborted[/yellow]")
            return
    create_default_config_file(config_path)
    console.print(f"[green]✓ Created config file at {path}[/green]")


@config_group.command(name="show")
@click.pass_context
def config_show(ctx):
    """Print the effective configuration as JSON."""
    click.echo(json.dumps(_config(ctx).to_dict(), indent=2))


@config_group.command(name="validate")
@click.pass_context
def config_validate(ctx):
    """Check the effective configuration."""
    problems = _config(ctx).validate()
    if not problems:
        console.print("[green]✓ Configuration is valid[/green]")
        return
    for problem in problems:
        console.print(f"[red]✗ {problem}[/red]")
    sys.exit(1)


if __name__ == "__main__":
    main()
