from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Optional

import typer

from argfile.core.errors import (
    ArgFileError,
    OptionFileReadError,
    OptionFileTokenizeError,
    TokenizationError,
)
from argfile.core.expand.expand_args import OptionFileExpander
from argfile.core.expand.expander_config import ExpanderConfigError, load_and_merge
from argfile.core.io.file_provider import FileSystemProvider
from argfile.core.tokenize.tokenize_line import tokenize_line

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log option files as they are read"),
) -> None:
    """argfile CLI: expand @file arguments."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(name)s: %(message)s")


@app.command("expand")
def expand(
    args: Optional[list[str]] = typer.Argument(
        None, help="Arguments to expand; put them after -- if any start with a dash"
    ),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    config_file: Optional[str] = typer.Option(
        None, "--config", help="Optional YAML file with expander settings"
    ),
    base_dir: Optional[str] = typer.Option(
        None, "--base-dir", help="Directory that relative @file names resolve against"
    ),
    no_cycle_check: bool = typer.Option(
        False, "--no-cycle-check", help="Do not stop on option files that reference themselves"
    ),
) -> None:
    """Expand @file arguments and print the resulting argument list."""
    if format not in ("text", "json"):
        _print_errors(
            [
                ArgFileError(
                    code="E_EXPAND_UNKNOWN_FORMAT",
                    message=f"unknown format: {format} (choose one of: text, json)",
                )
            ]
        )
        raise typer.Exit(code=2)

    def _emit_json(ok: bool, *, exit_code: int, expanded: list[str], errors: list[ArgFileError]) -> None:
        payload = {
            "tool": "argfile",
            "command": "expand",
            "ok": ok,
            "count": len(expanded),
            "args": expanded,
            "errors": [
                {"code": e.code, "message": e.message, "file": e.file, "line": e.line}
                for e in errors
            ],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        config = load_and_merge(config_file)
    except FileNotFoundError:
        _print_errors(
            [
                ArgFileError(
                    code="E_CONFIG_FILE_NOT_FOUND",
                    message=f"config file not found: {config_file}",
                    file=config_file,
                )
            ]
        )
        raise typer.Exit(code=1)
    except ExpanderConfigError as e:
        _print_errors([ArgFileError(code="E_CONFIG_INVALID", message=str(e), file=config_file)])
        raise typer.Exit(code=2)

    if no_cycle_check:
        config = replace(config, detect_cycles=False)

    expander = OptionFileExpander(FileSystemProvider(base_dir or config.base_dir), config=config)
    try:
        expanded = expander.expand_arguments(args or [])
    except ArgFileError as e:
        exit_code = 1 if isinstance(e, OptionFileReadError) else 2
        if format == "json":
            _emit_json(False, exit_code=exit_code, expanded=[], errors=[e])
        _print_errors([e])
        raise typer.Exit(code=exit_code)
    except RecursionError:
        err = ArgFileError(
            code="E_RECURSION",
            message="option files nest too deeply (self-reference with --no-cycle-check?)",
        )
        if format == "json":
            _emit_json(False, exit_code=2, expanded=[], errors=[err])
        _print_errors([err])
        raise typer.Exit(code=2)

    if format == "json":
        _emit_json(True, exit_code=0, expanded=expanded, errors=[])
    for arg in expanded:
        typer.echo(arg)


@app.command("tokenize")
def tokenize(line: str = typer.Argument(..., help="One line of option file text")) -> None:
    """Print the tokens of a single option file line, one per line."""
    try:
        tokens = tokenize_line(line)
    except TokenizationError as e:
        _print_errors([OptionFileTokenizeError(code="E_TOKENIZE", message=str(e))])
        raise typer.Exit(code=2)
    for token in tokens:
        typer.echo(token)


def _print_errors(errors: list[ArgFileError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.line or 0, e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="argfile")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
