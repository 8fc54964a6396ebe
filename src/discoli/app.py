"""Typer application and CLI entry point for discoli.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``list``, ``desc``, ``exec``, ``update``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~discoli.exceptions.DiscoliError` exits cleanly with its exit code;
any other exception is written to a crash log under the data directory.

See Also:
    :mod:`discoli.config`: Global configuration and directory layout.
    :mod:`discoli.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer
from rich.logging import RichHandler

from discoli import __version__
from discoli.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="discoli",
    help="Browse and call Google Cloud REST APIs from their discovery documents.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from discoli.commands.desc import desc_command  # noqa: E402
from discoli.commands.exec import exec_command  # noqa: E402
from discoli.commands.list import list_command  # noqa: E402
from discoli.commands.update import update_command  # noqa: E402

app.command("list")(list_command)
app.command("desc")(desc_command)
app.command("exec")(exec_command)
app.command("update")(update_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"discoli {__version__}")
        raise typer.Exit()


def _configure_logging(console: Any, verbose: bool) -> None:
    """Route the ``discoli`` logger through Rich on stderr.

    DEBUG with ``--verbose``, WARNING otherwise. A handler installed by an
    earlier invocation in the same process is replaced.
    """
    logger = logging.getLogger("discoli")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        rich_tracebacks=False,
    )
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~discoli.output.OutputManager` from CLI
    flags, falling back to ``default_format`` from the global config (or
    ``DISCOLI_FORMAT``), and installs the log handler.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
    """
    from discoli.config import load_global_config
    from discoli.exceptions import ConfigError
    from discoli.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        configured = load_global_config().default_format
        try:
            fmt = OutputFormat(configured)
        except ValueError:
            raise ConfigError(
                f"Unknown output format '{configured}'. Use one of: auto, json, plain, rich"
            ) from None

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    _configure_logging(output.stderr_console, verbose)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from discoli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``discoli`` console script.

    Unhandled :class:`~discoli.exceptions.DiscoliError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from discoli.exceptions import DiscoliError
        from discoli.output import error

        if isinstance(exc, DiscoliError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
