"""Main CLI application: registers all subcommands and global options."""

from __future__ import annotations

from pathlib import Path

import typer

from promptweave.logging import setup_logging

app = typer.Typer(
    name="promptweave",
    help="promptweave - multi-agent workflow orchestration.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)


class _GlobalState:
    """Shared state set by the top-level callback, consumed by subcommands."""

    config_path: Path | None = None
    verbose: bool = False
    quiet: bool = False


state = _GlobalState()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show DEBUG-level logs."),  # noqa: B008
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress logs below WARNING."),  # noqa: B008
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to config.json."),  # noqa: B008
) -> None:
    """promptweave - multi-agent workflow orchestration."""
    state.verbose = verbose
    state.quiet = quiet
    state.config_path = config
    setup_logging(verbose=verbose, quiet=quiet)


# Register subcommands: imported at bottom to avoid circular deps
from promptweave.cli.agent_cmd import agent_app  # noqa: E402
from promptweave.cli.workflow_cmd import workflow_app  # noqa: E402

app.add_typer(agent_app, name="agent", help="Inspect configured agents.")
app.add_typer(workflow_app, name="workflow", help="Manage and execute workflows.")
