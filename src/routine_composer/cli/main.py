"""
CLI entry point using Typer.

Provides commands for routine composition:
- new / list / show / delete: manage stored routines
- add / remove / move / group / ungroup / set-metric: one-shot edits
- edit: interactive editing with undo/redo
- estimate: advisory routine duration
- catalog: list known exercises
"""

import os
from typing import Annotated

import typer

from ..core.logger import setup_logger
from .app import app

# Register commands on the shared app
from .commands import editing, routines  # noqa: F401


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging on stderr"),
    ] = False,
) -> None:
    """
    Compose workout routines with supersets, circuits and undo/redo.
    """
    setup_logger(
        level="DEBUG" if verbose else "WARNING",
        log_file=os.environ.get("ROUTINE_COMPOSER_LOG_FILE"),
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
