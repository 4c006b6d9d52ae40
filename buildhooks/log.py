"""Console logging for the CLI."""

import logging

from rich.logging import RichHandler


def configure_logging(verbose: bool = False) -> None:
    """Route all buildhooks loggers through rich. DEBUG shows every HTTP call."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, markup=False)],
        force=True,
    )
    # httpx logs every request at INFO; keep it for --verbose only
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
