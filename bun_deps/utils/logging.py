"""Logging utilities for bun-deps.

Every module logs through a child of the ``bun_deps`` logger, which owns
the only handler: a RichHandler writing to stderr, so stdout stays free
for command output and ``--json`` results.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

ROOT_LOGGER = "bun_deps"

_THEME = Theme({
    "logging.level.info": "cyan",
    "logging.level.warning": "yellow",
    "logging.level.error": "red",
    "logging.level.debug": "dim",
})


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = RichHandler(
            console=Console(stderr=True, theme=_THEME),
            show_time=False,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        root.addHandler(handler)
        root.setLevel(logging.WARNING)
        root.propagate = False
    return root


def setup_logging(verbose: bool = False) -> None:
    """Set the bun-deps log level for one command run.

    Args:
        verbose: Show debug records instead of warnings and errors only
    """
    _configure_root().setLevel(logging.DEBUG if verbose else logging.WARNING)

    # aiohttp logs connection details at debug level
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get the logger for a bun-deps component.

    Args:
        name: Component name, e.g. ``"BunLockfileParser"``

    Returns:
        Child of the ``bun_deps`` logger
    """
    _configure_root()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
