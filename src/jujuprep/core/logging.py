"""Logging setup: stdlib logging rendered through rich."""

import logging
from collections.abc import MutableMapping
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

# Keyword arguments that belong to the stdlib logging call itself.
_LOGGING_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


class ContextAdapter(logging.LoggerAdapter):
    """Lets callers attach context as keyword arguments.

    ``logger.info("Bootstrapped Juju", provider="lxd")`` is rendered as
    ``Bootstrapped Juju [provider=lxd]``. Empty values are dropped.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        context = {
            k: v for k, v in kwargs.items() if k not in _LOGGING_KWARGS and v not in ("", None)
        }
        passthrough = {k: v for k, v in kwargs.items() if k in _LOGGING_KWARGS}

        if context:
            rendered = " ".join(f"{k}={v}" for k, v in sorted(context.items()))
            msg = f"{msg} [dim]\\[{rendered}][/dim]"

        return msg, passthrough


def setup_logging(verbose: bool = False, trace: bool = False) -> None:
    """Route all logging to stderr through a RichHandler.

    Args:
        verbose: Log at DEBUG level
        trace: Log at DEBUG level and include source locations
    """
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=trace,
        markup=True,
        rich_tracebacks=True,
        tracebacks_show_locals=trace,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )

    logging.basicConfig(
        level=logging.DEBUG if verbose or trace else logging.INFO,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def get_logger(name: str) -> ContextAdapter:
    """Return a logger for ``name`` that accepts keyword context."""
    return ContextAdapter(logging.getLogger(name), {})
