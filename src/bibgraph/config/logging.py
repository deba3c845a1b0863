"""structlog wiring for the bibgraph CLI.

Every record, whether emitted through ``structlog.get_logger`` or a plain
``logging.getLogger``, goes through one stderr handler so sync and traversal
diagnostics never mix with command output on stdout. ``--log-json`` swaps the
console renderer for JSON lines.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor

# Third-party loggers capped regardless of --verbose.
_QUIET_LOGGERS: dict[str, int] = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "networkx": logging.WARNING,
}


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _final_chain(log_json: bool) -> list[Processor]:
    chain: list[Processor] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if log_json:
        chain += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return chain


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route all logging to stderr through structlog.

    ``verbose`` lowers the ``bibgraph`` logger to DEBUG; everything else stays
    at WARNING. Safe to call more than once: the root handler is replaced,
    not stacked.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=_final_chain(log_json),
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)

    logging.getLogger("bibgraph").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
