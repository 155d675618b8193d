"""
structlog setup for applications embedding the SDK.

Library modules only call ``logging.getLogger(__name__)``. An application
calls ``setup_logging()`` once; stdlib records then go through the same
processor chain as structlog loggers, so wallet context bound with
``bind_wallet_context`` shows up on every line.
"""

import logging
import sys
from typing import IO, List, Optional

import structlog

from .config import settings


QUIET_LOGGERS = ("httpcore", "httpx", "asyncio")


def _processors(json_logs: bool) -> List[structlog.types.Processor]:
    chain: List[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_logs:
        chain.append(structlog.processors.format_exc_info)
    chain.append(structlog.processors.UnicodeDecoder())
    return chain


def setup_logging(
    log_level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """Route stdlib and structlog output through one handler.

    Args:
        log_level: level name, defaults to ``settings.log_level``
        json_logs: JSON lines when True, colored console otherwise;
            defaults to console at DEBUG and JSON above it
        stream: destination, defaults to stdout
    """
    level = logging.getLevelName((log_level or settings.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO
    if json_logs is None:
        json_logs = level > logging.DEBUG

    shared = _processors(json_logs)
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # tx polling makes the HTTP stack very chatty
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_wallet_context(address: str, chain_id: str) -> None:
    """Attach wallet identity to every log line emitted in the current context."""
    structlog.contextvars.bind_contextvars(wallet=address, chain_id=chain_id)


def clear_wallet_context() -> None:
    structlog.contextvars.unbind_contextvars("wallet", "chain_id")
