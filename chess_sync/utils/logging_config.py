# chess_sync/utils/logging_config.py
"""
Configures structured logging for the `chess-sync` command line.

Records from the project and from its libraries (httpx, aiosqlite,
python-chess) all pass through the standard library root logger and are
rendered by one structlog pipeline. The console goes to stderr, which keeps
stdout for command output such as the JSON printed by `extract`.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import structlog
from structlog.types import Processor

# Library loggers and the lowest level they are allowed to emit.
QUIET_LOGGERS: Dict[str, int] = {
    "httpx": logging.WARNING,       # one INFO line per archive request
    "httpcore": logging.WARNING,
    "aiosqlite": logging.WARNING,   # DEBUG line per statement
    "chess.pgn": logging.CRITICAL,  # movetext errors are reported as PgnParsingError instead
}


def _shared_processors() -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _formatted(handler: logging.Handler, renderer: Processor, pre_chain: List[Processor]) -> logging.Handler:
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(foreign_pre_chain=pre_chain, processor=renderer))
    return handler


def setup_logging(log_level: str = "INFO", log_file: Optional[Path] = None, json_console: bool = False) -> None:
    """
    Routes all logging to stderr and, optionally, to a JSON-lines file.

    Args:
        log_level: Root level name, case-insensitive ("debug", "INFO", ...).
        log_file: Also append JSON lines here; missing parent directories are created.
        json_console: Render the console as JSON instead of the human-readable
            format. Colours are only used when stderr is a terminal.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    console_renderer: Processor
    if json_console:
        console_renderer = structlog.processors.JSONRenderer()
    else:
        console_renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    handlers = [_formatted(logging.StreamHandler(sys.stderr), console_renderer, shared)]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        handlers.append(_formatted(file_handler, structlog.processors.JSONRenderer(), shared))

    logging.basicConfig(handlers=handlers, level=log_level.upper(), force=True)
    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
