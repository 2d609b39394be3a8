"""Diagnostic logging for dapm-provision.

Step narration goes to stdout through rich; structured log events go to
stderr, rendered for humans by default or as one JSON object per line with
--json-logs so a CI job can parse them.
"""

import logging
import sys

import structlog

VERBOSITY_LEVELS = ("warning", "info", "debug")


def level_for_verbosity(verbose: int) -> str:
    """Translate a -v count into a level name."""
    return VERBOSITY_LEVELS[min(verbose, len(VERBOSITY_LEVELS) - 1)]


def configure_logging(level: str = "warning", json_output: bool = False) -> None:
    """Route stdlib logging and structlog events to stderr.

    Called once by the CLI before anything else runs.

    Args:
        level: Log level (debug, info, warning, error, critical)
        json_output: If True, output JSON format
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(log_level)

    logging.basicConfig(
        level=log_level,
        handlers=[stream_handler],
        format="%(message)s",
        force=True,
    )

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Module logger; events are key-value pairs, e.g. logger.info("step_started", step=...)."""
    return structlog.get_logger(name)
