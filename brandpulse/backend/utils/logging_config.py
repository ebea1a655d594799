"""Logging Configuration for BrandPulse

Centralized structlog setup with JSON output. Pipeline stages log snake_case
events with keyword context; degradations (empty search results, fail-open
relevance batches, fallback topics) are logged at WARNING so a run can be
reconstructed from its log file alone: logs/backend.log for the API
and logs/pipeline.log for scripts/run_analysis.py (LOG_DIR moves both).
Callers that pass no filename write logs/brandpulse.log.

Usage:
    >>> from brandpulse.backend.utils.logging_config import setup_logging
    >>> setup_logging()
    >>> import structlog
    >>> logger = structlog.get_logger()
    >>> logger.info("analysis_started", entity="Tesla", topic_count=5)
"""

import logging
import sys
from pathlib import Path

import structlog


def setup_logging(
    log_dir: str = "logs",
    log_filename: str = "brandpulse.log",
    console_level: int = logging.INFO,
) -> None:
    """Configure structlog with JSON renderer, file output and console output.

    Args:
        log_dir: Directory for log files, relative to the working directory (default: "logs")
        log_filename: Name of the log file (default: "brandpulse.log")
        console_level: Minimum level echoed to stdout (default: INFO)

    Log entry format (JSON):
        {
            "event": "search_completed",
            "level": "info",
            "timestamp": "2026-02-10T12:34:56.789Z",
            "logger": "brandpulse.reddit",
            ...additional context fields...
        }
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / log_filename

    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Final JSON rendering happens in the stdlib formatter so that records from
    # third-party loggers (httpx, uvicorn) come out in the same shape
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=shared_processors,
    )

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str = None):
    """Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__). If None, returns root logger.

    Returns:
        Configured structlog logger (BoundLoggerLazyProxy)
    """
    return structlog.get_logger(name)
