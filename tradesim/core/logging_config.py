"""
Logging Configuration
=====================
Structured logging setup using structlog for consistent, parseable logs.
Run-level context (input file, run id) is attached through structlog
contextvars and merged into every entry.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

import structlog
from structlog.types import EventDict, Processor

from tradesim.core.config import Settings, get_settings


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO timestamp to every log entry."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def app_context_processor(settings: Settings) -> Processor:
    """Build a processor that stamps app name and environment on each entry."""

    def add_app_context(
        logger: logging.Logger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict["app"] = settings.app_name
        event_dict["env"] = settings.app_env.value
        return event_dict

    return add_app_context


def censor_sensitive_data(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Remove or mask sensitive data from logs."""
    sensitive_keys = ["password", "token", "secret", "api_key", "private_key", "authorization"]

    for key in list(event_dict.keys()):
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in sensitive_keys):
            event_dict[key] = "***REDACTED***"

    return event_dict


def setup_logging(
    settings: Optional[Settings] = None,
    log_level: Optional[str] = None,
    log_file: Optional[Union[str, Path]] = None,
    json_format: Optional[bool] = None
) -> structlog.BoundLogger:
    """
    Configure structured logging for the application.

    Args:
        settings: Application settings (default: cached settings)
        log_level: Override log level from settings
        log_file: Also write log lines to this file
        json_format: Force JSON formatting on or off

    Returns:
        Configured structlog logger
    """
    settings = settings or get_settings()
    level = log_level or settings.log_level
    if json_format is None:
        json_format = settings.log_json or settings.is_production

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_timestamp,
        app_context_processor(settings),
        censor_sensitive_data,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback
        )

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    # Logs go to stderr so stdout stays clean for reports
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    handlers: list[logging.Handler] = [console_handler]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers = handlers
    root_logger.setLevel(getattr(logging, level.upper()))

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return structlog.get_logger()


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a logger instance with optional name binding.

    Args:
        name: Optional module/component name to bind to logger

    Returns:
        Lazy structlog proxy. Nothing is bound until the first log call,
        so module-level loggers pick up whatever setup_logging configured.
    """
    if name:
        return structlog.get_logger(component=name)
    return structlog.get_logger()


class Loggers:
    """Pre-configured loggers for different components."""

    @staticmethod
    def backtest() -> structlog.BoundLogger:
        """Logger for the bar-by-bar simulator."""
        return get_logger("backtest")

    @staticmethod
    def risk() -> structlog.BoundLogger:
        """Logger for exit rules and sizing."""
        return get_logger("risk")

    @staticmethod
    def data() -> structlog.BoundLogger:
        """Logger for loaders and feeds."""
        return get_logger("data")

    @staticmethod
    def strategy() -> structlog.BoundLogger:
        """Logger for signal evaluation."""
        return get_logger("strategy")

    @staticmethod
    def regime() -> structlog.BoundLogger:
        """Logger for the regime overlay and rebalancer."""
        return get_logger("regime")


class LogMessages:
    """
    Standard log message templates for consistency.
    Use these to ensure consistent logging across the application.
    """

    # Trading events
    TRADE_OPENED = "Trade opened"
    TRADE_CLOSED = "Trade closed"
    TRADE_REJECTED = "Trade rejected"

    # Risk events
    STOP_LOSS_TRIGGERED = "Stop loss triggered"
    TAKE_PROFIT_REACHED = "Take profit reached"
    TIME_EXIT_TRIGGERED = "Time exit triggered"

    # Run events
    BACKTEST_STARTED = "Backtest started"
    BACKTEST_COMPLETED = "Backtest completed"
    REGIME_BACKTEST_COMPLETED = "Regime backtest completed"
    REBALANCE_PLANNED = "Rebalance planned"

    # Data events
    DATA_LOADED = "Market data loaded"
    DATA_ERROR = "Market data error"
    CONFIDENCE_FETCHED = "Confidence index fetched"
