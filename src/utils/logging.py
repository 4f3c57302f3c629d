import logging
import logging.handlers
import structlog
import sys
from pathlib import Path
from typing import Any, Dict, Optional
from datetime import datetime

RELAY_LOGGER_NAME = "relay"


def setup_logging(
    log_level: str = "INFO", log_to_file: bool = True, logs_dir: str = "logs"
) -> None:
    """Set up logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to files in addition to console
        logs_dir: Directory for the rotating log files
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    # Configure structlog
    structlog.configure(
        processors=[
            # Request/job ids bound via RequestContext
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.set_exc_info,
            # JSON formatting for file logs
            (
                structlog.processors.JSONRenderer()
                if log_to_file
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    # Root logger setup
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()  # Clear any existing handlers
    root_logger.addHandler(console_handler)

    if not log_to_file:
        return

    logs_path = Path(logs_dir)
    logs_path.mkdir(parents=True, exist_ok=True)

    # General application log file
    app_handler = logging.handlers.RotatingFileHandler(
        logs_path / "app.log", maxBytes=10 * 1024 * 1024, backupCount=5  # 10MB
    )
    app_handler.setLevel(logging.INFO)
    app_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        )
    )
    root_logger.addHandler(app_handler)

    # Relay pipeline log file (downloads, parts, uploads)
    relay_handler = logging.handlers.RotatingFileHandler(
        logs_path / "relay.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
    )
    relay_handler.setLevel(logging.DEBUG)
    relay_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        )
    )
    relay_logger = logging.getLogger(RELAY_LOGGER_NAME)
    relay_logger.addHandler(relay_handler)
    relay_logger.propagate = True  # Also send to root logger

    # Error-only log file for critical issues
    error_handler = logging.handlers.RotatingFileHandler(
        logs_path / "errors.log", maxBytes=5 * 1024 * 1024, backupCount=10  # 5MB
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s - %(exc_info)s"
        )
    )
    root_logger.addHandler(error_handler)


class RequestContext:
    """Binds a request or job id into structlog's contextvars."""

    @staticmethod
    def set(**values: Any) -> None:
        structlog.contextvars.bind_contextvars(**values)

    @staticmethod
    def get() -> Dict[str, Any]:
        return structlog.contextvars.get_contextvars()

    @staticmethod
    def clear() -> None:
        structlog.contextvars.clear_contextvars()


def get_relay_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Get a structured logger for the relay pipeline.

    Args:
        name: Logger name (defaults to the relay logger)
    """
    return structlog.get_logger(name or RELAY_LOGGER_NAME)


def log_relay_error(
    error: Exception, context: Dict[str, Any], logger: structlog.BoundLogger = None
) -> None:
    """Log a relay failure with its context."""
    if logger is None:
        logger = get_relay_logger()

    logger.error(
        "Relay step failed",
        error_type=type(error).__name__,
        error_message=str(error),
        timestamp=datetime.now().isoformat(),
        **context,
        exc_info=True,
    )


def log_relay_step(
    step: str, details: Dict[str, Any], logger: structlog.BoundLogger = None
) -> None:
    """Log one step of a relay job."""
    if logger is None:
        logger = get_relay_logger()

    logger.info(
        f"Relay step: {step}",
        step=step,
        timestamp=datetime.now().isoformat(),
        **details,
    )


class RelayLogContext:
    """Context manager that logs start, duration and outcome of a relay step.

    Usable with both ``with`` and ``async with``.
    """

    def __init__(self, operation: str, **context):
        self.operation = operation
        self.context = context
        self.logger = get_relay_logger()
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        log_relay_step(
            f"{self.operation} - START",
            {"start_time": self.start_time.isoformat(), **self.context},
            self.logger,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        end_time = datetime.now()
        elapsed = (end_time - self.start_time).total_seconds()

        if exc_type is not None:
            log_relay_error(
                exc_val,
                {
                    "operation": self.operation,
                    "elapsed_seconds": elapsed,
                    **self.context,
                },
                self.logger,
            )
        else:
            self.logger.info(
                f"Relay step: {self.operation} - DONE",
                operation=self.operation,
                elapsed_seconds=elapsed,
                **self.context,
            )
        return False

    async def __aenter__(self):
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)
