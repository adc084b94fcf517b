"""Logging configuration using structlog."""

import logging
import sys
import uuid
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from rich.console import Console

if TYPE_CHECKING:
    from structlog.typing import EventDict, WrappedLogger

# Re-export BoundLogger for type hints in other modules
BoundLogger = structlog.stdlib.BoundLogger

_console: Console | None = None

# Dataset rows and model outputs can be arbitrarily long
_MAX_VALUE_LENGTH = 300

# Third-party loggers kept at WARNING unless we're at DEBUG
_NOISY_LOGGERS = [
    "httpcore",
    "httpx",
    "asyncio",
    "openai",
    "anthropic",
    "google.genai",
    "google_genai",
    "google.auth",
    "urllib3",
]


def get_console() -> Console:
    """Get the global Rich console for coordinated output."""
    global _console
    if _console is None:
        _console = Console(stderr=True)
    return _console


def generate_request_id() -> str:
    """Generate a short request ID for correlating provider calls."""
    return str(uuid.uuid4())[:8]


def _truncate_long_values(
    _logger: "WrappedLogger", _method_name: str, event_dict: "EventDict"
) -> "EventDict":
    """Truncate long string values (prompts, model output) in the event dict."""
    for key, value in list(event_dict.items()):
        if key == "event":
            continue
        if isinstance(value, str) and len(value) > _MAX_VALUE_LENGTH:
            event_dict[key] = value[:_MAX_VALUE_LENGTH] + f"... [{len(value)} chars total]"
    return event_dict


def _build_formatter(
    shared_processors: list[structlog.types.Processor], json_format: bool, colors: bool
) -> structlog.stdlib.ProcessorFormatter:
    if json_format:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=colors,
            exception_formatter=structlog.dev.plain_traceback,
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    json_format: bool = False,
    console_level: str | None = None,
    file_level: str | None = None,
) -> None:
    """Configure structlog for the application.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path; rotated daily with 7 days retention
        json_format: If True, render JSON lines instead of console output
        console_level: Optional override for the console handler level
        file_level: Optional override for the file handler level
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(log_level, logging.WARNING))

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _truncate_long_values,
    ]

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(
        getattr(logging, console_level.upper(), log_level) if console_level else log_level
    )
    console_handler.setFormatter(_build_formatter(shared_processors, json_format, colors=True))
    root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.suffix = "%Y-%m-%d"
        file_handler.setLevel(
            getattr(logging, file_level.upper(), log_level) if file_level else log_level
        )
        file_handler.setFormatter(_build_formatter(shared_processors, json_format, colors=False))
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,  # Allow reconfiguration
    )


def get_logger(name: str | None = None) -> BoundLogger:
    """Get a structlog bound logger."""
    return structlog.get_logger(name)


def create_task_log_path(log_dir: str | Path, prefix: str = "run") -> tuple[str, Path]:
    """Create a unique log file path for one CLI task.

    Returns:
        Tuple of (task_id, log_file_path), e.g. ``.logs/run_20260109_143052_a1b2c3d4.log``
    """
    log_dir_path = Path(log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)

    task_id = generate_request_id()
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return task_id, log_dir_path / f"{prefix}_{timestamp}_{task_id}.log"


def setup_task_logging(
    log_dir: str | Path,
    prefix: str = "run",
    verbose: bool = False,
) -> tuple[str, Path]:
    """Set up logging for one CLI task.

    The console only shows WARNING and above unless ``verbose`` (keeps the
    progress bar readable); the task log file always captures DEBUG.

    Returns:
        Tuple of (task_id, log_file_path)
    """
    task_id, log_path = create_task_log_path(log_dir, prefix)

    setup_logging(
        level="DEBUG",
        log_file=str(log_path),
        console_level="DEBUG" if verbose else "WARNING",
        file_level="DEBUG",
    )

    return task_id, log_path
