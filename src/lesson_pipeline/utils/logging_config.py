"""Logging configuration for the lesson pipeline.

Two backends are supported:
- stdlib logging with a JSON or plain-text formatter
- loguru, with stdlib records routed through an ``InterceptHandler``
"""

import inspect
import json
import logging
import sys
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from loguru import logger as loguru_logger

_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    Keys: ``timestamp`` (ISO 8601 UTC), ``level``, ``logger``, ``message``,
    optional ``exception`` and ``extra`` (fields passed via ``extra={...}``).
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, ensure_ascii=False, default=str)


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru, keeping the caller's frame."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Union[str, int] = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame:
            filename = frame.f_code.co_filename
            is_logging = filename == logging.__file__
            is_frozen = "importlib" in filename and "_bootstrap" in filename
            if depth > 0 and not (is_logging or is_frozen):
                break
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging(
    level: Union[str, int] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    json_format: bool = False,
    console_output: bool = True,
    use_loguru: bool = False,
) -> None:
    """Configure logging for the pipeline.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional file path for log output
        json_format: Emit JSON lines instead of plain text
        console_output: Log to stdout
        use_loguru: Route stdlib logging through loguru sinks

    Example:
        >>> configure_logging(level="DEBUG", json_format=True)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    if use_loguru:
        logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
        loguru_logger.remove()
        if console_output:
            loguru_logger.add(
                sys.stdout, level=level, backtrace=True, diagnose=False, serialize=json_format
            )
        if log_file:
            loguru_logger.add(str(log_file), level=level, serialize=json_format)
        logging.getLogger().setLevel(level)
        loguru_logger.info(f"Logging configured via loguru: level={logging.getLevelName(level)}")
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if json_format:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Keep HTTP client chatter out of pipeline logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    logging.info(f"Logging configured: level={logging.getLevelName(level)}, json_format={json_format}")


@contextmanager
def pipeline_stage_logger(stage_name: str, **context):
    """Log entry, completion (with duration) and failure of a pipeline stage.

    Exceptions are logged with ``exc_info`` and re-raised.

    Example:
        >>> with pipeline_stage_logger("vocabulary", tier="B1", request_id="abc") as log:
        ...     log.info("Generating definitions")
    """
    stage_logger = logging.getLogger(f"lesson_pipeline.stage.{stage_name}")

    start_time = datetime.now(UTC)
    stage_logger.info(
        f"Starting pipeline stage: {stage_name}",
        extra={"stage": stage_name, "status": "started", **context},
    )

    try:
        yield stage_logger
    except Exception as e:
        duration_ms = (datetime.now(UTC) - start_time).total_seconds() * 1000
        stage_logger.error(
            f"Failed pipeline stage: {stage_name}",
            extra={
                "stage": stage_name,
                "status": "failed",
                "duration_ms": round(duration_ms, 2),
                "error": str(e)[:200],
                **context,
            },
            exc_info=True,
        )
        raise

    duration_ms = (datetime.now(UTC) - start_time).total_seconds() * 1000
    stage_logger.info(
        f"Completed pipeline stage: {stage_name}",
        extra={
            "stage": stage_name,
            "status": "completed",
            "duration_ms": round(duration_ms, 2),
            **context,
        },
    )
