"""Structured error log for card generation and export failures.

Each failure becomes one ``StructuredError`` record, written to
``<log_dir>/<name>.log`` as a JSON line (or a single text line when
``LOG_FORMAT=text``).
"""

import json
import logging
import logging.handlers
import traceback
import uuid
from datetime import UTC, datetime
from enum import Enum
from functools import cache
from typing import Any

from pydantic import BaseModel, Field

from linkcard.config import Settings, get_settings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ErrorSeverity(Enum):
    """How loudly a failure is reported."""

    WARNING = "warning"
    ERROR = "error"

    @property
    def level(self) -> int:
        return logging.WARNING if self is ErrorSeverity.WARNING else logging.ERROR


class ErrorCategory(Enum):
    """Where in the card flow a failure happened."""

    INPUT = "input"
    EXPORT = "export"
    SYSTEM = "system"

    @property
    def default_severity(self) -> ErrorSeverity:
        return ErrorSeverity.WARNING if self is ErrorCategory.INPUT else ErrorSeverity.ERROR


class StructuredError(BaseModel):
    """One logged failure with the card context it happened in."""

    error_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    component: str = Field(description="Controller action that failed, e.g. 'generate'")
    error_type: str = Field(description="Exception class name")
    url: str | None = None
    generation: int | None = Field(default=None, description="Generation sequence number")
    export_format: str | None = None
    pixel_density: float | None = None
    traceback: str | None = None

    def context(self) -> dict[str, Any]:
        """Card fields that were set, in a stable order."""
        fields = ("url", "generation", "export_format", "pixel_density")
        return {name: getattr(self, name) for name in fields if getattr(self, name) is not None}

    def summary(self) -> str:
        """Single-line form used by the text log format."""
        parts = [
            f"[{self.category.value}/{self.component}] {self.error_type}: {self.message}",
            *(f"{key}={value}" for key, value in self.context().items()),
        ]
        return " | ".join(parts)


def error_from_exception(
    exception: BaseException,
    category: ErrorCategory,
    component: str,
    **context: Any,
) -> StructuredError:
    """Capture ``exception`` with its traceback and card context.

    ``context`` takes the optional ``StructuredError`` card fields (``url``,
    ``generation``, ``export_format``, ``pixel_density``).
    """
    return StructuredError(
        message=str(exception),
        category=category,
        severity=category.default_severity,
        component=component,
        error_type=type(exception).__name__,
        traceback="".join(traceback.format_exception(exception)),
        **context,
    )


class JSONFormatter(logging.Formatter):
    """Write structured errors as JSON lines; plain records get a minimal envelope."""

    def format(self, record: logging.LogRecord) -> str:
        error = getattr(record, "structured_error", None)
        if isinstance(error, StructuredError):
            return error.model_dump_json()
        return json.dumps(
            {
                "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
        )


class StructuredLogger:
    """Rotating-file logger for ``StructuredError`` records."""

    def __init__(self, name: str, config: Settings | None = None) -> None:
        self.name = name
        self.config = config or get_settings()
        self.logger = logging.getLogger(name)
        self._configure()

    @property
    def json_output(self) -> bool:
        return self.config.logging.format == "json"

    def _configure(self) -> None:
        settings = self.config.logging
        settings.log_dir.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            settings.log_dir / f"{self.name}.log",
            maxBytes=settings.max_bytes,
            backupCount=settings.backup_count,
        )
        handler.setFormatter(JSONFormatter() if self.json_output else logging.Formatter(TEXT_FORMAT))

        # Re-creating a logger with the same name replaces its file handler
        self.logger.handlers.clear()
        self.logger.addHandler(handler)
        self.logger.setLevel(settings.level)

    def log_error(self, error: StructuredError) -> None:
        if self.json_output:
            self.logger.log(error.severity.level, error.message, extra={"structured_error": error})
        else:
            self.logger.log(error.severity.level, error.summary())

    def log_exception(
        self,
        exception: BaseException,
        category: ErrorCategory,
        component: str,
        **context: Any,
    ) -> StructuredError:
        """Build a ``StructuredError`` from ``exception``, log it and return it."""
        error = error_from_exception(exception, category, component, **context)
        self.log_error(error)
        return error


@cache
def get_logger(name: str = "linkcard") -> StructuredLogger:
    """Shared structured logger for ``name``."""
    return StructuredLogger(name)
