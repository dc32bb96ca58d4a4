"""
Logging Configuration for the tax computation engine.

Provides structured logging with:
- JSON formatting for production
- Human-readable formatting for development
- Computation-specific logging with an input fingerprint for audit trails
"""

import hashlib
import json
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


class JsonFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Outputs logs as JSON objects for easy parsing by log aggregators.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ReadableFormatter(logging.Formatter):
    """
    Human-readable log formatter for development.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for human readability."""
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        message = f"{timestamp} {record.levelname:8s} [{record.name}] {record.getMessage()}"

        if hasattr(record, "extra_data") and record.extra_data:
            extras = " | ".join(f"{k}={v}" for k, v in record.extra_data.items())
            message += f" | {extras}"

        return message


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter that attaches fixed context to every message.
    """

    def process(self, msg: str, kwargs: Dict) -> tuple:
        extra = kwargs.get("extra", {})
        if "extra_data" not in extra:
            extra["extra_data"] = {}
        extra["extra_data"].update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[Path] = None
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON formatted logs
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = JsonFormatter() if json_output else ReadableFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JsonFormatter())  # Always JSON for files
        root_logger.addHandler(file_handler)


def get_logger(name: str, **extra) -> ContextLogger:
    """
    Get a context-aware logger.

    Args:
        name: Logger name (typically __name__)
        **extra: Additional context to include in all logs

    Returns:
        ContextLogger instance
    """
    return ContextLogger(logging.getLogger(name), extra)


def fingerprint(payload: Dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``payload``."""
    canonical = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ComputationLogger:
    """
    Specialized logger for one return computation.

    Logs the start (with an input fingerprint so identical inputs can be
    correlated across runs), each executed phase at DEBUG, and the finish
    with the refund/owed outcome and graph size.
    """

    def __init__(self, tax_year: int, filing_status: str):
        self.logger = get_logger("calculator.computation", tax_year=tax_year)
        self.filing_status = filing_status
        self._start_time: Optional[float] = None
        self.input_hash: Optional[str] = None

    def start(self, inputs: Dict[str, Any]) -> str:
        """Log computation start and return the input fingerprint."""
        self._start_time = time.perf_counter()
        self.input_hash = fingerprint(inputs)
        self.logger.debug(
            "Starting return computation",
            extra={"extra_data": {
                "filing_status": self.filing_status,
                "input_hash": self.input_hash[:16],
            }},
        )
        return self.input_hash

    def phase(self, name: str, **data) -> None:
        """Log completion of a computation phase."""
        self.logger.debug(
            f"Completed phase: {name}",
            extra={"extra_data": {"phase": name, **data}},
        )

    def finish(self, overpaid: int, amount_owed: int, node_count: int, state_count: int) -> None:
        """Log computation completion."""
        duration_ms = 0
        if self._start_time is not None:
            duration_ms = int((time.perf_counter() - self._start_time) * 1000)
        self.logger.info(
            "Return computed",
            extra={"extra_data": {
                "filing_status": self.filing_status,
                "input_hash": (self.input_hash or "")[:16],
                "overpaid_cents": overpaid,
                "amount_owed_cents": amount_owed,
                "nodes": node_count,
                "states": state_count,
                "duration_ms": duration_ms,
            }},
        )
