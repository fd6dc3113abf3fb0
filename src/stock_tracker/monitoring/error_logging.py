# src/stock_tracker/monitoring/error_logging.py
"""
Error Logging for the Stock Tracker.

Every provider fallback and every degraded refresh goes through an
ErrorLogger tagged with the component it happened in, so silent
fallbacks to synthetic data stay visible in the logs.
"""

import json
import logging
import traceback
from collections import deque
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Deque, Dict, Optional, Union

from stock_tracker.utils.logger import get_logger


class ErrorComponent(Enum):
    """Component identifiers for error tracking."""
    MARKET_DATA = "market_data"
    SCHEDULER = "scheduler"


class FallbackReason(Enum):
    """Reasons why the synthetic fallback was used."""
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    MALFORMED_PAYLOAD = "malformed_payload"
    TIMEOUT = "timeout"
    MOCK_MODE = "mock_mode"
    UNKNOWN = "unknown"


class ErrorLogger:
    """
    Structured error logging with component tagging and fallback tracking.

    Usage:
        errors = ErrorLogger(component=ErrorComponent.MARKET_DATA)
        try:
            quote = await provider.fetch_quote(client, "AAPL")
        except ProviderError as exc:
            errors.log_fallback(
                reason=FallbackReason.PROVIDER_UNAVAILABLE,
                exception=exc,
                context={"symbol": "AAPL", "kind": "quote"},
            )
            quote = synthetic_quote("AAPL")
    """

    def __init__(
        self,
        component: ErrorComponent,
        base_logger: Optional[logging.Logger] = None,
        error_log_path: Optional[Union[str, Path]] = None,
        history_size: int = 100,
    ):
        """
        Initialize error logger for a specific component.

        Args:
            component: ErrorComponent enum identifying the component
            base_logger: Optional logging.Logger to use (creates default if None)
            error_log_path: Optional JSONL file that every record is appended to
            history_size: Number of records kept in memory
        """
        self.component = component
        self.logger = base_logger or get_logger(f"stock_tracker.error.{component.value}")

        self.error_count = 0
        self.fallback_count = 0
        self.error_history: Deque[Dict[str, Any]] = deque(maxlen=history_size)

        self.error_log_path = Path(error_log_path) if error_log_path else None
        if self.error_log_path is not None:
            self.error_log_path.parent.mkdir(parents=True, exist_ok=True)

    def log_fallback(
        self,
        reason: FallbackReason,
        exception: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
        fallback_action: Optional[str] = None,
    ) -> None:
        """
        Log an event where real data was replaced by a fallback.

        Args:
            reason: FallbackReason enum indicating why fallback occurred
            exception: Optional exception that triggered the fallback
            context: Optional context dict (symbol, kind, provider, ...)
            fallback_action: Optional description of fallback action taken
        """
        self.fallback_count += 1

        error_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "component": self.component.value,
            "reason": reason.value,
            "fallback_count": self.fallback_count,
            "exception_type": type(exception).__name__ if exception else None,
            "exception_message": str(exception) if exception else None,
            "context": context or {},
            "fallback_action": fallback_action or "Using synthetic data",
        }
        self.error_history.append(error_record)

        context_str = ", ".join(f"{k}={v}" for k, v in (context or {}).items())
        exc_str = f": {exception}" if exception else ""
        log_msg = (
            f"[{self.component.value.upper()}] "
            f"Fallback triggered ({reason.value}){exc_str} "
            f"| Context: {context_str} "
            f"| Action: {fallback_action or 'Using synthetic data'}"
        )

        # Mock mode is a configured choice, not a failure
        if reason is FallbackReason.MOCK_MODE:
            self.logger.debug(log_msg)
        else:
            self.logger.warning(log_msg)

        self._persist_error(error_record)

    def log_error(
        self,
        error_msg: str,
        exception: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
        severity: str = "warning",
    ) -> None:
        """
        Log a general error (not necessarily triggering fallback).

        Args:
            error_msg: Description of the error
            exception: Optional exception object
            context: Optional context dict
            severity: 'debug', 'info', 'warning', 'error', 'critical'
        """
        self.error_count += 1

        error_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "component": self.component.value,
            "message": error_msg,
            "exception_type": type(exception).__name__ if exception else None,
            "exception_message": str(exception) if exception else None,
            "traceback": (
                "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
                if exception else None
            ),
            "context": context or {},
            "severity": severity,
        }
        self.error_history.append(error_record)

        log_func = getattr(self.logger, severity, self.logger.warning)
        context_str = ", ".join(f"{k}={v}" for k, v in (context or {}).items())
        log_func(f"[{self.component.value.upper()}] {error_msg} | Context: {context_str}")

        self._persist_error(error_record)

    def _persist_error(self, error_record: Dict[str, Any]) -> None:
        """Append error record to the JSONL error log, if one is configured."""
        if self.error_log_path is None:
            return
        try:
            with open(self.error_log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(error_record, default=str) + "\n")
        except OSError as e:
            self.logger.error(f"Failed to write error log: {e}")

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary statistics of errors logged by this component."""
        return {
            "component": self.component.value,
            "total_errors": self.error_count,
            "total_fallbacks": self.fallback_count,
            "recent_errors": list(self.error_history)[-10:],
        }

    def clear_history(self) -> None:
        """Clear in-memory error history."""
        self.error_history.clear()


def create_component_logger(
    component: ErrorComponent,
    error_log_path: Optional[Union[str, Path]] = None,
) -> ErrorLogger:
    """Create a component-specific error logger."""
    return ErrorLogger(component=component, error_log_path=error_log_path)
