"""
Centralized error reporting for the relay components.

Every component catches failures at its own boundary and reports them here
instead of letting them escape the event loop. The report is logged at a level
chosen by severity and counted per component, and the counts are logged when
the session ends.

Usage:
    await handle_error(
        exc,
        context=ErrorContext.PLAYBACK,
        severity=ErrorSeverity.MEDIUM,
        operation="render_buffer",
    )
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional


class ErrorContext(Enum):
    """Component that produced the error."""

    CONFIG = "config"
    CHANNEL = "channel"
    CAPTURE = "capture"
    PLAYBACK = "playback"
    FUNCTION = "function"
    RELAY = "relay"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SEVERITY_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.DEBUG,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


class ErrorHandler:
    """Logs reported errors and counts them per context."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._error_count: Dict[ErrorContext, int] = {
            context: 0 for context in ErrorContext
        }

    async def handle_error(
        self,
        error: Exception,
        context: ErrorContext = ErrorContext.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        operation: str = "unknown",
        **metadata,
    ) -> None:
        """
        Log an error and count it against its context.

        Args:
            error: The exception that occurred
            context: Component the error came from
            severity: Selects the log level
            operation: Name of the operation that failed
            **metadata: Extra details appended to the log line
        """
        self._error_count[context] += 1

        message = f"Error in {context.value} ({operation}): {error}"
        if metadata:
            details = ", ".join(f"{key}={value}" for key, value in metadata.items())
            message = f"{message} [{details}]"
        self.logger.log(SEVERITY_LOG_LEVELS[severity], message)

    def get_error_stats(self) -> Dict[str, Any]:
        """Counts per context that saw at least one error, plus the total."""
        return {
            "error_counts": {
                ctx.value: count for ctx, count in self._error_count.items() if count
            },
            "total_errors": sum(self._error_count.values()),
        }


# Global error handler instance
_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get the global error handler instance."""
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler


async def handle_error(
    error: Exception,
    context: ErrorContext = ErrorContext.UNKNOWN,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    operation: str = "unknown",
    **metadata,
) -> None:
    """Report an error to the global error handler."""
    await get_error_handler().handle_error(
        error, context, severity, operation, **metadata
    )
