"""Error reporting and tool-call handling."""

from voicerelay.handlers.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    get_error_handler,
    handle_error,
)
from voicerelay.handlers.function_handler import FunctionHandler, get_current_weather
