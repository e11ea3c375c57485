"""
Telemetry module for leadsdb.

Provides structured logging with API key masking.
"""

from leadsdb.telemetry.logger import (
    JsonFormatter,
    LeadsDbLogger,
    LogContext,
    SensitiveDataMasker,
    TextFormatter,
    get_log_context,
    get_logger,
    log_context,
)

__all__ = [
    "JsonFormatter",
    "LeadsDbLogger",
    "LogContext",
    "SensitiveDataMasker",
    "TextFormatter",
    "get_log_context",
    "get_logger",
    "log_context",
]
