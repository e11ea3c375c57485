"""Error hierarchy for leadsdb.

Provides structured error types with status-based categories.
"""

from leadsdb.errors.base import (
    ApiError,
    BulkRecordError,
    DecodeError,
    ErrorContext,
    LeadsDbError,
    OperationCancelled,
    ProtocolError,
    TransportError,
    ValidationError,
)
from leadsdb.errors.classification import (
    RETRYABLE_STATUSES,
    ErrorCategory,
    classify_status,
    is_retryable,
    is_retryable_status,
)

__all__ = [
    "RETRYABLE_STATUSES",
    "ApiError",
    "BulkRecordError",
    "DecodeError",
    "ErrorCategory",
    "ErrorContext",
    "LeadsDbError",
    "OperationCancelled",
    "ProtocolError",
    "TransportError",
    "ValidationError",
    "classify_status",
    "is_retryable",
    "is_retryable_status",
]
