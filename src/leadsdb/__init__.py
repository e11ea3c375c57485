"""
leadsdb: Python client for the LeadsDB API.

Async client with automatic retries, cursor pagination, streaming bulk
creation and cooperative cancellation.
"""
from __future__ import annotations

from leadsdb._features import HAS_KEYRING
from leadsdb.batch import BatchConfig, BatcherState, StreamingBatcher
from leadsdb.client import LeadsClient, LeadsClientBuilder
from leadsdb.errors import (
    ApiError,
    BulkRecordError,
    DecodeError,
    ErrorCategory,
    LeadsDbError,
    OperationCancelled,
    ProtocolError,
    TransportError,
    ValidationError,
)
from leadsdb.query import (
    AND,
    OR,
    Filter,
    ListOptions,
    ListOptionsBuilder,
    SortField,
    SortOrder,
    attr_sort,
)
from leadsdb.resilience import RetryConfig
from leadsdb.streaming import CancelHandle, CancelToken, Outlets, create_cancel_pair
from leadsdb.types import (
    Attribute,
    AttributeType,
    BulkCreateResult,
    BulkLeadError,
    BulkLeadResult,
    Coordinate,
    ExportFormat,
    Lead,
    ListResult,
    Note,
    UpdateLeadInput,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "LeadsClient",
    "LeadsClientBuilder",
    "RetryConfig",
    # Feature flags
    "HAS_KEYRING",
    # Batching
    "BatchConfig",
    "BatcherState",
    "StreamingBatcher",
    # Cancellation and outlets
    "CancelHandle",
    "CancelToken",
    "Outlets",
    "create_cancel_pair",
    # Errors
    "ApiError",
    "BulkRecordError",
    "DecodeError",
    "ErrorCategory",
    "LeadsDbError",
    "OperationCancelled",
    "ProtocolError",
    "TransportError",
    "ValidationError",
    # Query
    "AND",
    "OR",
    "Filter",
    "ListOptions",
    "ListOptionsBuilder",
    "SortField",
    "SortOrder",
    "attr_sort",
    # Types
    "Attribute",
    "AttributeType",
    "BulkCreateResult",
    "BulkLeadError",
    "BulkLeadResult",
    "Coordinate",
    "ExportFormat",
    "Lead",
    "ListResult",
    "Note",
    "UpdateLeadInput",
    # Version
    "__version__",
]
