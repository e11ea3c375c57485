"""
Streaming primitives - cancellation, channels and fan-out outlets.

This module provides:
- CancelToken / CancelHandle: cooperative cancellation
- run_cancellable: race any awaitable against a token
- Channel: ordered, bounded, close-once message channel
- Outlets: result/error channel pair fed by a producer task
"""

from leadsdb.streaming.cancel import (
    CancelHandle,
    CancelReason,
    CancelState,
    CancelToken,
    create_cancel_pair,
    run_cancellable,
)
from leadsdb.streaming.channel import Channel, ChannelClosed
from leadsdb.streaming.fan_out import Outlets

__all__ = [
    "CancelHandle",
    "CancelReason",
    "CancelState",
    "CancelToken",
    "Channel",
    "ChannelClosed",
    "Outlets",
    "create_cancel_pair",
    "run_cancellable",
]
