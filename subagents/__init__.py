from __future__ import annotations

from .aggregator import (
    AggregatorPolicy,
    AggregatorSnapshot,
    ExecutionEventAggregator,
    describe_snapshot,
    is_new,
)
from .models import EventBatch, ExecutionEvent, SubagentEventType, SubagentNode
from .trace_parser import StreamingParser, TraceLog

__all__ = [
    "AggregatorPolicy",
    "AggregatorSnapshot",
    "EventBatch",
    "ExecutionEvent",
    "ExecutionEventAggregator",
    "StreamingParser",
    "SubagentEventType",
    "SubagentNode",
    "TraceLog",
    "describe_snapshot",
    "is_new",
]
