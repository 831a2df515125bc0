"""Decision tracing for orchestrator runs.

Records one structured entry per offer decision for observability and
debugging.

Key principles:
- Read-only: Traces don't affect decisions
- Serializable: Easy to convert to JSON
"""

from collections import OrderedDict
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import json
import uuid


class DecisionStatus(str, Enum):
    """Status of a decision attempt."""
    RUNNING = "RUNNING"
    DECIDED = "DECIDED"
    NO_DECISION = "NO_DECISION"  # Oracle reply was ambiguous
    FAILED = "FAILED"


class Channel(str, Enum):
    """How the offer reached the provider."""
    DIRECT = "DIRECT"
    POOL = "POOL"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class DecisionRecord:
    """Trace of a single offer decision."""
    trace_id: str
    offer_id: str
    channel: Channel
    status: DecisionStatus = DecisionStatus.RUNNING
    provider_id: Optional[str] = None
    strategy: Optional[str] = None
    decision: Optional[str] = None
    offer_state: Optional[str] = None
    error: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    def __post_init__(self):
        """Set started_at if not provided."""
        if self.started_at is None:
            self.started_at = _now()

    @classmethod
    def start(cls, offer_id: str, channel: Channel) -> "DecisionRecord":
        return cls(trace_id=str(uuid.uuid4()), offer_id=offer_id, channel=channel)

    def complete(
        self,
        status: DecisionStatus,
        decision: Optional[str] = None,
        offer_state: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """Mark the record as complete.

        Args:
            status: Final status of the attempt
            decision: Decision value, if one was reached
            offer_state: Offer state after effects were applied
            error: Error message if the attempt failed
        """
        self.status = status
        self.completed_at = _now()
        if decision is not None:
            self.decision = decision
        if offer_state is not None:
            self.offer_state = offer_state
        if error is not None:
            self.error = error

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["channel"] = self.channel.value
        data["status"] = self.status.value
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


class TraceStore:
    """Bounded in-memory store for decision records.

    Oldest records are evicted once max_records is reached.
    """

    def __init__(self, max_records: int = 1000):
        self.max_records = max_records
        self._records: "OrderedDict[str, DecisionRecord]" = OrderedDict()

    def store(self, record: DecisionRecord) -> None:
        self._records[record.trace_id] = record
        self._records.move_to_end(record.trace_id)
        while len(self._records) > self.max_records:
            self._records.popitem(last=False)

    def get(self, trace_id: str) -> Optional[DecisionRecord]:
        return self._records.get(trace_id)

    def get_for_offer(self, offer_id: str) -> List[DecisionRecord]:
        """All records for an offer, oldest first."""
        return [r for r in self._records.values() if r.offer_id == offer_id]

    def get_recent(self, limit: int = 10) -> List[DecisionRecord]:
        """Most recent records, most recent first."""
        return list(reversed(self._records.values()))[:limit]

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


# Global trace store instance
_trace_store = TraceStore()


def get_trace_store() -> TraceStore:
    """Get the global trace store instance."""
    return _trace_store
