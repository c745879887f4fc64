"""
Entry value object and ordering helpers.

An Entry is one signed unit event: +1 when someone comes in, -1 when someone
leaves. Entries are immutable; the ledger never rewrites them.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, UTC
from enum import Enum
from typing import Iterable, Optional


def _utc_now() -> datetime:
    """Get current UTC time (for default factory)."""
    return datetime.now(UTC)


class EntryKind(Enum):
    """Direction of a counted crossing."""

    IN = "in"
    OUT = "out"

    @property
    def delta(self) -> int:
        """Signed unit delta for this kind."""
        return 1 if self is EntryKind.IN else -1


class EventSource(Enum):
    """Where an entry came from."""

    HARDWARE = "hardware"
    MANUAL = "manual"
    IMPORT = "import"
    SIMULATED = "simulated"


@dataclass(frozen=True)
class Entry:
    """
    A single counted crossing at a venue.

    Attributes:
        id: Unique identifier (also the replay tie-breaker)
        location_id: Venue this entry belongs to
        timestamp: When the crossing happened (timezone-aware)
        kind: IN or OUT
        delta: +1 for IN, -1 for OUT (bulk imports may carry a larger magnitude)
        device_id: Counter that produced the entry
        source: Hardware, manual override, import or simulation
        user_id: Operator who produced a manual entry, if any
        sequence_number: Device sequence number, if the hardware provides one
    """

    id: str
    location_id: str
    timestamp: datetime
    kind: EntryKind
    delta: int
    device_id: str
    source: EventSource = EventSource.HARDWARE
    user_id: Optional[str] = None
    sequence_number: Optional[int] = None

    def __post_init__(self) -> None:
        """Reject entries whose delta sign does not match their kind."""
        if self.delta == 0 or (self.delta > 0) != (self.kind is EntryKind.IN):
            raise ValueError(
                f"Entry '{self.id}': delta {self.delta} does not match kind {self.kind.value}"
            )

    @classmethod
    def create(
        cls,
        kind: EntryKind,
        location_id: str,
        device_id: str,
        timestamp: Optional[datetime] = None,
        source: EventSource = EventSource.HARDWARE,
        user_id: Optional[str] = None,
        sequence_number: Optional[int] = None,
    ) -> "Entry":
        """
        Build an entry with a generated id and the delta implied by its kind.

        Args:
            kind: IN or OUT
            location_id: Venue ID
            device_id: Counter ID
            timestamp: When it happened (defaults to now, UTC)
            source: Event source
            user_id: Optional operator ID
            sequence_number: Optional device sequence number

        Returns:
            A new Entry
        """
        return cls(
            id=str(uuid.uuid4()),
            location_id=location_id,
            timestamp=timestamp or _utc_now(),
            kind=kind,
            delta=kind.delta,
            device_id=device_id,
            source=source,
            user_id=user_id,
            sequence_number=sequence_number,
        )

    @property
    def is_in(self) -> bool:
        return self.kind is EntryKind.IN


def entry_sort_key(entry: Entry) -> tuple[datetime, str]:
    """Replay order: timestamp first, id breaks ties between simultaneous entries."""
    return (entry.timestamp, entry.id)


def sort_entries(entries: Iterable[Entry]) -> list[Entry]:
    """Return a new list of entries in deterministic replay order."""
    return sorted(entries, key=entry_sort_key)


def count_kinds(entries: Iterable[Entry]) -> tuple[int, int]:
    """Count (ins, outs) in one pass."""
    ins = 0
    outs = 0
    for entry in entries:
        if entry.kind is EntryKind.IN:
            ins += 1
        else:
            outs += 1
    return ins, outs
