"""
Entry Bus implementation for venue-aware entry routing.

The Entry Bus is a simple, synchronous dispatcher for newly recorded entries.
"""

from typing import Optional, Callable, List
import logging

from venue_occupancy.core.entry import Entry, EventSource

logger = logging.getLogger(__name__)


class EntryFilter:
    """
    Filter for entry subscriptions.

    Allows subscribers to filter entries by venue, device or source.
    """

    def __init__(
        self,
        location_id: Optional[str] = None,
        device_id: Optional[str] = None,
        source: Optional[EventSource] = None,
    ):
        """
        Initialize an entry filter.

        Args:
            location_id: Filter by venue ID (None = all venues)
            device_id: Filter by device ID (None = all devices)
            source: Filter by event source (None = all sources)
        """
        self.location_id = location_id
        self.device_id = device_id
        self.source = source

    def matches(self, entry: Entry) -> bool:
        """
        Check if an entry matches this filter.

        Args:
            entry: The entry to check

        Returns:
            True if the entry matches the filter
        """
        if self.location_id and entry.location_id != self.location_id:
            return False

        if self.device_id and entry.device_id != self.device_id:
            return False

        if self.source and entry.source is not self.source:
            return False

        return True

    def __repr__(self) -> str:
        return (
            f"EntryFilter(location_id={self.location_id!r}, "
            f"device_id={self.device_id!r}, source={self.source})"
        )


EntryHandler = Callable[[Entry], None]


class EntryBus:
    """
    Simple, synchronous bus for recorded entries.

    Handlers are wrapped in try/except to prevent one bad subscriber from
    stopping delivery to the others.
    """

    def __init__(self) -> None:
        """Initialize the entry bus."""
        self._handlers: List[tuple[EntryFilter, EntryHandler]] = []

    def subscribe(
        self,
        handler: EntryHandler,
        entry_filter: Optional[EntryFilter] = None,
    ) -> None:
        """
        Subscribe to entries.

        Args:
            handler: Callable that receives Entry objects
            entry_filter: Optional filter (None = receive all entries)
        """
        if entry_filter is None:
            entry_filter = EntryFilter()

        self._handlers.append((entry_filter, handler))
        logger.debug(f"Subscribed handler {handler.__name__} with filter {entry_filter}")

    def publish(self, entry: Entry) -> None:
        """
        Publish an entry to all matching subscribers.

        Handlers are called synchronously and wrapped in try/except.

        Args:
            entry: The entry to publish
        """
        logger.debug(f"Publishing entry {entry.id} ({entry.kind.value}) for {entry.location_id}")

        for entry_filter, handler in self._handlers:
            if entry_filter.matches(entry):
                try:
                    handler(entry)
                except Exception as e:
                    logger.error(
                        f"Error in entry handler {handler.__name__} "
                        f"for entry {entry.id}: {e}",
                        exc_info=True,
                    )

    def unsubscribe(self, handler: EntryHandler) -> None:
        """
        Unsubscribe a handler from all entries.

        Args:
            handler: The handler to unsubscribe
        """
        self._handlers = [(f, h) for f, h in self._handlers if h != handler]
        logger.debug(f"Unsubscribed handler {handler.__name__}")
