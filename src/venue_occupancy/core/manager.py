"""
VenueManager for venue registry and configuration management.

The VenueManager owns venues and their module config, not the analytics.
"""

from typing import Dict, List, Optional
import logging

from venue_occupancy.core.venue import Venue

logger = logging.getLogger(__name__)


class VenueManager:
    """
    Manages the set of counted venues and per-venue module configuration.

    Responsibilities:
    - Store venues (capacity, timezone)
    - Store per-venue module config

    Does NOT replay, classify or aggregate entries.
    """

    def __init__(self) -> None:
        """Initialize an empty venue manager."""
        self._venues: Dict[str, Venue] = {}

    def create_venue(
        self,
        id: str,
        name: str,
        max_capacity: int = 100,
        timezone: str = "UTC",
    ) -> Venue:
        """
        Register a new venue.

        Args:
            id: Unique identifier
            name: Human-readable name
            max_capacity: Maximum number of people allowed inside
            timezone: IANA zone name for calendar-day logic

        Returns:
            The created Venue

        Raises:
            ValueError: If venue ID already exists
        """
        if id in self._venues:
            raise ValueError(f"Venue with id '{id}' already exists")

        venue = Venue(id=id, name=name, max_capacity=max_capacity, timezone=timezone)
        self._venues[id] = venue
        logger.info(f"Created venue: {id} ({name}, capacity={max_capacity})")

        return venue

    def get_venue(self, venue_id: str) -> Optional[Venue]:
        """
        Get a venue by ID.

        Args:
            venue_id: The venue ID

        Returns:
            The Venue or None if not found
        """
        return self._venues.get(venue_id)

    def all_venues(self) -> List[Venue]:
        """Get all registered venues."""
        return list(self._venues.values())

    def update_capacity(self, venue_id: str, max_capacity: int) -> Venue:
        """
        Change a venue's capacity.

        Raises:
            ValueError: If venue doesn't exist
        """
        venue = self.get_venue(venue_id)
        if not venue:
            raise ValueError(f"Venue '{venue_id}' does not exist")

        venue.max_capacity = max_capacity
        logger.info(f"Updated capacity for {venue_id}: {max_capacity}")
        return venue

    def delete_venue(self, venue_id: str) -> None:
        """
        Remove a venue.

        Raises:
            ValueError: If venue doesn't exist
        """
        if venue_id not in self._venues:
            raise ValueError(f"Venue '{venue_id}' does not exist")

        del self._venues[venue_id]
        logger.info(f"Deleted venue: {venue_id}")

    def set_module_config(
        self,
        venue_id: str,
        module_id: str,
        config: Dict,
    ) -> None:
        """
        Set module configuration for a venue.

        Args:
            venue_id: The venue ID
            module_id: The module ID
            config: Module configuration dict

        Raises:
            ValueError: If venue doesn't exist
        """
        venue = self.get_venue(venue_id)
        if not venue:
            raise ValueError(f"Venue '{venue_id}' does not exist")

        venue.modules[module_id] = config
        logger.debug(f"Set config for module '{module_id}' on venue '{venue_id}'")

    def get_module_config(
        self,
        venue_id: str,
        module_id: str,
    ) -> Optional[Dict]:
        """
        Get module configuration for a venue.

        Args:
            venue_id: The venue ID
            module_id: The module ID

        Returns:
            Module configuration dict or None if not set
        """
        venue = self.get_venue(venue_id)
        if not venue:
            return None

        return venue.modules.get(module_id)
