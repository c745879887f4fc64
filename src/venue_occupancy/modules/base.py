"""
Base classes for venue-occupancy modules.

Modules are plug-ins that add behavior to venues.
"""

from abc import ABC, abstractmethod
from typing import Dict


class VenueModule(ABC):
    """
    Base class for venue modules.

    A module:
    - Receives entries from the Entry Bus
    - Uses the VenueManager to read venues and their config
    - Maintains its own runtime state
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique identifier for this module type."""
        pass

    @property
    @abstractmethod
    def CURRENT_CONFIG_VERSION(self) -> int:
        """Current configuration version for this module."""
        pass

    @abstractmethod
    def attach(self, bus, venue_manager) -> None:
        """
        Attach the module to the kernel.

        Register entry subscriptions and capture references to bus and venue manager.

        Args:
            bus: EntryBus instance
            venue_manager: VenueManager instance
        """
        pass

    @abstractmethod
    def default_config(self) -> Dict:
        """
        Get default configuration for this module.

        Returns:
            Default configuration dict
        """
        pass

    @abstractmethod
    def location_config_schema(self) -> Dict:
        """
        Get JSON-schema-like definition for UI configuration.

        Returns:
            Schema dict that UIs can use to render configuration forms
        """
        pass

    def migrate_config(self, config: Dict) -> Dict:
        """
        Migrate configuration to current version.

        Default implementation returns config unchanged.

        Args:
            config: Configuration dict (potentially older version)

        Returns:
            Migrated configuration dict
        """
        return config

    def effective_config(self, venue_manager, venue_id: str) -> Dict:
        """
        Defaults overlaid with the venue's stored (migrated) configuration.

        Args:
            venue_manager: VenueManager holding per-venue config
            venue_id: The venue ID

        Returns:
            Complete configuration dict
        """
        config = self.default_config()
        stored = venue_manager.get_module_config(venue_id, self.id) if venue_manager else None
        if stored:
            config.update(self.migrate_config(dict(stored)))
        return config

    def dump_state(self) -> Dict:
        """
        Serialize runtime state for persistence.

        Optional: Override to enable state dump.

        Returns:
            Serialized state dict
        """
        return {}
