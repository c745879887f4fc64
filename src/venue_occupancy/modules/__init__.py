"""
Modules package for venue-occupancy.

Modules are plug-ins that add behavior to venues.
"""

from venue_occupancy.modules.base import VenueModule

__all__ = ["VenueModule"]
