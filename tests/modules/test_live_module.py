"""Tests for LiveCounterModule."""

from datetime import datetime, timedelta, UTC

import pytest

from venue_occupancy import EntryBus, Entry, EntryKind, VenueManager
from venue_occupancy.core.ledger import InMemoryEventLedger
from venue_occupancy.modules.integrity import IssueSeverity
from venue_occupancy.modules.live import LiveCounterModule, OccupancyStatus


@pytest.fixture
def base_time():
    """Fixed base time for deterministic tests."""
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def kernel():
    """Venue manager, bus and ledger wired together."""
    mgr = VenueManager()
    mgr.create_venue(id="club", name="The Club", max_capacity=10, timezone="UTC")
    bus = EntryBus()
    ledger = InMemoryEventLedger(bus=bus)
    return mgr, bus, ledger


def entry(id, kind, timestamp, location_id="club"):
    return Entry(
        id=id,
        location_id=location_id,
        timestamp=timestamp,
        kind=kind,
        delta=kind.delta,
        device_id="door-1",
    )


class TestLiveModuleBasics:
    """Test module identity and configuration."""

    def test_module_properties(self):
        """Test module ID and version."""
        module = LiveCounterModule()

        assert module.id == "live"
        assert module.CURRENT_CONFIG_VERSION == 1

    def test_attach_to_kernel(self, kernel):
        """Test attaching to kernel components."""
        mgr, bus, ledger = kernel
        module = LiveCounterModule(ledger)

        module.attach(bus, mgr)

        assert module._bus is bus
        assert module._venue_manager is mgr

    def test_default_config(self):
        """Test default configuration."""
        config = LiveCounterModule().default_config()

        assert config["version"] == 1
        assert config["enabled"] is True
        assert config["window_minutes"] == 5

    def test_schema(self):
        """Test the UI schema lists the configurable fields."""
        schema = LiveCounterModule().location_config_schema()

        assert set(schema["properties"]) == {"enabled", "window_minutes"}


class TestLiveCounting:
    """Test end-to-end live counting."""

    def test_rehydrate_then_live(self, kernel, base_time):
        """Test today's history plus live entries are counted once each."""
        mgr, bus, ledger = kernel
        ledger.append(entry("h1", EntryKind.IN, base_time - timedelta(hours=1)))
        ledger.append(entry("yesterday", EntryKind.IN, base_time - timedelta(days=1)))

        module = LiveCounterModule(ledger)
        module.attach(bus, mgr)
        # Recorded after attach: reaches the channel and the rehydration fetch
        ledger.append(entry("h2", EntryKind.IN, base_time - timedelta(minutes=30)))

        module.start(now=base_time)
        ledger.append(entry("l1", EntryKind.IN, base_time + timedelta(minutes=1)))
        ledger.append(entry("l2", EntryKind.OUT, base_time + timedelta(minutes=2)))
        module.stop()

        state = module.get_counter_state("club")
        assert state is not None
        assert state.current_count == 2
        assert state.last_event_at == base_time + timedelta(minutes=2)
        assert state.entries_in_window == 1
        assert state.exits_in_window == 1

    def test_rehydrates_entry_at_start_time(self, kernel, base_time):
        """Test an entry stamped exactly at the start time is part of history."""
        mgr, bus, ledger = kernel
        ledger.append(entry("edge", EntryKind.IN, base_time))

        module = LiveCounterModule(ledger)
        module.attach(bus, mgr)
        module.start(now=base_time)
        module.stop()

        state = module.get_counter_state("club")
        assert state is not None
        assert state.current_count == 1
        assert state.last_event_at == base_time

    def test_capacity_status(self, kernel, base_time):
        """Test the venue capacity drives the status."""
        mgr, bus, ledger = kernel
        module = LiveCounterModule(ledger)
        module.attach(bus, mgr)
        module.start(now=base_time)

        for i in range(9):
            ledger.append(entry(f"in-{i}", EntryKind.IN, base_time + timedelta(seconds=i)))
        module.stop()

        state = module.get_counter_state("club")
        assert state.status is OccupancyStatus.WARNING
        assert state.remaining_spots == 1

    def test_no_entries_no_state(self, kernel, base_time):
        """Test a quiet venue has no state yet."""
        mgr, bus, ledger = kernel
        module = LiveCounterModule(ledger)
        module.attach(bus, mgr)
        module.start(now=base_time)
        module.stop()

        assert module.get_counter_state("club") is None
        assert module.dump_state() == {}

    def test_window_from_config(self, kernel, base_time):
        """Test the window length comes from venue config."""
        mgr, bus, ledger = kernel
        mgr.set_module_config("club", "live", {"version": 1, "window_minutes": 10})
        module = LiveCounterModule(ledger)
        module.attach(bus, mgr)
        module.start(now=base_time)

        ledger.append(entry("1", EntryKind.IN, base_time))
        ledger.append(entry("2", EntryKind.IN, base_time + timedelta(minutes=8)))
        module.stop()

        state = module.get_counter_state("club")
        assert state.window_minutes == 10
        assert state.entries_in_window == 2

    def test_disabled_and_unknown_venues_ignored(self, kernel, base_time):
        """Test entries for disabled or unknown venues are dropped."""
        mgr, bus, ledger = kernel
        mgr.create_venue(id="bar", name="The Bar")
        mgr.set_module_config("bar", "live", {"version": 1, "enabled": False})
        module = LiveCounterModule(ledger)
        module.attach(bus, mgr)
        module.start(now=base_time)

        ledger.append(entry("1", EntryKind.IN, base_time, location_id="bar"))
        ledger.append(entry("2", EntryKind.IN, base_time, location_id="nowhere"))
        module.stop()

        assert module.get_counter_state("bar") is None
        assert module.get_counter_state("nowhere") is None

    def test_dump_state(self, kernel, base_time):
        """Test headline numbers are exported per venue."""
        mgr, bus, ledger = kernel
        module = LiveCounterModule(ledger)
        module.attach(bus, mgr)
        module.start(now=base_time)
        ledger.append(entry("1", EntryKind.IN, base_time))
        module.stop()

        dumped = module.dump_state()

        assert dumped["club"]["current_count"] == 1
        assert dumped["club"]["status"] == "ok"
        assert dumped["club"]["last_event_at"] == base_time.isoformat()


class TestStaleCheck:
    """Test stale source checks."""

    def test_never_seen(self, kernel, base_time):
        mgr, bus, ledger = kernel
        module = LiveCounterModule(ledger)
        module.attach(bus, mgr)

        issue = module.check_stale("club", now=base_time)

        assert issue.message == "Source never seen"

    def test_silent_counter(self, kernel, base_time):
        """Test a counter silent for 15 minutes is a warning."""
        mgr, bus, ledger = kernel
        module = LiveCounterModule(ledger)
        module.attach(bus, mgr)
        module.start(now=base_time)
        ledger.append(entry("1", EntryKind.IN, base_time))
        module.stop()

        assert module.check_stale("club", now=base_time + timedelta(minutes=3)) is None
        issue = module.check_stale("club", now=base_time + timedelta(minutes=15))
        assert issue.severity is IssueSeverity.WARNING
        assert issue.message == "Source silent for 15 min"
