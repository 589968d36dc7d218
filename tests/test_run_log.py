"""
Tests for the observability run log.

Tests RunLog and its integration with RandomSource and table rolls.
"""

import json

import pytest

from worldforge.data_models import DEFAULT_ROLL_LOG_LIMIT, RandomSource
from worldforge.observability.run_log import (
    DEFAULT_MAX_EVENTS,
    CascadeTruncationEvent,
    EventType,
    LogEvent,
    RollEvent,
    RunLog,
    TableLookupEvent,
    get_run_log,
    reset_run_log,
)
from worldforge.tables.builtin_tables import landscape_table
from worldforge.tables.table_types import Table, TableEntry, TableTitle


class TestRunLog:
    """Tests for the RunLog class."""

    def test_singleton_pattern(self):
        """RunLog should be a singleton."""
        assert get_run_log() is get_run_log()
        assert RunLog() is get_run_log()

    def test_log_roll_event(self):
        log = get_run_log()
        event = log.log_roll(notation="2d6", rolls=[3, 4], modifier=0, total=7, reason="test roll")

        assert event.event_type == EventType.ROLL
        assert event.rolls == [3, 4]
        assert event.total == 7
        assert event.sequence_number == 1

    def test_log_table_lookup_event(self):
        log = get_run_log()
        event = log.log_table_lookup(
            table_title="Landscape",
            roll_total=9,
            label="9",
            result_text="hills",
        )

        assert event.event_type == EventType.TABLE_LOOKUP
        assert event.table_title == "Landscape"
        assert event.result_text == "hills"
        assert str(event) == "[1] TABLE Landscape [9]: hills"

    def test_log_cascade_truncation_event(self):
        log = get_run_log()
        event = log.log_cascade_truncation(
            table_title="Weapon",
            reason="CascadeDepthExceeded: too deep",
            partial_text="sword",
            depth=16,
        )

        assert event.event_type == EventType.CASCADE_TRUNCATED
        assert event.depth == 16
        assert "TRUNCATED Weapon" in str(event)

    def test_log_custom_event(self):
        event = get_run_log().log_custom("session_note", {"note": "hello"})
        assert event.event_type == EventType.CUSTOM
        assert event.context == {"event_name": "session_note", "note": "hello"}

    def test_sequence_numbers_increment(self):
        log = get_run_log()
        e1 = log.log_roll("1d6", [3], 0, 3, "test1")
        e2 = log.log_roll("1d6", [5], 0, 5, "test2")
        e3 = log.log_table_lookup("Size", 2, "2", "modest")

        assert [e1.sequence_number, e2.sequence_number, e3.sequence_number] == [1, 2, 3]

    def test_filters(self):
        log = get_run_log()
        log.log_roll("1d6", [3], 0, 3)
        log.log_table_lookup("Size", 2, "2", "modest")
        log.log_cascade_truncation("Size", "boom", "modest")

        assert len(log.get_rolls()) == 1
        assert len(log.get_table_lookups()) == 1
        assert len(log.get_truncations()) == 1
        assert len(log.get_events(EventType.ROLL)) == 1
        assert len(log.get_events(since_sequence=1)) == 2

    def test_pause_and_resume(self):
        log = get_run_log()
        log.pause()
        log.log_roll("1d6", [1], 0, 1)
        assert log.is_paused()
        assert log.get_event_count() == 0

        log.resume()
        log.log_roll("1d6", [1], 0, 1)
        assert log.get_event_count() == 1

    def test_subscribers(self):
        log = get_run_log()
        received = []
        log.subscribe(received.append)
        try:
            log.log_roll("1d6", [2], 0, 2)
        finally:
            log.unsubscribe(received.append)
        log.log_roll("1d6", [2], 0, 2)

        assert len(received) == 1
        assert isinstance(received[0], RollEvent)

    def test_failing_subscriber_does_not_break_logging(self):
        log = get_run_log()

        def broken(event):
            raise RuntimeError("subscriber down")

        log.subscribe(broken)
        try:
            log.log_roll("1d6", [2], 0, 2)
        finally:
            log.unsubscribe(broken)
        assert log.get_event_count() == 1

    def test_reset_clears_events_and_seed(self):
        log = get_run_log()
        log.set_seed(5)
        log.log_roll("1d6", [2], 0, 2)

        log = reset_run_log()
        assert log.get_event_count() == 0
        assert log.get_seed() is None

    def test_events_are_bounded(self):
        log = get_run_log()
        log.set_max_events(10)
        for i in range(25):
            log.log_roll("1d6", [1], 0, 1, f"roll {i}")

        events = log.get_events()
        assert len(events) == 10
        assert events[0].sequence_number == 16
        assert events[-1].reason == "roll 24"
        assert log.get_summary()["last_sequence"] == 25

    def test_lowering_limit_keeps_newest(self):
        log = get_run_log()
        for i in range(20):
            log.log_roll("1d6", [1], 0, 1)
        log.set_max_events(5)

        assert log.get_max_events() == 5
        assert [e.sequence_number for e in log.get_events()] == [16, 17, 18, 19, 20]

    def test_default_limit(self):
        assert get_run_log().get_max_events() == DEFAULT_MAX_EVENTS

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            get_run_log().set_max_events(0)

    def test_summary(self):
        log = get_run_log()
        log.set_seed(11)
        log.log_roll("1d6", [2], 0, 2)
        log.log_cascade_truncation("Size", "boom", "")

        summary = log.get_summary()
        assert summary["seed"] == 11
        assert summary["total_events"] == 2
        assert summary["truncations"] == 1

    def test_format_log(self):
        log = get_run_log()
        log.set_seed(3)
        log.log_roll("2d6", [1, 2], 0, 3, "landscape")
        log.log_table_lookup("Landscape", 3, "3", "glacier")

        text = log.format_log(event_types=[EventType.TABLE_LOOKUP])
        assert "Seed: 3" in text
        assert "glacier" in text
        assert "ROLL" not in text


class TestRunLogSerialization:

    def test_to_json(self):
        log = get_run_log()
        log.log_roll("1d6", [4], 0, 4)
        data = json.loads(log.to_json())
        assert data["events"][0]["event_type"] == "roll"
        assert data["events"][0]["total"] == 4

    def test_save_and_load(self, tmp_path):
        log = get_run_log()
        log.set_seed(77)
        log.log_roll("1d6", [4], 0, 4, "one")
        log.log_table_lookup("Element", 0, "0", "fire")
        log.log_cascade_truncation("Element", "boom", "fire", depth=2)
        log.log_custom("note", {"k": "v"})

        path = tmp_path / "run_log.json"
        log.save(str(path))
        reset_run_log()

        loaded = RunLog.load(str(path))
        assert loaded.get_seed() == 77
        events = loaded.get_events()
        assert [type(e) for e in events] == [
            RollEvent, TableLookupEvent, CascadeTruncationEvent, LogEvent,
        ]
        assert events[2].depth == 2
        assert events[3].context["k"] == "v"

    def test_event_round_trip(self):
        event = TableLookupEvent(table_title="Size", roll_total=1, label="1", result_text="small")
        restored = TableLookupEvent.from_dict(event.to_dict())
        assert restored.table_title == "Size"
        assert restored.event_type == EventType.TABLE_LOOKUP


class TestEngineIntegration:

    def test_table_roll_logs_dice_and_lookup(self):
        source = RandomSource(seed=1)
        table = Table(
            entries=[TableEntry("low").with_range(1, 3), TableEntry("high").with_range(4, 6)],
            title=TableTitle.SIZE,
        )
        result = table.roll(source)

        log = get_run_log()
        rolls = log.get_rolls()
        lookups = log.get_table_lookups()
        assert len(rolls) == 1
        assert rolls[0].reason == "table roll: Size"
        assert lookups[0].roll_total == rolls[0].total == result.roll
        assert rolls[0].sequence_number < lookups[0].sequence_number

    def test_long_session_stays_bounded(self, global_source):
        log = get_run_log()
        log.set_max_events(200)
        table = landscape_table()
        for _ in range(5000):
            table.roll_with_cascade()

        assert len(global_source.get_roll_log()) == DEFAULT_ROLL_LOG_LIMIT
        assert log.get_event_count() == 200

    def test_cascade_lookups_logged_per_table(self):
        source = RandomSource(seed=1)
        inner = Table(entries=[TableEntry("fire")], title=TableTitle.ELEMENT)
        outer = Table(entries=[TableEntry("river").with_cascade(inner)], title=TableTitle.LANDSCAPE)
        outer.roll_with_cascade(source)

        titles = [e.table_title for e in get_run_log().get_table_lookups()]
        assert titles == ["Landscape", "Element"]
