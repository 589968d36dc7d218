"""
Pytest fixtures for the worldforge test suite.

Provides seeded random sources, a clean run log per test, and a few small
tables used across the engine tests.
"""

import pytest

from worldforge.data_models import RandomSource, set_random_source
from worldforge.observability.run_log import DEFAULT_MAX_EVENTS, get_run_log, reset_run_log
from worldforge.tables.table_types import (
    SumOfDice,
    Table,
    TableEntry,
    TableTitle,
)


# =============================================================================
# RUN LOG FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def clean_run_log():
    """Start and finish every test with an empty, unpaused run log."""
    log = reset_run_log()
    log.resume()
    yield log
    log.resume()
    log.set_max_events(DEFAULT_MAX_EVENTS)
    reset_run_log()


# =============================================================================
# RANDOM SOURCE FIXTURES
# =============================================================================


@pytest.fixture
def seeded_source():
    """Provide a seeded RandomSource for reproducible tests."""
    return RandomSource(seed=42)


@pytest.fixture
def quiet_source():
    """Seeded source that records nothing, for bulk statistical rolls."""
    get_run_log().pause()
    yield RandomSource(seed=1234, log_rolls=False)
    get_run_log().resume()


@pytest.fixture
def global_source():
    """Install a seeded process-wide source and restore the previous one."""
    source = RandomSource(seed=7)
    previous = set_random_source(source)
    yield source
    set_random_source(previous)


# =============================================================================
# TABLE FIXTURES
# =============================================================================


@pytest.fixture
def element_literal_table():
    """Single-entry table whose only outcome is 'fire'."""
    return Table(entries=[TableEntry("fire")], title=TableTitle.ELEMENT)


@pytest.fixture
def forest_river_table(element_literal_table):
    """1d6 table: forest on 1-3, river on 4-6 with a 50% element cascade."""
    return Table(
        entries=[
            TableEntry("forest").with_range(1, 3),
            TableEntry("river").with_range(4, 6).with_cascade(element_literal_table, 50, "of"),
        ],
        title=TableTitle.LANDSCAPE,
        dice=SumOfDice(num_dice=1, sides=6),
    )
