"""
Observability for the worldforge table engine.

Provides a structured log of dice rolls, table lookups and cascade
truncations for inspection and saving alongside a session's seed.
"""

from worldforge.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    RollEvent,
    TableLookupEvent,
    CascadeTruncationEvent,
    get_run_log,
    reset_run_log,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "RollEvent",
    "TableLookupEvent",
    "CascadeTruncationEvent",
    "get_run_log",
    "reset_run_log",
]
