"""
Random tables for the worldforge engine.

This module provides:
- Table, TableEntry and the fluent entry builder
- Dice distributions (sum of dice, equally distributed)
- Cascade targets (nested table, self reference, literal, generator)
- Roll results with an explicit complete/truncated status
- A registry of tables by title, with a small built-in catalog
"""

from worldforge.tables.table_types import (
    # Constants
    DEFAULT_MAX_CASCADE_DEPTH,
    # Errors
    TableError,
    TableConstructionError,
    NoMatchingEntryError,
    CascadeDepthExceeded,
    UnknownTableError,
    # Enums
    TableCategory,
    TableTitle,
    RollMode,
    ExpansionStatus,
    # Dice
    SumOfDice,
    EquallyDistributed,
    DiceDistribution,
    # Cascades
    CascadeTarget,
    NestedTable,
    SelfReference,
    SELF,
    Literal,
    Generator,
    CascadeStep,
    # Data classes
    TableEntry,
    RollResult,
    Table,
)

from worldforge.tables.table_manager import (
    TableManager,
    get_table_manager,
)

__all__ = [
    "DEFAULT_MAX_CASCADE_DEPTH",
    "TableError",
    "TableConstructionError",
    "NoMatchingEntryError",
    "CascadeDepthExceeded",
    "UnknownTableError",
    "TableCategory",
    "TableTitle",
    "RollMode",
    "ExpansionStatus",
    "SumOfDice",
    "EquallyDistributed",
    "DiceDistribution",
    "CascadeTarget",
    "NestedTable",
    "SelfReference",
    "SELF",
    "Literal",
    "Generator",
    "CascadeStep",
    "TableEntry",
    "RollResult",
    "Table",
    "TableManager",
    "get_table_manager",
]
