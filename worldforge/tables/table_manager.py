"""
Table management for the worldforge engine.

Provides centralized access to tables by symbolic title and by category,
and the helpers callers use to roll a table (or a list of tables) and
splice the text into larger generated output.
"""

from typing import Iterable, Optional
import logging

from worldforge.data_models import RandomSource, get_random_source
from worldforge.tables.builtin_tables import BUILTIN_TABLE_FACTORIES
from worldforge.tables.table_types import (
    RollResult,
    Table,
    TableCategory,
    TableTitle,
    UnknownTableError,
)

logger = logging.getLogger(__name__)

# Extra rolls granted to a table with allow_repeat in roll_tables()
DEFAULT_MAX_REPEATS = 3


class TableManager:
    """
    Central registry for tables.

    Tables are indexed by title (one table per title) and by category.
    """

    def __init__(self, register_builtins: bool = True):
        self._tables: dict[TableTitle, Table] = {}
        self._by_category: dict[TableCategory, list[TableTitle]] = {cat: [] for cat in TableCategory}

        if register_builtins:
            self._register_builtin_tables()

    def _register_builtin_tables(self) -> None:
        """Register the built-in tables."""
        for factory in BUILTIN_TABLE_FACTORIES.values():
            self.register_table(factory())
        logger.debug(f"Registered {len(self._tables)} built-in tables")

    def register_table(self, table: Table) -> None:
        """
        Register a table under its title, replacing any previous one.

        Args:
            table: The table to register
        """
        previous = self._tables.get(table.title)
        if previous is not None:
            logger.warning(f"Replacing table registered as '{table.title.value}'")
            self._by_category[previous.category].remove(table.title)

        self._tables[table.title] = table
        self._by_category[table.category].append(table.title)

    def get_table(self, title: TableTitle) -> Table:
        """
        Get a table by title.

        Raises:
            UnknownTableError: If no table is registered under the title
        """
        table = self._tables.get(title)
        if table is None:
            raise UnknownTableError(f"Table title '{getattr(title, 'value', title)}' is not registered")
        return table

    def get_tables_by_category(self, category: TableCategory) -> list[Table]:
        """Get all tables in a category, in registration order."""
        return [self._tables[title] for title in self._by_category.get(category, [])]

    def titles(self) -> list[TableTitle]:
        return list(self._tables)

    def __contains__(self, title: object) -> bool:
        return title in self._tables

    def __len__(self) -> int:
        return len(self._tables)

    def roll_table(
        self,
        title: TableTitle,
        cascade: bool = True,
        source: Optional[RandomSource] = None,
        max_depth: Optional[int] = None,
    ) -> RollResult:
        """
        Roll on a table by title.

        Args:
            title: Title of the table to roll on
            cascade: Whether to expand the entry's cascades
            source: RandomSource to draw from
            max_depth: Depth guard override for the cascade expansion

        Returns:
            RollResult with the rolled (and expanded) text
        """
        table = self.get_table(title)
        if cascade:
            result = table.roll_with_cascade(source, max_depth)
        else:
            result = table.roll(source)

        logger.debug(f"Rolled '{title.value}' [{result.label}]: {result.text}")
        return result

    def roll_tables(
        self,
        titles: Iterable[TableTitle],
        source: Optional[RandomSource] = None,
        max_repeats: int = DEFAULT_MAX_REPEATS,
    ) -> list[RollResult]:
        """
        Roll each listed table with cascades, honouring the table hints.

        A table is skipped when its inclusion_probability check fails. A
        table with allow_repeat keeps being rolled again while the same
        check passes, at most max_repeats extra times.

        Args:
            titles: Titles of the tables to roll, in order
            source: RandomSource for the inclusion checks and the rolls
            max_repeats: Bound on extra rolls for repeatable tables

        Returns:
            RollResults in roll order
        """
        if source is None:
            source = get_random_source()

        results: list[RollResult] = []
        for title in titles:
            table = self.get_table(title)
            if not source.chance(table.inclusion_probability):
                logger.debug(f"Skipped '{title.value}' (inclusion {table.inclusion_probability}%)")
                continue

            results.append(table.roll_with_cascade(source))
            if not table.allow_repeat:
                continue

            repeats = 0
            while repeats < max_repeats and source.chance(table.inclusion_probability):
                results.append(table.roll_with_cascade(source))
                repeats += 1

        return results


# Singleton access
_table_manager: Optional[TableManager] = None


def get_table_manager() -> TableManager:
    """Get the global TableManager with the built-in tables registered."""
    global _table_manager
    if _table_manager is None:
        _table_manager = TableManager()
    return _table_manager
