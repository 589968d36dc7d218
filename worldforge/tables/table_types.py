"""
Table type definitions for the worldforge engine.

A Table is a production rule: an ordered set of weighted alternatives
(TableEntry) plus the dice distribution used to pick one. Entries may carry
cascades, probability-gated sub-expansions that append text drawn from
another table, from the same table, from a literal or from an external
generator callback. Rolling with cascades therefore interprets a small,
self-referential random grammar.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Optional, Union
import logging

from worldforge.data_models import RandomSource, get_random_source
from worldforge.observability.run_log import get_run_log

logger = logging.getLogger(__name__)

# Nested expansions allowed below a top-level roll_with_cascade() call
DEFAULT_MAX_CASCADE_DEPTH = 16


# =============================================================================
# ERRORS
# =============================================================================


class TableError(Exception):
    """Base class for table engine errors."""

    pass


class TableConstructionError(TableError, ValueError):
    """Raised when a table or entry is malformed. Always a programming error."""

    pass


class NoMatchingEntryError(TableError):
    """Raised when a roll lands outside every entry's interval."""

    def __init__(self, table_title: str, roll: int):
        self.table_title = table_title
        self.roll = roll
        super().__init__(f"Roll {roll} matches no entry of table '{table_title}'")


class CascadeDepthExceeded(TableError):
    """Raised when a cascade would recurse past the depth guard."""

    def __init__(self, table_title: str, max_depth: int):
        self.table_title = table_title
        self.max_depth = max_depth
        super().__init__(f"Cascade into '{table_title}' exceeds maximum depth {max_depth}")


class UnknownTableError(TableError, KeyError):
    """Raised when a table title is not registered."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Unknown table"


# =============================================================================
# ENUMS
# =============================================================================


class TableCategory(str, Enum):
    """
    Categories of tables for organization and context-specific access.

    Purely descriptive: the engine never interprets a table's category.
    """
    ADVENTURE = "adventure"
    CHARACTER = "character"
    MONSTER = "monster"
    TALENT = "talent"
    LOCATION = "location"
    DUNGEON = "dungeon"
    TOWN = "town"
    ARTEFACT = "artefact"
    FACTION = "faction"
    NATION = "nation"
    CULTURE = "culture"
    CAMPAIGN = "campaign"
    OTHER = "other"


class TableTitle(str, Enum):
    """Closed catalog of symbolic table titles used as lookup keys."""
    DEFAULT = "default title"

    # Other
    ELEMENT = "Element"
    SIZE = "Size"
    EMOTION = "Emotion"
    COLOUR = "Colour"

    # Artefacts
    GEMSTONE = "Gemstone"
    MATERIALS = "Materials"
    PROFANE_ARTEFACT = "Profane Artefact"
    WEAPON = "Weapon"
    TREASURE = "Treasure"

    # Locations
    LANDSCAPE = "Landscape"

    # Monsters
    MONSTER_MEAL = "Monster Meal"
    MONSTER_NUMBER = "Monster Number"


class RollMode(str, Enum):
    """How a table selects an entry."""
    WEIGHTED = "weighted"  # Dice total looked up against declared intervals
    UNIFORM = "uniform"    # Ordinal index picked with equal probability


class ExpansionStatus(str, Enum):
    """Whether a cascade expansion ran to the end."""
    COMPLETE = "complete"
    TRUNCATED = "truncated"


# =============================================================================
# DICE DISTRIBUTIONS
# =============================================================================


@dataclass(frozen=True)
class SumOfDice:
    """
    Sum of num_dice independent dice with the given number of sides.

    3d6 yields 3-18 with outcomes clustering around the middle, which is
    how most tables model "common results are common".
    """
    num_dice: int = 1
    sides: int = 6
    modifier: int = 0

    def __post_init__(self):
        if self.num_dice < 1 or self.sides < 1:
            raise TableConstructionError(
                f"Dice need at least one die with at least one side, got {self.num_dice}d{self.sides}"
            )

    @property
    def notation(self) -> str:
        if self.modifier > 0:
            return f"{self.num_dice}d{self.sides}+{self.modifier}"
        elif self.modifier < 0:
            return f"{self.num_dice}d{self.sides}-{abs(self.modifier)}"
        return f"{self.num_dice}d{self.sides}"

    def get_min_roll(self) -> int:
        return self.num_dice + self.modifier

    def get_max_roll(self) -> int:
        return self.num_dice * self.sides + self.modifier

    def roll(self, source: RandomSource, entry_count: int, reason: str = "") -> int:
        return source.roll(self.notation, reason).total

    def __str__(self) -> str:
        modifier = f" {self.modifier:+d}" if self.modifier else ""
        return f"{self.num_dice}d{self.sides}{modifier}"


@dataclass(frozen=True)
class EquallyDistributed:
    """Degenerate distribution: a uniform index into the entry list."""

    def roll(self, source: RandomSource, entry_count: int, reason: str = "") -> int:
        if entry_count < 1:
            raise ValueError("Cannot pick from an empty table")
        return source.randint(0, entry_count - 1)

    def __str__(self) -> str:
        return "Equally Distributed"


DiceDistribution = Union[SumOfDice, EquallyDistributed]


# =============================================================================
# CASCADES
# =============================================================================


class CascadeTarget:
    """
    Base of the closed set of cascade targets.

    Subclasses: NestedTable, SelfReference, Literal, Generator. Each knows
    how to produce its own text, so the expansion loop never inspects the
    kind of target it holds.
    """

    def resolve(
        self,
        owner: "Table",
        source: RandomSource,
        depth: int,
        max_depth: int,
    ) -> tuple[str, bool]:
        """
        Produce this target's text.

        Returns:
            Tuple of (text, truncated) where truncated reports that a nested
            expansion stopped early.
        """
        raise NotImplementedError

    def describe(self) -> str:
        """Authoring preview of the target."""
        raise NotImplementedError


def _expand_nested(table: "Table", source: RandomSource, depth: int, max_depth: int) -> tuple[str, bool]:
    if depth >= max_depth:
        raise CascadeDepthExceeded(table.title.value, max_depth)
    result = table._expand(source, depth + 1, max_depth)
    return result.text, result.is_truncated


@dataclass(frozen=True, eq=False)
class NestedTable(CascadeTarget):
    """Roll another table, with its own cascades."""
    table: "Table"

    def resolve(self, owner, source, depth, max_depth):
        return _expand_nested(self.table, source, depth, max_depth)

    def describe(self) -> str:
        return f"({self.table.title.value})"


@dataclass(frozen=True)
class SelfReference(CascadeTarget):
    """Roll the owning table again."""

    def resolve(self, owner, source, depth, max_depth):
        return _expand_nested(owner, source, depth, max_depth)

    def describe(self) -> str:
        return "(self)"


SELF = SelfReference()


@dataclass(frozen=True)
class Literal(CascadeTarget):
    """Splice fixed text, e.g. a connective word."""
    text: str

    def resolve(self, owner, source, depth, max_depth):
        return self.text, False

    def describe(self) -> str:
        return self.text


@dataclass(frozen=True, eq=False)
class Generator(CascadeTarget):
    """Text produced by an external zero-argument callback."""
    fn: Callable[[], Any]

    def resolve(self, owner, source, depth, max_depth):
        return str(self.fn()), False

    def describe(self) -> str:
        return ""


@dataclass(frozen=True)
class CascadeStep:
    """One probability-gated expansion step of an entry."""
    target: CascadeTarget
    probability: int = 100     # Percent chance the step is taken
    join_text: str = ""        # Placed before the resolved text


def _validate_probability(probability: int, what: str) -> None:
    if not 0 <= probability <= 100:
        raise TableConstructionError(f"{what} probability must be within 0-100, got {probability}")


def _compose(composed: str, join_text: str, resolved: str) -> str:
    """Join non-empty pieces with single spaces."""
    parts = [composed, join_text.strip(), resolved]
    return " ".join(part for part in parts if part)


# =============================================================================
# ENTRIES
# =============================================================================


@dataclass
class TableEntry:
    """
    A single alternative in a table.

    Built once through the chainable with_* methods while the owning table
    is defined, then never changed. An entry without a declared interval is
    "unranged": the table assigns it an ordinal index and rolls uniformly.
    """
    text: str = ""

    # Roll range (inclusive); None means unranged
    roll_min: Optional[int] = None
    roll_max: Optional[int] = None

    cascades: list[CascadeStep] = field(default_factory=list)

    # Side effects for external consumers; forwarded, never invoked here
    callbacks: list[Callable[[Any], Any]] = field(default_factory=list)

    def __post_init__(self):
        if (self.roll_min is None) != (self.roll_max is None):
            raise TableConstructionError(
                f"Entry '{self.text}' needs both roll_min and roll_max, or neither"
            )
        if self.roll_min is not None and self.roll_min > self.roll_max:
            raise TableConstructionError(
                f"Entry '{self.text}': max should be equal or bigger than min "
                f"({self.roll_min} > {self.roll_max})"
            )

    @property
    def is_ranged(self) -> bool:
        return self.roll_min is not None

    def with_range(self, roll_min: int, roll_max: int) -> "TableEntry":
        """Set the inclusive interval of dice totals selecting this entry."""
        if roll_min > roll_max:
            raise TableConstructionError(
                f"Entry '{self.text}': max should be equal or bigger than min ({roll_min} > {roll_max})"
            )
        self.roll_min = roll_min
        self.roll_max = roll_max
        return self

    def with_cascade(
        self,
        target: Union["Table", CascadeTarget],
        probability: int = 100,
        join_text: str = "",
    ) -> "TableEntry":
        """Append a sub-expansion from another table, or from SELF."""
        if isinstance(target, Table):
            target = NestedTable(target)
        elif not isinstance(target, CascadeTarget):
            raise TableConstructionError(
                f"Cascade target must be a Table or SELF, got {type(target).__name__}"
            )
        _validate_probability(probability, "Cascade")
        self.cascades.append(CascadeStep(target, probability, join_text))
        return self

    def with_self_cascade(self, probability: int = 100, join_text: str = "") -> "TableEntry":
        return self.with_cascade(SELF, probability, join_text)

    def with_literal(self, text: str, probability: int = 100) -> "TableEntry":
        """Append fixed text without a sub-roll."""
        return self.with_cascade(Literal(text), probability)

    def with_generator(self, fn: Callable[[], Any], probability: int = 100) -> "TableEntry":
        """Append text produced by fn() at roll time."""
        return self.with_cascade(Generator(fn), probability)

    def with_callback(self, fn: Callable[[Any], Any]) -> "TableEntry":
        """Attach a side effect that consumers may apply to an entity."""
        self.callbacks.append(fn)
        return self

    def matches_roll(self, roll: int) -> bool:
        """Check if a roll value falls within this entry's range."""
        return self.is_ranged and self.roll_min <= roll <= self.roll_max

    @property
    def label(self) -> str:
        """Interval label, e.g. '5' or '1-3'."""
        if not self.is_ranged:
            return "-"
        return _range_label(self.roll_min, self.roll_max)

    @property
    def full_text(self) -> str:
        return f"{self.label}: {self.text}"

    @property
    def text_with_cascades(self) -> str:
        """Preview of the entry with its cascade targets spelled out."""
        parts = [self.text]
        for step in self.cascades:
            parts.append(step.join_text.strip())
            parts.append(step.target.describe())
        return " ".join(part for part in parts if part)


def _copy_entry(entry: TableEntry, **changes: Any) -> TableEntry:
    """Copy an entry with its own cascade and callback lists."""
    return replace(
        entry,
        cascades=list(entry.cascades),
        callbacks=list(entry.callbacks),
        **changes,
    )


def _range_label(low: int, high: int) -> str:
    return f"{low}" if low == high else f"{low}-{high}"


# =============================================================================
# RESULTS
# =============================================================================


@dataclass
class RollResult:
    """
    Outcome of one roll on a table.

    Transient: copied from the selected entry and handed to the caller.
    status tells a full expansion apart from one cut short by a fault or
    by the depth guard.
    """
    text: str
    label: str
    roll: int
    table_title: "TableTitle"
    cascades: list[CascadeStep] = field(default_factory=list)
    callbacks: list[Callable[[Any], Any]] = field(default_factory=list)
    status: ExpansionStatus = ExpansionStatus.COMPLETE
    truncation_reason: Optional[str] = None

    @property
    def is_truncated(self) -> bool:
        return self.status == ExpansionStatus.TRUNCATED

    def apply_callbacks(self, entity: Any) -> Any:
        """Run the forwarded callbacks in order, threading entity through."""
        for callback in self.callbacks:
            entity = callback(entity)
        return entity

    def __str__(self) -> str:
        return self.text


# =============================================================================
# TABLES
# =============================================================================


@dataclass(eq=False)
class Table:
    """
    A random table: ordered entries plus a dice distribution.

    Validated once at construction. If no entry declares an interval, each
    entry gets its ordinal position (0..n-1) and the table rolls uniformly
    regardless of the declared dice. Otherwise intervals must be ascending
    and non-overlapping.

    The table keeps its own copies of the entries, so changing an entry
    object after construction does not affect it. Cascades that point back
    at tables built later (mutual recursion) are added through
    table.entries.

    inclusion_probability and allow_repeat are hints for callers that pick
    which tables to roll (see TableManager.roll_tables); rolling a table
    ignores them.
    """
    entries: list[TableEntry]
    title: TableTitle = TableTitle.DEFAULT
    category: TableCategory = TableCategory.CHARACTER
    dice: DiceDistribution = field(default_factory=SumOfDice)
    inclusion_probability: int = 100
    allow_repeat: bool = False
    random_source: Optional[RandomSource] = field(default=None, repr=False)
    max_depth: int = DEFAULT_MAX_CASCADE_DEPTH

    mode: RollMode = field(init=False, default=RollMode.WEIGHTED)

    def __post_init__(self):
        if not self.entries:
            raise TableConstructionError(f"Table '{self.title.value}' has no entries")
        _validate_probability(self.inclusion_probability, "Inclusion")
        if self.max_depth < 0:
            raise TableConstructionError(f"max_depth must not be negative, got {self.max_depth}")

        ranged = [entry.is_ranged for entry in self.entries]
        if not any(ranged):
            self.entries = [
                _copy_entry(entry, roll_min=i, roll_max=i) for i, entry in enumerate(self.entries)
            ]
            self._use_uniform()
            return
        if not all(ranged):
            raise TableConstructionError(
                f"Table '{self.title.value}' mixes ranged and unranged entries"
            )

        self.entries = [_copy_entry(entry) for entry in self.entries]
        self._check_ascending()

        if self._is_ordinal():
            self._use_uniform()
        elif isinstance(self.dice, EquallyDistributed):
            raise TableConstructionError(
                f"Table '{self.title.value}' is equally distributed but declares dice ranges"
            )
        else:
            self.mode = RollMode.WEIGHTED
            self._check_coverage()

    def _use_uniform(self) -> None:
        self.mode = RollMode.UNIFORM
        self.dice = EquallyDistributed()

    def _is_ordinal(self) -> bool:
        return all(
            entry.roll_min == i and entry.roll_max == i for i, entry in enumerate(self.entries)
        )

    def _check_ascending(self) -> None:
        for previous, current in zip(self.entries, self.entries[1:]):
            if previous.roll_max >= current.roll_min:
                raise TableConstructionError(
                    f"Table '{self.title.value}': entries should not contain overlapping "
                    f"rolls and should be ascending ({previous.label} then {current.label})"
                )

    def _check_coverage(self) -> None:
        """Warn about dice totals without an entry and entries no roll reaches."""
        low, high = self.dice.get_min_roll(), self.dice.get_max_roll()
        gaps = self._find_gaps(low, high)
        if gaps:
            logger.warning(
                f"Table '{self.title.value}' ({self.dice}) has no entry for rolls {gaps}"
            )
        unreachable = [
            entry.label for entry in self.entries
            if entry.roll_max < low or entry.roll_min > high
        ]
        if unreachable:
            logger.warning(
                f"Table '{self.title.value}' ({self.dice}) can never roll entries {unreachable}"
            )

    def _find_gaps(self, low: int, high: int) -> list[str]:
        """Labels of the uncovered spans in [low, high]. Entries are ascending."""
        gaps = []
        next_uncovered = low
        for entry in self.entries:
            if next_uncovered > high:
                break
            if entry.roll_min > next_uncovered:
                gaps.append(_range_label(next_uncovered, min(entry.roll_min - 1, high)))
            next_uncovered = max(next_uncovered, entry.roll_max + 1)
        if next_uncovered <= high:
            gaps.append(_range_label(next_uncovered, high))
        return gaps

    def _find_entry(self, roll: int) -> Optional[TableEntry]:
        for entry in self.entries:
            if entry.matches_roll(roll):
                return entry
        return None

    def _resolve_source(self, source: Optional[RandomSource]) -> RandomSource:
        if source is not None:
            return source
        if self.random_source is not None:
            return self.random_source
        return get_random_source()

    def roll(self, source: Optional[RandomSource] = None) -> RollResult:
        """
        Roll once and return the selected entry, without cascades.

        Args:
            source: RandomSource to draw from; defaults to the table's own,
                then to the process-wide source

        Returns:
            RollResult wrapping the selected entry's text

        Raises:
            NoMatchingEntryError: If the dice total matches no entry
        """
        source = self._resolve_source(source)
        value = self.dice.roll(source, len(self.entries), f"table roll: {self.title.value}")

        if self.mode == RollMode.UNIFORM:
            entry = self.entries[value]
        else:
            entry = self._find_entry(value)
            if entry is None:
                raise NoMatchingEntryError(self.title.value, value)

        get_run_log().log_table_lookup(
            table_title=self.title.value,
            roll_total=value,
            label=entry.label,
            result_text=entry.text,
        )

        return RollResult(
            text=entry.text,
            label=entry.label,
            roll=value,
            table_title=self.title,
            cascades=list(entry.cascades),
            callbacks=list(entry.callbacks),
        )

    def roll_with_cascade(
        self,
        source: Optional[RandomSource] = None,
        max_depth: Optional[int] = None,
    ) -> RollResult:
        """
        Roll and expand the selected entry's cascades into one phrase.

        Each cascade step is gated independently by its probability. A step
        whose target fails (a nested table with no matching entry, a
        generator raising, or recursion past max_depth) stops the expansion;
        the text built so far is returned with status TRUNCATED.

        Args:
            source: RandomSource to draw from
            max_depth: Nested expansions allowed below this call; defaults
                to the table's max_depth

        Returns:
            RollResult whose text is the composed phrase
        """
        if max_depth is None:
            max_depth = self.max_depth
        if max_depth < 0:
            raise ValueError(f"max_depth must not be negative, got {max_depth}")
        return self._expand(self._resolve_source(source), 0, max_depth)

    def _expand(self, source: RandomSource, depth: int, max_depth: int) -> RollResult:
        base = self.roll(source)
        composed = base.text
        status = ExpansionStatus.COMPLETE
        reason: Optional[str] = None

        for step in base.cascades:
            if not source.chance(step.probability):
                continue
            try:
                resolved, nested_truncated = step.target.resolve(self, source, depth, max_depth)
            except Exception as e:
                status = ExpansionStatus.TRUNCATED
                reason = f"{type(e).__name__}: {e}"
                self._log_truncation(e, reason, composed, depth)
                break

            composed = _compose(composed, step.join_text, resolved)
            if nested_truncated:
                status = ExpansionStatus.TRUNCATED
                reason = reason or "nested expansion truncated"

        return replace(base, text=composed, status=status, truncation_reason=reason)

    def _log_truncation(self, error: Exception, reason: str, partial: str, depth: int) -> None:
        message = f"Cascade of '{self.title.value}' truncated at depth {depth}: {reason}"
        if isinstance(error, CascadeDepthExceeded):
            logger.debug(message)
        else:
            logger.warning(message)
        get_run_log().log_cascade_truncation(
            table_title=self.title.value,
            reason=reason,
            partial_text=partial,
            depth=depth,
        )

    def get_entry_count(self) -> int:
        return len(self.entries)

    def describe(self) -> str:
        """List the entries with their cascades, one per line."""
        lines = [f"{self.title.value} ({self.dice})"]
        for entry in self.entries:
            lines.append(f"  {entry.label}: {entry.text_with_cascades}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.title.value
