"""
Core data models for the worldforge table engine.

Contains the random source every table roll goes through, and the
DiceResult record it produces for dice-notation rolls.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import logging
import random
import re
import threading

from worldforge.observability.run_log import get_run_log

logger = logging.getLogger(__name__)


# =============================================================================
# DICE
# =============================================================================

_NOTATION_RE = re.compile(r"^\s*(\d*)[dD](\d+)\s*(?:([+-])\s*(\d+))?\s*$")

# Most recent DiceResults kept by each RandomSource
DEFAULT_ROLL_LOG_LIMIT = 1000


class RandomSource:
    """
    Randomization capability used by tables and dice distributions.

    Each instance owns its own PRNG, so a table can be given a seeded
    source for reproducible output while the rest of the process keeps
    using the shared default from get_random_source(). All draws are
    serialized through a lock; a single source may be shared between
    threads.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        log_rolls: bool = True,
        roll_log_limit: int = DEFAULT_ROLL_LOG_LIMIT,
    ):
        self._rng = random.Random(seed)
        self._seed = seed
        self._lock = threading.Lock()
        self._roll_log: deque["DiceResult"] = deque(maxlen=roll_log_limit)
        self.log_rolls = log_rolls

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def set_seed(self, seed: int) -> None:
        """Reseed the source for reproducibility."""
        with self._lock:
            self._seed = seed
            self._rng.seed(seed)
        get_run_log().set_seed(seed)

    def randint(self, minimum: int, maximum: int) -> int:
        """Return a uniform integer in [minimum, maximum], both inclusive."""
        if minimum > maximum:
            raise ValueError(f"Empty range: {minimum} > {maximum}")
        with self._lock:
            return self._rng.randint(minimum, maximum)

    def chance(self, percent: int) -> bool:
        """
        Weighted coin: True with probability percent/100.

        Values at or below 0 never succeed and values at or above 100
        always do; neither consumes randomness.
        """
        if percent <= 0:
            return False
        if percent >= 100:
            return True
        return self.randint(1, 100) <= percent

    def roll(self, dice: str, reason: str = "") -> "DiceResult":
        """
        Roll dice using standard notation (e.g., '2d6', '1d20+5', '3d6-2', 'd6').

        Args:
            dice: Dice notation string
            reason: Why this roll is being made (for logging)

        Returns:
            DiceResult with individual rolls and total

        Raises:
            ValueError: If the notation cannot be parsed
        """
        match = _NOTATION_RE.match(dice)
        if not match:
            raise ValueError(f"Invalid dice notation: {dice!r}")

        num_dice = int(match.group(1)) if match.group(1) else 1
        die_size = int(match.group(2))
        modifier = int(match.group(4)) if match.group(4) else 0
        if match.group(3) == "-":
            modifier = -modifier
        if num_dice < 1 or die_size < 1:
            raise ValueError(f"Invalid dice notation: {dice!r}")

        rolls = [self.randint(1, die_size) for _ in range(num_dice)]
        result = DiceResult(
            notation=dice,
            rolls=rolls,
            modifier=modifier,
            total=sum(rolls) + modifier,
            reason=reason,
        )

        if self.log_rolls:
            self._roll_log.append(result)
            get_run_log().log_roll(
                notation=dice,
                rolls=rolls,
                modifier=modifier,
                total=result.total,
                reason=reason,
            )
        return result

    def get_roll_log(self) -> list["DiceResult"]:
        """Get the most recent dice rolls made through this source."""
        return list(self._roll_log)

    def clear_roll_log(self) -> None:
        """Clear the roll log."""
        self._roll_log.clear()


@dataclass
class DiceResult:
    """Result of a dice roll with full information."""
    notation: str
    rolls: list[int]
    modifier: int
    total: int
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"{self.notation}: {self.rolls} + {self.modifier} = {self.total}"
        elif self.modifier < 0:
            return f"{self.notation}: {self.rolls} - {abs(self.modifier)} = {self.total}"
        return f"{self.notation}: {self.rolls} = {self.total}"


# Singleton access
_random_source: Optional[RandomSource] = None


def get_random_source() -> RandomSource:
    """Get the process-wide default RandomSource."""
    global _random_source
    if _random_source is None:
        _random_source = RandomSource()
    return _random_source


def set_random_source(source: RandomSource) -> RandomSource:
    """Replace the process-wide default RandomSource, returning the previous one."""
    global _random_source
    previous = get_random_source()
    _random_source = source
    logger.debug(f"Default random source replaced (seed={source.seed})")
    return previous
