"""
worldforge - Main Entry Point

Rolls tables from the built-in catalog and prints the composed phrases.

Usage:
    python -m worldforge.main --table Treasure --count 5 --seed 42
    python -m worldforge.main --list
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from worldforge.data_models import RandomSource, set_random_source
from worldforge.observability.run_log import get_run_log, reset_run_log
from worldforge.tables.table_manager import get_table_manager
from worldforge.tables.table_types import DEFAULT_MAX_CASCADE_DEPTH, TableError, TableTitle


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class GeneratorConfig:
    """Configuration for a generation run."""

    tables: list[TableTitle] = field(default_factory=lambda: [TableTitle.TREASURE])
    count: int = 1
    seed: Optional[int] = None
    max_depth: int = DEFAULT_MAX_CASCADE_DEPTH
    cascade: bool = True

    # Output options
    list_tables: bool = False
    run_log_path: Optional[Path] = None
    verbose: bool = False

    def __post_init__(self):
        if isinstance(self.run_log_path, str):
            self.run_log_path = Path(self.run_log_path)
        if self.count < 1:
            raise ValueError(f"count must be at least 1, got {self.count}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must not be negative, got {self.max_depth}")


def parse_table_title(value: str) -> TableTitle:
    """Accept a title by display value ('Monster Meal') or name ('MONSTER_MEAL')."""
    for title in TableTitle:
        if value.lower() in (title.value.lower(), title.name.lower()):
            return title
    raise argparse.ArgumentTypeError(f"unknown table title: {value!r}")


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Roll cascading random tables for worldbuilding.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--table", "-t",
        dest="tables",
        type=parse_table_title,
        action="append",
        help="Table title to roll (repeatable, default: Treasure)",
    )
    parser.add_argument(
        "--count", "-n",
        type=int,
        default=1,
        help="Number of rolls per table",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for reproducible output",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_CASCADE_DEPTH,
        help="Maximum nested cascade depth",
    )
    parser.add_argument(
        "--no-cascade",
        action="store_true",
        help="Roll entries without expanding their cascades",
    )
    parser.add_argument(
        "--list",
        dest="list_tables",
        action="store_true",
        help="List registered tables and exit",
    )
    parser.add_argument(
        "--run-log",
        dest="run_log_path",
        help="Save the run log as JSON to this path",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> GeneratorConfig:
    """Create GeneratorConfig from parsed arguments."""
    return GeneratorConfig(
        tables=args.tables or [TableTitle.TREASURE],
        count=args.count,
        seed=args.seed,
        max_depth=args.max_depth,
        cascade=not args.no_cascade,
        list_tables=args.list_tables,
        run_log_path=args.run_log_path,
        verbose=args.verbose,
    )


def run(config: GeneratorConfig) -> list[str]:
    """Roll the configured tables and return the produced lines."""
    manager = get_table_manager()

    if config.list_tables:
        return [manager.get_table(title).describe() for title in manager.titles()]

    reset_run_log()
    source = RandomSource()
    if config.seed is not None:
        source.set_seed(config.seed)
    set_random_source(source)

    lines = []
    for title in config.tables:
        for _ in range(config.count):
            result = manager.roll_table(
                title,
                cascade=config.cascade,
                source=source,
                max_depth=config.max_depth,
            )
            if result.is_truncated:
                logger.info(f"'{title.value}' truncated: {result.truncation_reason}")
            lines.append(f"{title.value}: {result.text}")

    if config.run_log_path:
        get_run_log().save(str(config.run_log_path))

    return lines


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_arguments(argv)
    try:
        config = create_config_from_args(args)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.verbose)

    try:
        lines = run(config)
    except TableError as e:
        logger.error(f"Generation failed: {e}")
        return 1

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
