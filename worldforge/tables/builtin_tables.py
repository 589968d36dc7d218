"""
Built-in tables shipped with the worldforge engine.

A small catalog covering each engine feature: uniform and weighted
tables, nested and self cascades, literals and generator callbacks.
Every table is built by a factory; TableManager registers them by title.
"""

from typing import Callable, Optional

from worldforge.data_models import RandomSource, get_random_source
from worldforge.tables.table_types import (
    SumOfDice,
    Table,
    TableCategory,
    TableEntry,
    TableTitle,
)


def _entries(*texts: str) -> list[TableEntry]:
    return [TableEntry(text) for text in texts]


def random_group_size(source: Optional[RandomSource] = None) -> str:
    """A number of creatures from 1 to 6, drawn from source or the process default."""
    return str((source or get_random_source()).randint(1, 6))


# =============================================================================
# OTHER
# =============================================================================


def element_table() -> Table:
    return Table(
        entries=_entries(
            "fire", "water", "earth", "wind", "ice", "life", "magic", "light",
            "shadow", "electricity", "sound", "paper", "sand", "lava", "smoke",
            "force", "blood", "hair",
        ),
        title=TableTitle.ELEMENT,
        category=TableCategory.OTHER,
    )


def size_table() -> Table:
    return Table(
        entries=_entries("tiny", "small", "modest", "big", "huge", "enormous"),
        title=TableTitle.SIZE,
        category=TableCategory.OTHER,
    )


def emotion_table() -> Table:
    return Table(
        entries=_entries(
            "joy", "grief", "anger", "fear", "envy", "pride", "shame",
            "longing", "boredom", "hope",
        ),
        title=TableTitle.EMOTION,
        category=TableCategory.OTHER,
    )


def colour_table() -> Table:
    return Table(
        entries=_entries(
            "red", "blue", "green", "yellow", "black", "white", "purple",
            "orange", "grey", "golden", "silvery",
        ),
        title=TableTitle.COLOUR,
        category=TableCategory.OTHER,
    )


# =============================================================================
# ARTEFACTS
# =============================================================================


def gemstone_table() -> Table:
    return Table(
        entries=_entries(
            "diamond", "alexandrite", "amethyst", "ametrine", "apatite", "amber",
            "ammolite", "opal", "aquamarine", "aventurine", "beryl", "onyx",
            "pearl", "sapphire", "topaz", "spinel", "zircon", "emerald", "ruby",
            "quartz", "citrine", "jade", "lapis lazuli",
        ),
        title=TableTitle.GEMSTONE,
        category=TableCategory.ARTEFACT,
    )


def materials_table() -> Table:
    entries = _entries("silver", "gold", "platinum", "steel", "bronze", "lead")
    entries.append(TableEntry().with_cascade(gemstone_table()))
    entries.extend(_entries("bone", "wood", "stone", "glass"))
    return Table(entries=entries, title=TableTitle.MATERIALS, category=TableCategory.ARTEFACT)


def profane_artefact_table() -> Table:
    return Table(
        entries=_entries(
            "cup", "chair", "spoon", "candle", "rope", "bucket", "ladder",
            "frying pan", "broom", "book", "shovel", "bottle",
        ),
        title=TableTitle.PROFANE_ARTEFACT,
        category=TableCategory.ARTEFACT,
    )


def weapon_table() -> Table:
    entries = _entries(
        "sword", "long-sword", "broadsword", "spear", "knife", "axe",
        "morning star", "bow", "crossbow", "throwing dagger", "staff", "hammer",
        "club", "slingshot", "combat fan", "flail", "katana", "whip", "lance",
    )
    entries.append(
        TableEntry("improvised weapon: (")
        .with_cascade(profane_artefact_table())
        .with_literal(")")
    )
    entries.append(
        TableEntry()
        .with_self_cascade()
        .with_literal("together with")
        .with_self_cascade()
    )
    entries.append(TableEntry("shield"))
    return Table(entries=entries, title=TableTitle.WEAPON, category=TableCategory.ARTEFACT)


def treasure_table() -> Table:
    return Table(
        entries=[
            TableEntry()
            .with_cascade(size_table())
            .with_literal("pile of")
            .with_cascade(materials_table()),
            TableEntry().with_cascade(weapon_table()),
            TableEntry("a").with_cascade(colour_table(), 50).with_literal("gem of").with_cascade(gemstone_table()),
            TableEntry("information"),
            TableEntry("key"),
        ],
        title=TableTitle.TREASURE,
        category=TableCategory.ARTEFACT,
    )


# =============================================================================
# LOCATIONS
# =============================================================================


def landscape_table() -> Table:
    return Table(
        entries=[
            TableEntry("volcano").with_range(2, 2),
            TableEntry("glacier").with_range(3, 3),
            TableEntry("swamp").with_range(4, 5),
            TableEntry("forest").with_range(6, 7),
            TableEntry("plains").with_range(8, 8),
            TableEntry("hills").with_range(9, 9),
            TableEntry("mountains").with_range(10, 10),
            TableEntry("desert").with_range(11, 11),
            TableEntry("wasteland").with_range(12, 12).with_cascade(element_table(), 100, "of"),
        ],
        title=TableTitle.LANDSCAPE,
        category=TableCategory.LOCATION,
        dice=SumOfDice(num_dice=2, sides=6),
    )


# =============================================================================
# MONSTERS
# =============================================================================


def monster_meal_table() -> Table:
    return Table(
        entries=[
            TableEntry("vegan").with_range(3, 3),
            TableEntry("dreams").with_range(4, 5),
            TableEntry("vegetarian").with_range(6, 8),
            TableEntry("meat").with_range(9, 11),
            TableEntry("omnivores").with_range(12, 14),
            TableEntry("it eats creatures that eat").with_range(15, 15).with_self_cascade(),
            TableEntry("").with_range(16, 16).with_cascade(element_table()),
            TableEntry("it eats emotion:").with_range(17, 17).with_cascade(emotion_table()),
            TableEntry("it eats").with_range(18, 18).with_cascade(materials_table()),
        ],
        title=TableTitle.MONSTER_MEAL,
        category=TableCategory.MONSTER,
        dice=SumOfDice(num_dice=3, sides=6),
    )


def monster_number_table(source: Optional[RandomSource] = None) -> Table:
    """
    Group sizes. The generator entries draw from source when one is given,
    otherwise from the process-wide default at roll time; pass the same
    source used for rolling to get reproducible numbers.
    """
    def group_size() -> str:
        return random_group_size(source)

    return Table(
        entries=[
            TableEntry().with_generator(group_size),
            TableEntry("parents with children").with_generator(group_size),
            TableEntry("horde"),
            TableEntry("swarm"),
        ],
        title=TableTitle.MONSTER_NUMBER,
        category=TableCategory.MONSTER,
        random_source=source,
    )


BUILTIN_TABLE_FACTORIES: dict[TableTitle, Callable[[], Table]] = {
    TableTitle.ELEMENT: element_table,
    TableTitle.SIZE: size_table,
    TableTitle.EMOTION: emotion_table,
    TableTitle.COLOUR: colour_table,
    TableTitle.GEMSTONE: gemstone_table,
    TableTitle.MATERIALS: materials_table,
    TableTitle.PROFANE_ARTEFACT: profane_artefact_table,
    TableTitle.WEAPON: weapon_table,
    TableTitle.TREASURE: treasure_table,
    TableTitle.LANDSCAPE: landscape_table,
    TableTitle.MONSTER_MEAL: monster_meal_table,
    TableTitle.MONSTER_NUMBER: monster_number_table,
}
