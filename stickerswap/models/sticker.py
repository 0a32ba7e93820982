from dataclasses import dataclass
from enum import Enum


class Rarity(str, Enum):
    """Rarity tier printed on a sticker."""

    COMMON = "COMMON"
    RARE = "RARE"
    LEGENDARY = "LEGENDARY"
    SPECIAL = "SPECIAL"


@dataclass(frozen=True)
class Section:
    """A section of an album (a national team, the stadiums page, ...)."""

    id: str
    name: str
    code: str


@dataclass(frozen=True)
class Sticker:
    """
    Immutable catalog entry for a single sticker.

    Attributes:
        id: Catalog identifier
        album_id: Album the sticker belongs to
        section: Album section, e.g. BRA or FWC
        code: Display code printed on the sticker (e.g., "BRA 14")
        name: Display name (player, crest, stadium)
        number: Sequence number within the album
        rarity: Rarity tier
        is_special: True for foil/legend stickers
    """

    id: str
    album_id: str
    section: Section
    code: str
    name: str
    number: int
    rarity: Rarity = Rarity.COMMON
    is_special: bool = False
