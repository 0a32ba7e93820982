from dataclasses import dataclass
from decimal import Decimal

from stickerswap.models.sticker import Sticker


@dataclass
class OwnedEntry:
    """
    A user's holding of one sticker.

    At most one entry exists per (user, sticker). An entry never has a
    quantity below 1; it is deleted instead.
    """

    user_id: str
    sticker: Sticker
    quantity: int = 1
    for_trade: bool = True
    for_sale: bool = False
    price: Decimal | None = None

    @property
    def sticker_id(self) -> str:
        return self.sticker.id

    def is_tradable(self, quantity: int = 1) -> bool:
        """Check if at least `quantity` units are offered for trade."""
        return self.for_trade and self.quantity >= quantity


@dataclass
class WantedEntry:
    """A sticker a user is looking for, with a priority weight."""

    user_id: str
    sticker: Sticker
    priority: int = 1

    @property
    def sticker_id(self) -> str:
        return self.sticker.id
