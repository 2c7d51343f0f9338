from decimal import Decimal
from enum import Enum

from ..exceptions import AlreadyTopTierError


class MembershipTier(str, Enum):
    """
    Account-level discount class. Each tier is a pure multiplier on the
    pre-discount amount; tiers move up one step per completed rental.
    """
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"
    VIP = "VIP"

    @property
    def multiplier(self) -> Decimal:
        return TIER_MULTIPLIERS[self]

    def apply(self, amount: Decimal) -> Decimal:
        """Amount after the discount."""
        return amount * self.multiplier

    def discount_for(self, amount: Decimal) -> Decimal:
        """Amount taken off; never negative for amount >= 0."""
        return amount - self.apply(amount)

    def next_tier(self) -> "MembershipTier":
        idx = TIER_ORDER.index(self)
        if idx == len(TIER_ORDER) - 1:
            raise AlreadyTopTierError()
        return TIER_ORDER[idx + 1]

    @classmethod
    def parse(cls, value) -> "MembershipTier":
        """
        Resolve a stored tag. Legacy strategy names ('GoldStrategy') resolve to
        their tier; anything else, including 'ADMIN', is treated as Silver.
        """
        if isinstance(value, cls):
            return value
        key = (value or "").strip().upper()
        if key.endswith("STRATEGY"):
            key = key[: -len("STRATEGY")]
        try:
            return cls(key)
        except ValueError:
            return cls.SILVER


TIER_ORDER = [
    MembershipTier.SILVER,
    MembershipTier.GOLD,
    MembershipTier.PLATINUM,
    MembershipTier.VIP,
]

TIER_MULTIPLIERS = {
    MembershipTier.SILVER: Decimal("0.95"),
    MembershipTier.GOLD: Decimal("0.90"),
    MembershipTier.PLATINUM: Decimal("0.85"),
    MembershipTier.VIP: Decimal("0.80"),
}
