from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .membership import MembershipTier
from ..utils.constants import Role
from ..utils.security import mask_card


@dataclass
class Account:
    """
    Renter account. Discounts are delegated to the membership tier so the
    rental engine never needs to know which tier it is talking to.
    """
    account_id: int
    login_id: str
    name: str = ""
    phone_number: str = ""
    card_number: Optional[str] = None
    tier: MembershipTier = MembershipTier.SILVER
    role: str = Role.CUSTOMER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def has_card(self) -> bool:
        return bool(self.card_number)

    def apply_discount(self, amount: Decimal) -> Decimal:
        return self.tier.apply(amount)

    def to_dict(self) -> dict:
        return {
            "account_id": self.account_id,
            "login_id": self.login_id,
            "name": self.name,
            "phone_number": self.phone_number,
            "card": mask_card(self.card_number) if self.card_number else None,
            "tier": self.tier.value,
            "role": self.role,
        }
