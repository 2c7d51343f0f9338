from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Optional

from ..exceptions import UnknownCategoryError
from ..utils.constants import VehicleState


class VehicleCategory(str, Enum):
    SEDAN = "SEDAN"
    SUV = "SUV"
    BIKE = "BIKE"

    @property
    def base_rate(self) -> Decimal:
        return CATEGORY_BASE_RATES[self]

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]

    @classmethod
    def parse(cls, value) -> "VehicleCategory":
        """Case-insensitive lookup ('Sedan', 'sedan', 'SEDAN')."""
        if isinstance(value, cls):
            return value
        key = (value or "").strip().upper()
        try:
            return cls(key)
        except ValueError:
            raise UnknownCategoryError(f"Error: unknown vehicle category '{value}'") from None


# per-day rates in the smallest currency unit
CATEGORY_BASE_RATES = {
    VehicleCategory.SEDAN: Decimal("90000"),
    VehicleCategory.SUV: Decimal("140000"),
    VehicleCategory.BIKE: Decimal("230000"),
}

CATEGORY_LABELS = {
    VehicleCategory.SEDAN: "Sedan",
    VehicleCategory.SUV: "SUV",
    VehicleCategory.BIKE: "Bike",
}


@dataclass
class VehicleBase:
    """
    Base vehicle model. The Store keeps raw rows; services wrap them into these
    objects so pricing can ask the vehicle for its own daily rate.

    `rate` is the explicit per-day price. When it is missing or not positive the
    category's base rate applies instead.
    """
    vehicle_id: int
    name: str = ""
    state: str = VehicleState.AVAILABLE
    rate: Optional[Decimal] = None

    category: ClassVar[VehicleCategory]

    @property
    def daily_rate(self) -> Decimal:
        if self.rate is None or self.rate <= 0:
            return self.category.base_rate
        return self.rate

    @property
    def display_name(self) -> str:
        return self.name or str(self.vehicle_id)

    @property
    def is_available(self) -> bool:
        return self.state == VehicleState.AVAILABLE

    def occupy(self) -> None:
        self.state = VehicleState.UNAVAILABLE

    def release(self) -> None:
        self.state = VehicleState.AVAILABLE

    def to_dict(self) -> dict:
        return {
            "vehicle_id": self.vehicle_id,
            "name": self.display_name,
            "category": self.category.value,
            "state": self.state,
            "daily_rate": str(self.daily_rate),
        }


class Sedan(VehicleBase):
    category = VehicleCategory.SEDAN


class Suv(VehicleBase):
    category = VehicleCategory.SUV


class Bike(VehicleBase):
    category = VehicleCategory.BIKE


VEHICLE_CLASSES = {
    VehicleCategory.SEDAN: Sedan,
    VehicleCategory.SUV: Suv,
    VehicleCategory.BIKE: Bike,
}


def vehicle_class_for(category) -> type:
    """Deterministic category -> concrete class mapping."""
    return VEHICLE_CLASSES[VehicleCategory.parse(category)]
