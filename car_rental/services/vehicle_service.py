from __future__ import annotations

import logging
from typing import List, Optional, TYPE_CHECKING

from . import common
from .common import vehicle_from_dict, to_decimal_safe
from ..exceptions import VehicleNotFoundError, VehicleUnavailableError
from ..models.vehicle import VehicleBase, VehicleCategory, vehicle_class_for
from ..utils.constants import VehicleState

if TYPE_CHECKING:
    # Only for type hints; won't execute at runtime
    from ..models.store import Store  # noqa: F401

logger = logging.getLogger(__name__)


class VehicleService:
    """Vehicle catalogue: factory, inventory queries, state sync, admin CRUD."""

    @staticmethod
    def create_vehicle(category, vehicle_id=None, name: str = "", rate=None) -> VehicleBase:
        """
        Build an in-memory vehicle of the right class for `category`.
        Raises UnknownCategoryError for anything but SEDAN/SUV/BIKE.
        """
        cls = vehicle_class_for(category)
        return cls(vehicle_id=vehicle_id, name=name or "", rate=to_decimal_safe(rate))

    @staticmethod
    def find_all(store: Optional["Store"] = None) -> List[VehicleBase]:
        st = store or common._store()
        return [vehicle_from_dict(d) for d in st.list_vehicles()]

    @staticmethod
    def find_available(store: Optional["Store"] = None) -> List[VehicleBase]:
        st = store or common._store()
        return [vehicle_from_dict(d) for d in st.list_vehicles(state=VehicleState.AVAILABLE)]

    @staticmethod
    def find_by_id(vehicle_id, store: Optional["Store"] = None) -> VehicleBase:
        """Return a vehicle by ID or raise VehicleNotFoundError."""
        st = store or common._store()
        v = vehicle_from_dict(st.get_vehicle(vehicle_id))
        if v is None:
            raise VehicleNotFoundError(f"Error: vehicle with ID '{vehicle_id}' not found")
        return v

    @staticmethod
    def update(vehicle: VehicleBase, store: Optional["Store"] = None) -> None:
        """Persist the vehicle's state. Rate and category never change after creation."""
        st = store or common._store()
        if not st.update_vehicle_state(vehicle.vehicle_id, vehicle.state):
            raise VehicleNotFoundError(f"Error: vehicle with ID '{vehicle.vehicle_id}' not found")

    # --------------- Admin ---------------
    @staticmethod
    def register_vehicle(category, rate=None, name: Optional[str] = None,
                         store: Optional["Store"] = None) -> VehicleBase:
        """
        Add a vehicle to the inventory.
        - category must be SEDAN/SUV/BIKE (case-insensitive)
        - a missing or invalid rate means the category base rate
        - a blank name falls back to the generated id
        """
        st = store or common._store()
        cat = VehicleCategory.parse(category)

        fee = to_decimal_safe(rate)
        if fee is None or fee <= 0:
            fee = cat.base_rate

        name = (name or "").strip()
        vid = st.create_vehicle({
            "category": cat.value,
            "state": VehicleState.AVAILABLE,
            "daily_rate": fee,
            "name": name or None,
        })
        if not name:
            name = str(vid)
            st.set_vehicle_name(vid, name)

        logger.info("Vehicle registered: id=%s name=%s category=%s rate=%s", vid, name, cat.value, fee)
        return VehicleService.create_vehicle(cat, vehicle_id=vid, name=name, rate=fee)

    @staticmethod
    def delete_vehicle(vehicle_id, store: Optional["Store"] = None) -> None:
        """
        Delete a vehicle if and only if:
        - the vehicle exists,
        - the vehicle itself is AVAILABLE,
        - no active rental references it.
        """
        st = store or common._store()
        v = VehicleService.find_by_id(vehicle_id, store=st)

        if not v.is_available:
            raise VehicleUnavailableError(f"Error: cannot delete vehicle {v.vehicle_id} while {v.state}")
        if st.find_active_rental_by_vehicle(v.vehicle_id) is not None:
            raise VehicleUnavailableError(f"Error: cannot delete vehicle {v.vehicle_id}, active rental exists")

        if not st.delete_vehicle(v.vehicle_id):
            raise VehicleNotFoundError(f"Error: vehicle with ID '{vehicle_id}' not found")
        logger.info("Vehicle deleted: id=%s", v.vehicle_id)
