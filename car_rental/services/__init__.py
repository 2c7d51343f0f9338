from .admin_service import AdminService
from .analytics_service import AnalyticsService
from .rental_service import RentalService
from .user_service import UserService
from .vehicle_service import VehicleService

__all__ = [
    "AdminService",
    "AnalyticsService",
    "RentalService",
    "VehicleService",
    "UserService",
]
