# car_rental/utils/constants.py

"""
Global constants for roles, statuses and settings keys.
These constants are imported by both models and services.
"""
from decimal import Decimal


class Role:
    CUSTOMER = "customer"
    ADMIN = "admin"


class RentalStatus:
    RENTED = "RENTED"
    RETURNED = "RETURNED"


class VehicleState:
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"


# --- Settings table keys ---
SEASON_SETTING = "current_season"

# --- Pricing ---
# overdue penalty per extra day, as a share of the vehicle's daily rate
OVERDUE_RATE = Decimal("0.30")
ZERO = Decimal("0")
