"""
Custom exception classes for the car rental service.

Three families mirror how a caller should react:
- ValidationError: bad input, rejected before any state change
- ConflictError: a legitimate state conflict, surface as "try again"
- NotFoundError: an identifier that does not resolve

Controllers map each family to one HTTP status instead of a generic 500.
"""


class RentalAppError(Exception):
    """Base class for every error raised by the rental core."""

    default_message = "Error: rental operation failed"

    def __init__(self, message: str = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ------------------------- validation -------------------------
class ValidationError(RentalAppError):
    default_message = "Error: invalid input"


class InvalidArgumentError(ValidationError):
    """Raised for a non-positive day count or similar malformed argument."""

    default_message = "Error: invalid argument"


class UnknownCategoryError(ValidationError):
    """Raised when a vehicle category string is not SEDAN/SUV/BIKE."""

    default_message = "Error: unknown vehicle category"


# ------------------------- conflicts -------------------------
class ConflictError(RentalAppError):
    default_message = "Error: conflicting state, please try again"


class AlreadyRentedError(ConflictError):
    """Raised when the vehicle already has an active rental."""

    default_message = "Error: vehicle is already rented"


class AlreadyReturnedError(ConflictError):
    """Raised when a rental is not (or no longer) in RENTED status."""

    default_message = "Error: rental has already been returned"


class VehicleUnavailableError(ConflictError):
    """Raised when a vehicle is not AVAILABLE."""

    default_message = "Error: vehicle is not available"


class AlreadyTopTierError(ConflictError):
    """Raised when upgrading an account that is already VIP."""

    default_message = "Error: account is already at the top membership tier"


class DuplicateAccountError(ConflictError):
    default_message = "Error: login id already exists"


# ------------------------- not found -------------------------
class NotFoundError(RentalAppError):
    default_message = "Error: not found"


class VehicleNotFoundError(NotFoundError):
    """Raised when a vehicle ID cannot be found in the system."""

    default_message = "Error: vehicle not found"


class AccountNotFoundError(NotFoundError):
    """Raised when an account ID cannot be found in the system."""

    default_message = "Error: account not found"


class RentalNotFoundError(NotFoundError):
    """Raised when a rental record cannot be found in the system."""

    default_message = "Error: rental not found"


# ------------------------- auth -------------------------
class AuthenticationError(RentalAppError):
    default_message = "Error: invalid credentials"
