from decimal import Decimal

from sqlalchemy import Column, DateTime, Index, Integer, JSON, String, text
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from ..utils.constants import RentalStatus, VehicleState, Role

Base = declarative_base()


class Money(TypeDecorator):
    """Exact decimal stored as text, so SQLite never turns it into a float."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(str(value)))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class VehicleRow(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category = Column(String(16), nullable=False)
    state = Column(String(16), nullable=False, default=VehicleState.AVAILABLE)
    # raw admin input, parsed leniently by the catalog
    daily_rate = Column(String(32), nullable=True)
    name = Column(String(100), nullable=True)


class AccountRow(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    login_id = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False, default="")
    phone_number = Column(String(30), nullable=False, default="")
    card_number = Column(String(30), nullable=True)
    membership = Column(String(16), nullable=False, default="SILVER")
    role = Column(String(16), nullable=False, default=Role.CUSTOMER)


class RentalRow(Base):
    __tablename__ = "rentals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, nullable=False, index=True)
    vehicle_id = Column(Integer, nullable=False, index=True)
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=False)
    rental_days = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, default=RentalStatus.RENTED)
    fee_policy = Column(String(32), nullable=False, default="BASE")
    membership_tier = Column(String(16), nullable=False, default="SILVER")
    options = Column(JSON, nullable=False, default=list)
    base_fee = Column(Money(32), nullable=False, default=Decimal("0"))
    option_fee = Column(Money(32), nullable=False, default=Decimal("0"))
    discount = Column(Money(32), nullable=False, default=Decimal("0"))
    penalty = Column(Money(32), nullable=False, default=Decimal("0"))
    total_fee = Column(Money(32), nullable=False, default=Decimal("0"))

    __table_args__ = (
        # at most one active rental per vehicle
        Index(
            "uq_rentals_active_vehicle",
            "vehicle_id",
            unique=True,
            sqlite_where=text("status = 'RENTED'"),
            postgresql_where=text("status = 'RENTED'"),
        ),
    )


class SettingRow(Base):
    __tablename__ = "settings"

    key = Column(String(50), primary_key=True)
    value = Column(String(255), nullable=True)
