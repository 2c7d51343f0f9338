import logging
import threading
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, select, update, delete
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .tables import Base, VehicleRow, AccountRow, RentalRow, SettingRow
from ..exceptions import (
    AlreadyRentedError,
    DuplicateAccountError,
    VehicleNotFoundError,
    VehicleUnavailableError,
)
from ..utils.constants import RentalStatus, VehicleState

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///car_rental.db"

# backends that honour the partial unique index on active rentals
SUPPORTED_BACKENDS = ("sqlite", "postgresql")


def _make_engine(url: str, echo: bool = False):
    backend = make_url(url).get_backend_name()
    if backend not in SUPPORTED_BACKENDS:
        raise ValueError(
            f"Unsupported database backend '{backend}', expected one of: {', '.join(SUPPORTED_BACKENDS)}")
    kwargs = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def _as_dict(row) -> Optional[dict]:
    if row is None:
        return None
    return {c.name: getattr(row, c.name) for c in row.__table__.columns}


def _to_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class Store:
    """
    Persistence collaborator for the rental core.

    Methods hand back plain dicts; services turn them into rich models.
    The two check-then-act steps (opening a rental, returning it) are single
    conditional statements inside one transaction each.
    """
    _inst = None
    _inst_lock = threading.Lock()

    def __init__(self, url: Optional[str] = None, echo: bool = False):
        self.url = url or DEFAULT_DATABASE_URL
        self.engine = _make_engine(self.url, echo)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info("[Store] Using database: %s", self.engine.url.render_as_string(hide_password=True))
        Base.metadata.create_all(self.engine)

    # ---------- Singleton ----------
    @classmethod
    def instance(cls, url: Optional[str] = None):
        """Return the global singleton instance of Store."""
        with cls._inst_lock:
            if cls._inst is None:
                cls._inst = Store(url)
        return cls._inst

    @classmethod
    def configure(cls, url: str, echo: bool = False):
        """Replace the singleton, e.g. when the app factory picks a database."""
        with cls._inst_lock:
            if cls._inst is not None:
                cls._inst.engine.dispose()
            cls._inst = Store(url, echo=echo)
        return cls._inst

    @contextmanager
    def session(self):
        """Transaction scope: commit on success, roll back on any error."""
        with self.Session.begin() as s:
            yield s

    def reset(self):
        """Drop and recreate every table."""
        Base.metadata.drop_all(self.engine)
        Base.metadata.create_all(self.engine)

    # ---------- Vehicles ----------
    def create_vehicle(self, data: dict) -> int:
        """Insert a vehicle row and return its generated ID."""
        with self.session() as s:
            row = VehicleRow(
                category=data["category"],
                state=data.get("state") or VehicleState.AVAILABLE,
                daily_rate=None if data.get("daily_rate") is None else str(data["daily_rate"]),
                name=data.get("name"),
            )
            s.add(row)
            s.flush()
            return row.id

    def set_vehicle_name(self, vehicle_id, name: str) -> bool:
        with self.session() as s:
            res = s.execute(update(VehicleRow).where(VehicleRow.id == _to_int(vehicle_id)).values(name=name))
            return res.rowcount > 0

    def get_vehicle(self, vehicle_id) -> Optional[dict]:
        vid = _to_int(vehicle_id)
        if vid is None:
            return None
        with self.session() as s:
            return _as_dict(s.get(VehicleRow, vid))

    def list_vehicles(self, state: Optional[str] = None) -> list:
        with self.session() as s:
            q = select(VehicleRow).order_by(VehicleRow.id)
            if state:
                q = q.where(VehicleRow.state == state)
            return [_as_dict(r) for r in s.scalars(q)]

    def update_vehicle_state(self, vehicle_id, state: str, expected: Optional[str] = None) -> bool:
        """Write the state column; with `expected`, only if the current state matches."""
        with self.session() as s:
            q = update(VehicleRow).where(VehicleRow.id == _to_int(vehicle_id))
            if expected is not None:
                q = q.where(VehicleRow.state == expected)
            res = s.execute(q.values(state=state))
            return res.rowcount > 0

    def delete_vehicle(self, vehicle_id) -> bool:
        with self.session() as s:
            res = s.execute(delete(VehicleRow).where(VehicleRow.id == _to_int(vehicle_id)))
            return res.rowcount > 0

    # ---------- Rentals ----------
    def find_active_rental_by_vehicle(self, vehicle_id) -> Optional[dict]:
        with self.session() as s:
            q = (select(RentalRow)
                 .where(RentalRow.vehicle_id == _to_int(vehicle_id), RentalRow.status == RentalStatus.RENTED)
                 .limit(1))
            return _as_dict(s.scalars(q).first())

    def get_rental(self, rental_id) -> Optional[dict]:
        rid = _to_int(rental_id)
        if rid is None:
            return None
        with self.session() as s:
            return _as_dict(s.get(RentalRow, rid))

    def list_rentals(self, account_id=None, status: Optional[str] = None) -> list:
        """Newest first."""
        with self.session() as s:
            q = select(RentalRow).order_by(RentalRow.id.desc())
            if account_id is not None:
                q = q.where(RentalRow.account_id == _to_int(account_id))
            if status:
                q = q.where(RentalRow.status == status)
            return [_as_dict(r) for r in s.scalars(q)]

    def insert_rental(self, data: dict) -> int:
        """
        Insert an active rental and flip its vehicle to UNAVAILABLE atomically.
        Raises AlreadyRentedError when another active rental holds the vehicle,
        VehicleUnavailableError when the vehicle is not AVAILABLE,
        VehicleNotFoundError when the vehicle row is gone.
        """
        try:
            with self.session() as s:
                if s.get(VehicleRow, _to_int(data.get("vehicle_id"))) is None:
                    raise VehicleNotFoundError(
                        f"Error: vehicle with ID '{data.get('vehicle_id')}' not found")
                row = RentalRow(**data)
                row.status = RentalStatus.RENTED
                s.add(row)
                s.flush()

                res = s.execute(
                    update(VehicleRow)
                    .where(VehicleRow.id == row.vehicle_id, VehicleRow.state == VehicleState.AVAILABLE)
                    .values(state=VehicleState.UNAVAILABLE)
                )
                if res.rowcount == 0:
                    raise VehicleUnavailableError(
                        f"Error: vehicle {row.vehicle_id} is not available")
                return row.id
        except IntegrityError as e:
            # error text differs per driver; an active rental means uq_rentals_active_vehicle fired
            if self.find_active_rental_by_vehicle(data.get("vehicle_id")) is not None:
                raise AlreadyRentedError(
                    f"Error: vehicle {data.get('vehicle_id')} is already rented") from e
            raise

    def mark_returned_if_rented(self, rental_id, penalty, discount, total_fee, end_at,
                                vehicle_id=None) -> int:
        """
        Settle a rental only if it is still RENTED; returns the affected row count.
        When a vehicle id is given it is released in the same transaction.
        """
        with self.session() as s:
            res = s.execute(
                update(RentalRow)
                .where(RentalRow.id == _to_int(rental_id), RentalRow.status == RentalStatus.RENTED)
                .values(
                    status=RentalStatus.RETURNED,
                    end_at=end_at,
                    penalty=penalty,
                    discount=discount,
                    total_fee=total_fee,
                )
            )
            count = res.rowcount
            if count and vehicle_id is not None:
                s.execute(
                    update(VehicleRow)
                    .where(VehicleRow.id == _to_int(vehicle_id))
                    .values(state=VehicleState.AVAILABLE)
                )
            return count

    # ---------- Accounts ----------
    def create_account(self, data: dict) -> int:
        """Create a new account and return its ID."""
        try:
            with self.session() as s:
                row = AccountRow(**data)
                s.add(row)
                s.flush()
                return row.id
        except IntegrityError as e:
            raise DuplicateAccountError(f"Error: login id '{data.get('login_id')}' already exists") from e

    def get_account(self, account_id) -> Optional[dict]:
        aid = _to_int(account_id)
        if aid is None:
            return None
        with self.session() as s:
            return _as_dict(s.get(AccountRow, aid))

    def find_account(self, login_id: str) -> Optional[dict]:
        """Find an account by login id."""
        with self.session() as s:
            q = select(AccountRow).where(AccountRow.login_id == login_id)
            return _as_dict(s.scalars(q).first())

    def find_account_by_phone(self, phone_number: str) -> Optional[dict]:
        with self.session() as s:
            q = select(AccountRow).where(AccountRow.phone_number == phone_number)
            return _as_dict(s.scalars(q).first())

    def update_account(self, account_id, **updates) -> bool:
        """Update account columns; None values are skipped."""
        values = {k: v for k, v in updates.items() if v is not None}
        if not values:
            return False
        with self.session() as s:
            res = s.execute(update(AccountRow).where(AccountRow.id == _to_int(account_id)).values(**values))
            return res.rowcount > 0

    def update_account_tier(self, account_id, tier: str, expected: Optional[str] = None) -> bool:
        with self.session() as s:
            q = update(AccountRow).where(AccountRow.id == _to_int(account_id))
            if expected is not None:
                q = q.where(AccountRow.membership == expected)
            res = s.execute(q.values(membership=tier))
            return res.rowcount > 0

    def delete_account(self, account_id) -> bool:
        with self.session() as s:
            res = s.execute(delete(AccountRow).where(AccountRow.id == _to_int(account_id)))
            return res.rowcount > 0

    # ---------- Settings ----------
    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self.session() as s:
            row = s.get(SettingRow, key)
            return default if row is None or row.value is None else row.value

    def set_setting(self, key: str, value: str) -> None:
        with self.session() as s:
            row = s.get(SettingRow, key)
            if row is None:
                s.add(SettingRow(key=key, value=value))
            else:
                row.value = value
