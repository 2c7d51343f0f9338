from __future__ import annotations

import logging
import re
from typing import Optional, TYPE_CHECKING

from . import common
from .common import account_from_dict
from ..exceptions import (
    AccountNotFoundError,
    AuthenticationError,
    ConflictError,
    DuplicateAccountError,
    InvalidArgumentError,
)
from ..models.account import Account
from ..models.membership import MembershipTier
from ..utils.constants import Role, RentalStatus
from ..utils.security import generate_hash, check_hash

if TYPE_CHECKING:
    from ..models.store import Store  # noqa: F401

logger = logging.getLogger(__name__)

# Compile once at module import
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{6,}$")
LOGIN_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,30}$")
CARD_PATTERN = re.compile(r"^\d{4}-?\d{4}-?\d{4}-?\d{4}$")


def _check_password(password: str, login_id: str) -> None:
    if not PASSWORD_PATTERN.match(password or ""):
        raise InvalidArgumentError("Password must have at least 6 characters, including A-Z, a-z, and 0-9.")
    if password.lower() == (login_id or "").lower():
        raise InvalidArgumentError("Password cannot be the same as the login id.")


class UserService:
    """Account operations: signup, login, profile, card, withdrawal and tier upgrades."""

    @staticmethod
    def signup(login_id: str, password: str, name: str, phone_number: str,
               admin_login_id: str = "admin", store: Optional["Store"] = None) -> Account:
        """
        Create a Silver-tier account. The configured admin login id gets the
        admin role; everybody else is a customer. One account per phone number.
        """
        st = store or common._store()
        login_id = (login_id or "").strip()
        phone_number = (phone_number or "").strip()

        if not LOGIN_ID_PATTERN.match(login_id):
            raise InvalidArgumentError("Login id must be 3-30 chars (letters, digits, ., _, -).")
        _check_password(password, login_id)
        if not phone_number:
            raise InvalidArgumentError("Phone number is required.")

        if st.find_account(login_id):
            raise DuplicateAccountError(f"Error: login id '{login_id}' already exists")
        if st.find_account_by_phone(phone_number):
            raise DuplicateAccountError("Error: an account with this phone number already exists")

        role = Role.ADMIN if login_id == admin_login_id else Role.CUSTOMER
        aid = st.create_account({
            "login_id": login_id,
            "password_hash": generate_hash(password),
            "name": (name or "").strip(),
            "phone_number": phone_number,
            "membership": MembershipTier.SILVER.value,
            "role": role,
        })
        logger.info("Account created: id=%s login_id=%s role=%s", aid, login_id, role)
        return UserService.get_account(aid, store=st)

    @staticmethod
    def login(login_id: str, password: str, store: Optional["Store"] = None) -> Account:
        st = store or common._store()
        row = st.find_account((login_id or "").strip())
        if not row or not check_hash(password or "", row["password_hash"]):
            raise AuthenticationError()
        return account_from_dict(row)

    @staticmethod
    def get_account(account_id, store: Optional["Store"] = None) -> Account:
        """Return an account by ID or raise AccountNotFoundError."""
        st = store or common._store()
        acc = account_from_dict(st.get_account(account_id))
        if acc is None:
            raise AccountNotFoundError(f"Error: account '{account_id}' not found")
        return acc

    @staticmethod
    def find_login_id_by_phone(phone_number: str, store: Optional["Store"] = None) -> str:
        """Account recovery: which login id owns this phone number."""
        st = store or common._store()
        row = st.find_account_by_phone((phone_number or "").strip())
        if not row:
            raise AccountNotFoundError("Error: no account registered with this phone number")
        return row["login_id"]

    @staticmethod
    def update_info(account_id, name: Optional[str] = None, phone_number: Optional[str] = None,
                    password: Optional[str] = None, store: Optional["Store"] = None) -> Account:
        """Blank fields are left unchanged."""
        st = store or common._store()
        acc = UserService.get_account(account_id, store=st)

        updates = {}
        if name and name.strip():
            updates["name"] = name.strip()
        if phone_number and phone_number.strip() and phone_number.strip() != acc.phone_number:
            other = st.find_account_by_phone(phone_number.strip())
            if other and other["id"] != acc.account_id:
                raise DuplicateAccountError("Error: another account already uses this phone number")
            updates["phone_number"] = phone_number.strip()
        if password:
            _check_password(password, acc.login_id)
            updates["password_hash"] = generate_hash(password)

        if updates:
            st.update_account(acc.account_id, **updates)
        return UserService.get_account(acc.account_id, store=st)

    @staticmethod
    def register_card(account_id, card_number: str, store: Optional["Store"] = None) -> Account:
        st = store or common._store()
        acc = UserService.get_account(account_id, store=st)
        card = (card_number or "").strip()
        if not CARD_PATTERN.match(card):
            raise InvalidArgumentError("Card number must be 16 digits (dashes optional).")
        st.update_account(acc.account_id, card_number=card)
        return UserService.get_account(acc.account_id, store=st)

    @staticmethod
    def withdraw(account_id, store: Optional["Store"] = None) -> None:
        """Delete an account that has nothing rented."""
        st = store or common._store()
        acc = UserService.get_account(account_id, store=st)
        if st.list_rentals(account_id=acc.account_id, status=RentalStatus.RENTED):
            raise ConflictError("Error: return every rented vehicle before withdrawing")
        if not st.delete_account(acc.account_id):
            raise AccountNotFoundError(f"Error: account '{account_id}' not found")
        logger.info("Account withdrawn: id=%s login_id=%s", acc.account_id, acc.login_id)

    @staticmethod
    def upgrade_tier(account_id, store: Optional["Store"] = None) -> MembershipTier:
        """
        Move the account one tier up.
        Raises AccountNotFoundError, or AlreadyTopTierError at VIP.
        """
        st = store or common._store()
        row = st.get_account(account_id)
        if not row:
            raise AccountNotFoundError(f"Error: account '{account_id}' not found")
        acc = account_from_dict(row)
        new_tier = acc.tier.next_tier()
        # compare against the raw stored tag, which may be a legacy name
        if not st.update_account_tier(acc.account_id, new_tier.value, expected=row["membership"]):
            # concurrently changed or deleted
            raise AccountNotFoundError(f"Error: account '{account_id}' could not be upgraded")
        logger.info("Account %s upgraded: %s -> %s", acc.login_id, acc.tier.value, new_tier.value)
        return new_tier
