"""Local-storage backed authentication.

This only simulates accounts for a single-machine demo. The stored
password surrogate is base64 - a reversible encoding, NOT a hash - so this
module must never be treated as secure credential storage.
"""
import base64
import json
import sqlite3
import time
from typing import Callable, Optional, List, Dict, Any

from config import USERS_KEY, SESSION_KEY
from coach.schemas import User
from services.storage import KeyValueStore, load_json, load_json_list, save_json
from utils.logging_utils import get_logger

logger = get_logger(__name__)


class AuthError(ValueError):
    """Base class for auth failures shown inline on the auth screen."""


class MissingFieldError(AuthError):
    pass


class DuplicateUserError(AuthError):
    pass


class InvalidCredentialsError(AuthError):
    pass


def encode_password(password: str) -> str:
    """Reversible base64 surrogate for the password (not a hash)."""
    return base64.b64encode(password.encode("utf-8")).decode("ascii")


class AuthService:
    """Register/login/logout against a key-value store."""

    def __init__(self, store: KeyValueStore, clock: Callable[[], float] = time.time):
        self.store = store
        self.clock = clock

    def _load_users(self) -> List[Dict[str, Any]]:
        return load_json_list(self.store, USERS_KEY)

    def _start_session(self, record: Dict[str, Any]) -> User:
        user = User.from_dict(record)
        save_json(self.store, SESSION_KEY, user.to_dict())
        return user

    def _generate_user_id(self, users: List[Dict[str, Any]]) -> str:
        # Creation time in ms, bumped until unused
        taken = {str(u.get("id")) for u in users}
        candidate = int(self.clock() * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    def register(self, name: str, email: str, password: str) -> User:
        """
        Create an account and sign it in.

        Raises:
            MissingFieldError: If name, email or password is blank
            DuplicateUserError: If the email is already registered (any case)
        """
        name = (name or "").strip()
        email = (email or "").strip()
        if not name:
            raise MissingFieldError("Name is required")
        if not email:
            raise MissingFieldError("Email is required")
        if not password:
            raise MissingFieldError("Password is required")

        users = self._load_users()
        if any(str(u.get("email", "")).lower() == email.lower() for u in users):
            raise DuplicateUserError("User already exists with this email")

        record = {
            "id": self._generate_user_id(users),
            "name": name,
            "email": email,
            "password_hash": encode_password(password),
        }
        users.append(record)

        try:
            save_json(self.store, USERS_KEY, users)
            user = self._start_session(record)
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to save new user: {str(e)}")
            raise AuthError("Could not save your account. Please try again.") from e

        logger.info(f"Registered user {user.id}")
        return user

    def login(self, email: str, password: str) -> User:
        """
        Sign in with email (case-insensitive) and password.

        Raises:
            InvalidCredentialsError: Unless exactly one stored record matches
        """
        email = (email or "").strip().lower()
        surrogate = encode_password(password or "")
        matches = [
            u for u in self._load_users()
            if str(u.get("email", "")).lower() == email and u.get("password_hash") == surrogate
        ]
        if len(matches) != 1:
            raise InvalidCredentialsError("Invalid email or password")

        try:
            user = self._start_session(matches[0])
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to save session: {str(e)}")
            raise AuthError("Could not sign you in. Please try again.") from e

        logger.info(f"User {user.id} logged in")
        return user

    def logout(self) -> None:
        try:
            self.store.remove_item(SESSION_KEY)
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to clear session: {str(e)}")

    def get_current_user(self) -> Optional[User]:
        """Return the signed-in user, or None if there is no usable session."""
        try:
            data = load_json(self.store, SESSION_KEY)
        except (sqlite3.Error, OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read session: {str(e)}")
            return None
        if not data:
            return None
        try:
            return User.from_dict(data)
        except (KeyError, TypeError) as e:
            logger.warning(f"Ignoring malformed session record: {str(e)}")
            return None
