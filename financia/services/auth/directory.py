"""
User Directory

Accounts and the "stay signed in" session pointer, kept in the same
key-value store as the records but under global keys rather than
per-user ones.

The record store and analytics never see this module: they receive an
already resolved User and scope everything to its email.

Passwords are stored only as bcrypt hashes.
"""

from typing import Optional

import bcrypt
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from financia.models.records import new_record_id
from financia.services.storage.interface import KeyValueStore


USERS_KEY = "financia_users"
SESSION_KEY = "financia_session"


class AuthError(Exception):
    """Base exception for account operations."""
    pass


class UserAlreadyExistsError(AuthError):
    """An account with this email is already registered."""
    pass


class InvalidCredentialsError(AuthError):
    """Unknown email or wrong password."""
    pass


class User(BaseModel):
    """A registered account."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(default_factory=new_record_id)
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)
    password_hash: str = Field(..., repr=False)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are case-insensitive; store them lower-cased."""
        v = v.lower()
        if "@" not in v:
            raise ValueError(f"Not an email address: {v}")
        return v

    def check_password(self, password: str) -> bool:
        return bcrypt.checkpw(
            password.encode("utf-8"),
            self.password_hash.encode("utf-8"),
        )


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


class UserDirectory:
    """
    Registration, credential checks and the persisted session pointer.
    """

    def __init__(self, storage: KeyValueStore):
        self._storage = storage

    def _load_users(self) -> list[User]:
        users = []
        stored = self._storage.get(USERS_KEY, default=[])
        if not isinstance(stored, list):
            return []
        for entry in stored:
            try:
                users.append(User.model_validate(entry))
            except ValidationError:
                continue  # Skip malformed accounts
        return users

    def _save_users(self, users: list[User]) -> None:
        self._storage.set(
            USERS_KEY,
            [u.model_dump(mode="json", by_alias=True) for u in users],
        )

    def find_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        for user in self._load_users():
            if user.email == email:
                return user
        return None

    def register(self, name: str, email: str, password: str) -> User:
        """
        Create an account.

        Raises:
            UserAlreadyExistsError: If the email is taken
            ValueError: If name or email are invalid, or password is empty
        """
        if not password:
            raise ValueError("Password must not be empty")
        if self.find_by_email(email) is not None:
            raise UserAlreadyExistsError(f"Email already registered: {email}")

        user = User(name=name, email=email, password_hash=hash_password(password))
        users = self._load_users()
        users.append(user)
        self._save_users(users)
        return user

    def verify(self, email: str, password: str) -> Optional[User]:
        """The account if the credentials match, otherwise None."""
        user = self.find_by_email(email)
        if user is None or not user.check_password(password):
            return None
        return user

    def authenticate(self, email: str, password: str) -> User:
        """
        Like verify(), but raises instead of returning None.

        Raises:
            InvalidCredentialsError: If the credentials do not match
        """
        user = self.verify(email, password)
        if user is None:
            raise InvalidCredentialsError("Incorrect email or password")
        return user

    def rename(self, email: str, name: str) -> Optional[User]:
        """
        Change an account's display name. No-op for unknown emails.

        Raises:
            ValueError: If the new name is blank or too long (nothing is saved)
        """
        users = self._load_users()
        email = email.strip().lower()
        for idx, user in enumerate(users):
            if user.email == email:
                users[idx] = User.model_validate({**user.model_dump(), "name": name})
                self._save_users(users)
                return users[idx]
        return None

    # -------------------------------------------------------------------------
    # Session pointer
    # -------------------------------------------------------------------------

    def start_session(self, user: User) -> None:
        self._storage.set(SESSION_KEY, user.email)

    def current_session(self) -> Optional[User]:
        """The signed-in user, if the stored session still names an account."""
        email = self._storage.get(SESSION_KEY)
        if not isinstance(email, str):
            return None
        return self.find_by_email(email)

    def end_session(self) -> None:
        self._storage.delete(SESSION_KEY)
