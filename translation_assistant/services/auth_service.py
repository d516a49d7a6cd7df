"""
Authentication Service
======================
Password hashing, JWT issuance/verification and account operations.
"""
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

import jwt
from werkzeug.security import generate_password_hash, check_password_hash

from translation_assistant.config import config
from translation_assistant.database.repositories import UserRepository
from translation_assistant.models.user import User, UserPreferences
from translation_assistant.utils.logging import get_logger


class AccountError(Exception):
    """Account operation rejected; carries the HTTP status to answer with."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateAccountError(AccountError):
    status_code = 400


class InvalidCredentialsError(AccountError):
    status_code = 401


class UserNotFoundError(AccountError):
    status_code = 404


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    return check_password_hash(password_hash, password)


def issue_token(user: User, now: datetime = None) -> str:
    """Sign a bearer token for a user."""
    now = now or datetime.now(timezone.utc)
    payload = {
        'userId': str(user.id),
        'email': user.email,
        'username': user.username,
        'iat': now,
        'exp': now + timedelta(days=config.jwt.expires_in_days),
    }
    return jwt.encode(payload, config.jwt.secret, algorithm=config.jwt.algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Verify a bearer token and return its claims.

    Raises:
        jwt.ExpiredSignatureError: token is past its expiry
        jwt.InvalidTokenError: token is malformed or has a bad signature
    """
    return jwt.decode(
        token,
        config.jwt.secret,
        algorithms=[config.jwt.algorithm],
        options={'require': ['exp', 'iat']}
    )


class AuthService:
    """Registration, login and password management."""

    def __init__(self, users: UserRepository = None):
        self.users = users or UserRepository()
        self.logger = get_logger().auth_logger

    def register(self, email: str, username: str, password: str) -> Tuple[User, str]:
        """Create an account and return it with a fresh token."""
        existing = self.users.find_conflict(email=email, username=username)
        if existing:
            if existing.email == email:
                raise DuplicateAccountError("Email is already registered")
            raise DuplicateAccountError("Username is already taken")

        try:
            user = self.users.create(
                email=email,
                username=username,
                password_hash=hash_password(password),
                preferences=UserPreferences()
            )
        except sqlite3.IntegrityError:
            raise DuplicateAccountError("Email or username is already registered")

        self.logger.info(f"New user registered successfully: {email}")
        return user, issue_token(user)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """Check credentials and return the user with a fresh token."""
        user = self.users.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            self.logger.warning(f"Failed login attempt for {email}")
            raise InvalidCredentialsError("Invalid email or password")

        self.users.touch_last_login(user.id)
        user = self.users.get_by_id(user.id)

        self.logger.info(f"User logged in successfully: {email}")
        return user, issue_token(user)

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        user = self.users.get_by_id(user_id)
        if not user:
            raise UserNotFoundError("User not found")

        if not verify_password(current_password, user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")

        self.users.update_password(user_id, hash_password(new_password))
        self.logger.info(f"User changed password successfully: {user.email}")

    def check_password(self, user_id: int, password: str) -> User:
        """Return the user if the password matches, else raise."""
        user = self.users.get_by_id(user_id)
        if not user:
            raise UserNotFoundError("User not found")
        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Incorrect password")
        return user
