# pulse/services/auth_service.py
"""
Account use cases: registration, password and federated (Apple) login,
bearer token verification, password reset and profile management.

Tokens are HS256 JWTs signed with ``JWT_SECRET``. A password reset token
carries ``purpose = "password_reset"`` and is never accepted as a bearer
token.
"""
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import jwt
from sqlalchemy.orm import Session

from pulse.data.database import unit_of_work
from pulse.data.models.user import UserModel
from pulse.domain.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from pulse.repos.user_repo import UserRepo
from pulse.services.notification_service import NotificationService
from pulse.utils.logging import get_logger
from pulse.utils.security import (
    MAX_PASSWORD_BYTES,
    PASSWORD_RESET_PURPOSE,
    create_access_token,
    create_reset_token,
    decode_token,
    hash_password,
    password_too_long,
    verify_password,
)

logger = get_logger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8
DEFAULT_FEDERATED_NAME = "Apple User"
RESET_REQUESTED_MESSAGE = "If an account exists with this email, you will receive a password reset link"


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _check_new_password(password: str, label: str = "Password") -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"{label} must be at least {MIN_PASSWORD_LENGTH} characters")
    if password_too_long(password):
        raise ValidationError(f"{label} must be at most {MAX_PASSWORD_BYTES} bytes")


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepo(db)
        self.notification_service = NotificationService()

    #tokens
    def _issue_token(self, user: UserModel) -> str:
        claims: Dict[str, Any] = {"user_id": user.id, "email": user.email, "name": user.name}
        if user.apple_id:
            claims["apple_id"] = user.apple_id
        return create_access_token(claims)

    def verify_token(self, token: Optional[str]) -> Dict[str, Any]:
        if not token:
            raise UnauthorizedError("Access token required")

        try:
            claims = decode_token(token)
        except jwt.PyJWTError as e:
            logger.warning(f"Rejected bearer token: {e}")
            raise ForbiddenError("Invalid or expired token")

        #reset tokens only work on the reset endpoint
        if claims.get("purpose") or "user_id" not in claims:
            raise ForbiddenError("Invalid or expired token")
        return claims

    #registration / login
    def register(
        self,
        email: Optional[str],
        password: Optional[str],
        name: Optional[str],
        apple_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not email or not password or not name:
            raise ValidationError("Email, password, and name are required")
        if not is_valid_email(email):
            raise ValidationError("Invalid email address")
        _check_new_password(password)

        email = _normalize_email(email)

        with unit_of_work(self.db):
            if self.repo.get_by_email(email):
                raise ConflictError("User already exists")
            if apple_id and self.repo.get_by_apple_id(apple_id):
                raise ConflictError("User already exists")

            user = self.repo.create_user(
                UserModel(
                    email=email,
                    password_hash=hash_password(password),
                    name=name.strip(),
                    apple_id=apple_id,
                )
            )

        logger.info(f"User {user.id} registered")
        return {"user": user, "token": self._issue_token(user)}

    def login(self, email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self.repo.get_by_email(_normalize_email(email))

        #same answer for every failure so accounts cannot be enumerated
        if not user or not user.active or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {email}")
            raise UnauthorizedError("Invalid credentials")

        with unit_of_work(self.db):
            user.last_login = datetime.now(timezone.utc)

        logger.info(f"User {user.id} logged in")
        return {"user": user, "token": self._issue_token(user)}

    def login_with_federated_id(
        self,
        provider_id: Optional[str],
        email: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not provider_id:
            raise ValidationError("Apple ID is required")

        with unit_of_work(self.db):
            user = self.repo.get_by_apple_id(provider_id)
            if user and not user.active:
                raise UnauthorizedError("Invalid credentials")

            if not user:
                if email and is_valid_email(email) and self.repo.get_by_email(_normalize_email(email)):
                    raise ConflictError("Email already in use")
                user = self.repo.create_user(
                    UserModel(
                        email=_normalize_email(email) if email else None,
                        name=name or DEFAULT_FEDERATED_NAME,
                        apple_id=provider_id,
                    )
                )
                logger.info(f"User {user.id} created from Apple sign-in")

            user.last_login = datetime.now(timezone.utc)

        return {"user": user, "token": self._issue_token(user)}

    #password reset
    def request_password_reset(self, email: Optional[str]) -> str:
        """Always the same message, whether or not the address is registered."""
        if not is_valid_email(email):
            raise ValidationError("Valid email address is required")

        user = self.repo.get_by_email(_normalize_email(email))
        if user and user.active and user.password_hash:
            token = create_reset_token(user.id, user.email)
            self.notification_service.send_password_reset(user.email, user.name, token)
            logger.info(f"Password reset requested for user {user.id}")
        else:
            logger.info("Password reset requested for unknown or inactive account")

        return RESET_REQUESTED_MESSAGE

    def reset_password(self, token: Optional[str], new_password: Optional[str]) -> None:
        if not token or not new_password:
            raise ValidationError("Token and new password are required")
        _check_new_password(new_password)

        try:
            claims = decode_token(token)
        except jwt.ExpiredSignatureError:
            raise ValidationError("Reset token has expired")
        except jwt.PyJWTError:
            raise ValidationError("Invalid token")

        if claims.get("purpose") != PASSWORD_RESET_PURPOSE:
            raise ValidationError("Invalid token")

        with unit_of_work(self.db):
            user = self.repo.get_user(claims.get("user_id"))
            if not user or not user.active:
                raise ValidationError("Invalid token")
            user.password_hash = hash_password(new_password)

        logger.info(f"Password reset for user {user.id}")

    def change_password(self, user_id: int, current_password: Optional[str], new_password: Optional[str]) -> None:
        if not current_password or not new_password:
            raise ValidationError("Current and new password are required")
        _check_new_password(new_password, "New password")

        with unit_of_work(self.db):
            user = self._get_active_user(user_id)
            if not verify_password(current_password, user.password_hash):
                raise UnauthorizedError("Current password is incorrect")
            user.password_hash = hash_password(new_password)

        logger.info(f"Password changed for user {user_id}")

    #profile
    def _get_active_user(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user or not user.active:
            raise NotFoundError("User not found")
        return user

    def get_profile(self, user_id: int) -> UserModel:
        return self._get_active_user(user_id)

    def update_profile(self, user_id: int, name: Optional[str] = None, email: Optional[str] = None) -> UserModel:
        if name is None and email is None:
            raise ValidationError("No fields to update")

        with unit_of_work(self.db):
            user = self._get_active_user(user_id)

            if email is not None:
                if not is_valid_email(email):
                    raise ValidationError("Invalid email address")
                email = _normalize_email(email)
                owner = self.repo.get_by_email(email)
                if owner and owner.id != user.id:
                    raise ConflictError("Email already in use")
                user.email = email

            if name is not None:
                user.name = name.strip()

        logger.info(f"Profile updated for user {user_id}")
        return user

    def deactivate_account(self, user_id: int) -> None:
        with unit_of_work(self.db):
            user = self._get_active_user(user_id)
            user.active = False

        logger.info(f"User {user_id} deactivated")
