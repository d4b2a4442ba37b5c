"""Authentication service: password hashing, login and bearer tokens."""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from uuid import UUID

import bcrypt
import jwt
from sqlalchemy.orm import Session

from ...setting import Settings, get_settings
from ..constants import ALL_ROLES, Role
from ..db.models import User
from ..exceptions import AuthenticationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 6

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}


def parse_duration(value: str) -> timedelta:
    """'7d' / '12h' / '30m' / '3600' -> timedelta."""
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _DURATION_UNITS[unit])


class AuthService:
    """Authentication operations bound to one DB session."""

    def __init__(self, db_session: Session):
        self._session = db_session

    # ========== Passwords ==========

    @staticmethod
    def hash_password(password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        if not password or not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    # ========== Tokens ==========

    @staticmethod
    def create_token(user_id: str, expires_in: Optional[str] = None, settings: Optional[Settings] = None) -> str:
        settings = settings or get_settings()
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + parse_duration(expires_in or settings.jwt_expire),
        }
        return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)

    @staticmethod
    def decode_token(token: str, settings: Optional[Settings] = None) -> str:
        """Return the user id carried by ``token``.

        Raises:
            AuthenticationError: expired, tampered or malformed token
        """
        settings = settings or get_settings()
        try:
            payload = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Not authorized, token invalid")

        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Not authorized, token invalid")
        return user_id

    # ========== Users ==========

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        try:
            user_uuid = UUID(str(user_id))
        except ValueError:
            return None
        return self._session.query(User).filter(User.user_id == user_uuid).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._session.query(User).filter(User.email == email).first()

    def login(self, email: str, password: str) -> User:
        if not email or not password:
            raise ValidationError("Please provide email and password")

        user = self.get_user_by_email(email.strip().lower())
        if not user:
            raise AuthenticationError("Email is not registered")

        if not self.verify_password(password, user.password_hash):
            raise AuthenticationError("Incorrect password")

        logger.info(f"User logged in: {user.email}")
        return user

    def register(self, name: str, email: str, password: str, role: Optional[str] = None) -> User:
        email = email.strip().lower()
        role = role or Role.CREW.value
        if role not in ALL_ROLES:
            raise ValidationError("Invalid role")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if self.get_user_by_email(email):
            raise ValidationError("Email already registered")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=self.hash_password(password),
            role=role,
        )
        self._session.add(user)
        self._session.flush()
        logger.info(f"Registered user {user.email} ({role})")
        return user

    def update_profile(self, user_id: str, name: Optional[str] = None, email: Optional[str] = None) -> User:
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError.for_entity("User")

        if email:
            email = email.strip().lower()
            if email != user.email:
                taken = self._session.query(User).filter(
                    User.email == email,
                    User.user_id != user.user_id,
                ).first()
                if taken:
                    raise ValidationError("Email already in use")
                user.email = email
        if name:
            user.name = name.strip()

        self._session.flush()
        return user

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        if not current_password or not new_password:
            raise ValidationError("Please provide current and new password")

        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError.for_entity("User")

        if not self.verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")

        user.password_hash = self.hash_password(new_password)
        logger.info(f"Password changed for user {user_id}")

    @staticmethod
    def build_login_payload(user: User, settings: Optional[Settings] = None) -> Dict:
        from ..serializers import user_to_dict
        return {
            "token": AuthService.create_token(str(user.user_id), settings=settings),
            "user": user_to_dict(user),
        }
