import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models import User
from app.services.exceptions import EmailAlreadyExistsError, InvalidCredentialsError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def create_access_token(user: User, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    payload = {
        "id": user.id,
        "email": user.email,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=JWT_ALGORITHM)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def sign_up(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        school_id: Optional[str] = None,
    ) -> User:
        existing = await self.db.execute(select(User).where(User.email == email))
        if existing.scalar_one_or_none():
            raise EmailAlreadyExistsError("Email already exists")

        user = User(
            email=email,
            password=hash_password(password),
            name=name,
            school_id=school_id,
            role="school",
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent sign-up for the same email
            await self.db.rollback()
            raise EmailAlreadyExistsError("Email already exists") from e
        await self.db.refresh(user)

        logger.info("User signed up", extra={"user_id": user.id})
        return user

    async def login(self, email: str, password: str) -> str:
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user or not verify_password(password, user.password):
            raise InvalidCredentialsError("Invalid credentials")

        return create_access_token(user)

    async def get_user_from_token(self, token: str) -> User:
        try:
            payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[JWT_ALGORITHM])
        except jwt.PyJWTError as e:
            raise InvalidCredentialsError("Please log in to access this endpoint.") from e

        user_id = payload.get("id")
        user = await self.db.get(User, user_id) if user_id else None
        if not user:
            raise InvalidCredentialsError("Please log in to access this endpoint.")
        return user
