"""
User Repository

Operator accounts that can obtain bearer tokens.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

from bookstore.exceptions import UsernameTakenError

from .database import Database
from .models import User


@dataclass
class StoredUser:
    """Data class for user data transfer."""

    id: str
    username: str
    hashed_password: str
    is_active: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, model: User) -> "StoredUser":
        return cls(
            id=model.id,
            username=model.username,
            hashed_password=model.hashed_password,
            is_active=bool(model.is_active),
            created_at=model.created_at,
        )


class UserRepository:
    """Repository for user accounts."""

    def __init__(self, database: Database):
        self.database = database
        self.database.create_tables()

    def create(self, username: str, hashed_password: str) -> StoredUser:
        """
        Create a user.

        Raises:
            UsernameTakenError: username already registered
        """
        with self.database.get_session() as session:
            user = User(
                id=str(uuid.uuid4()),
                username=username,
                hashed_password=hashed_password,
                is_active=True,
            )
            session.add(user)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise UsernameTakenError(username) from e
            session.refresh(user)

            return StoredUser.from_model(user)

    def get_by_username(self, username: str) -> Optional[StoredUser]:
        with self.database.get_session() as session:
            user = session.query(User).filter(User.username == username).first()
            return StoredUser.from_model(user) if user else None

    def is_active(self, username: str) -> bool:
        """True if the user exists and is enabled."""
        user = self.get_by_username(username)
        return bool(user and user.is_active)
