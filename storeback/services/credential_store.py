import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storeback.core import security
from storeback.core.exceptions import DuplicateUsername, ValidationFailed
from storeback.models.user import User, normalize_username


class CredentialStore:
    """User records plus salted password hashes (argon2 through passlib)"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_username(self, username: str) -> Optional[User]:
        if not username:
            return None
        return self.db.query(User).filter(
            User.normalized_username == normalize_username(username)
        ).first()

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def create(self, username: str, password: str, **profile) -> User:
        """Hash the password and persist a new user; profile holds the remaining columns"""
        if not username or not username.strip() or not password:
            raise ValidationFailed("Username and password are required")

        if self.find_by_username(username):
            raise DuplicateUsername(f"Username '{username}' is already taken")

        user = User(
            username=username.strip(),
            normalized_username=normalize_username(username),
            hashed_password=security.hash_password(password),
            **profile
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Another request registered the same name between check and commit
            self.db.rollback()
            raise DuplicateUsername(f"Username '{username}' is already taken")
        self.db.refresh(user)
        logging.info(f"Created user {user.username} ({user.id})")
        return user

    def verify_password(self, user: User, password: str) -> bool:
        if not password:
            return False
        return security.verify_password(password, user.hashed_password)

    def verify(self, username: str, password: str) -> bool:
        user = self.find_by_username(username)
        return user is not None and self.verify_password(user, password)

    def set_password(self, user: User, password: str) -> None:
        user.hashed_password = security.hash_password(password)

    def update(self, user: User) -> User:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, user: User) -> None:
        self.db.delete(user)
        self.db.commit()
