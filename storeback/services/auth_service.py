import logging
from typing import Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.orm import Session

from storeback.core import security
from storeback.core.config import Settings, settings as default_settings
from storeback.core.exceptions import (
    DuplicateUsername,
    InvalidCredentials,
    NotFound,
    PasswordMismatch,
    ValidationFailed,
)
from storeback.models.user import User
from storeback.schemas.user import ProfileUpdate, UserLogin, UserRegister
from storeback.services.credential_store import CredentialStore
from storeback.services.storage_service import PROFILE_PICTURES, ImagePayload, StorageService


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


class AuthService:
    """Registration, login and the authenticated user's own account"""

    def __init__(self, db: Session, storage: StorageService, settings: Settings = default_settings):
        self.db = db
        self.storage = storage
        self.settings = settings
        self.credentials = CredentialStore(db)

    def issue_token(self, user: User) -> str:
        return security.create_access_token(user, self.settings)

    def register(
        self,
        username: Optional[str],
        password: Optional[str],
        phone_number: Optional[str],
        email: Optional[str],
        photo: Optional[ImagePayload],
    ) -> Tuple[User, str]:
        """Create an account with a mandatory profile photo and return it with a fresh token"""
        try:
            data = UserRegister(
                username=username or "",
                password=password or "",
                phone_number=phone_number or "",
                email=email or "",
            )
        except ValidationError as e:
            raise ValidationFailed.from_pydantic(e, "Username, password, phone number and a valid email are required")

        if photo is None:
            raise ValidationFailed("Profile picture is required")

        # Checked before the photo is written so a taken name leaves no file behind
        if self.credentials.find_by_username(data.username):
            raise DuplicateUsername(f"Username '{data.username}' is already taken")

        picture_path = self.storage.save_payload(photo, PROFILE_PICTURES)
        try:
            user = self.credentials.create(
                data.username,
                data.password,
                phone_number=data.phone_number,
                email=str(data.email),
                profile_picture=picture_path,
                role=self.settings.default_role,
            )
        except Exception:
            self.storage.delete(picture_path)
            raise

        return user, self.issue_token(user)

    def login(self, username: Optional[str], password: Optional[str]) -> str:
        try:
            data = UserLogin(username=username or "", password=password or "")
        except ValidationError as e:
            raise ValidationFailed.from_pydantic(e, "Username and password are required")

        user = self.credentials.find_by_username(data.username)
        if user is None:
            raise NotFound("User not found")
        if not self.credentials.verify_password(user, data.password):
            logging.info(f"Failed login for {user.username}")
            raise InvalidCredentials()

        logging.info(f"User {user.username} logged in")
        return self.issue_token(user)

    def edit_profile(
        self,
        user: User,
        phone_number: Optional[str] = None,
        email: Optional[str] = None,
        old_password: Optional[str] = None,
        new_password: Optional[str] = None,
        photo: Optional[ImagePayload] = None,
    ) -> bool:
        """Apply the supplied profile fields; returns False when nothing was supplied"""
        supplied = {
            key: value
            for key, value in {
                "phone_number": _blank_to_none(phone_number),
                "email": _blank_to_none(email),
                "old_password": _blank_to_none(old_password),
                "new_password": _blank_to_none(new_password),
            }.items()
            if value is not None
        }
        if not supplied and photo is None:
            return False

        try:
            update = ProfileUpdate(**supplied)
        except ValidationError as e:
            raise ValidationFailed.from_pydantic(e, "Profile data validation failed")
        update_dict = update.model_dump(exclude_unset=True)

        if ("old_password" in update_dict) != ("new_password" in update_dict):
            raise ValidationFailed("Both old and new password are required to change the password")
        if "new_password" in update_dict:
            if not self.credentials.verify_password(user, update_dict["old_password"]):
                raise PasswordMismatch()
            self.credentials.set_password(user, update_dict["new_password"])

        if "phone_number" in update_dict:
            user.phone_number = update_dict["phone_number"]
        if "email" in update_dict:
            user.email = str(update_dict["email"])

        old_picture = None
        new_picture = None
        if photo is not None:
            new_picture = self.storage.save_payload(photo, PROFILE_PICTURES)
            old_picture = user.profile_picture
            user.profile_picture = new_picture

        try:
            self.credentials.update(user)
        except Exception:
            self.db.rollback()
            self.storage.delete(new_picture)
            raise

        if old_picture and old_picture != new_picture:
            self.storage.delete(old_picture)

        changed = [key for key in ("phone_number", "email", "new_password") if key in update_dict]
        if photo is not None:
            changed.append("profile_picture")
        logging.info(f"User {user.username} updated profile: {', '.join(changed)}")
        return True

    def replace_profile_picture(self, user: User, photo: Optional[ImagePayload]) -> str:
        if photo is None:
            raise ValidationFailed("Image is required")
        self.edit_profile(user, photo=photo)
        return user.profile_picture

    def delete_account(self, user: User) -> None:
        """Remove the user together with their products and every stored image"""
        files = [product.image for product in user.products]
        files.append(user.profile_picture)

        # Products go with the user through the relationship cascade
        self.credentials.delete(user)

        for path in files:
            self.storage.delete(path)
        logging.info(f"Deleted account {user.username} and {len(files) - 1} product(s)")
