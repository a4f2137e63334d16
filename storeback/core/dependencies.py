from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from storeback.core.config import Settings, settings
from storeback.core.exceptions import Unauthorized
from storeback.core.security import decode_token
from storeback.database import get_db
from storeback.models.user import User
from storeback.services.auth_service import AuthService
from storeback.services.credential_store import CredentialStore
from storeback.services.product_service import ProductService
from storeback.services.storage_service import StorageService, get_storage_service

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings() -> Settings:
    return settings


def verify_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    app_settings: Settings = Depends(get_settings)
) -> dict:
    """Decode the bearer token from the Authorization header"""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing bearer token")
    return decode_token(credentials.credentials, app_settings)


def get_current_user(
    token_payload: dict = Depends(verify_access_token),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user from the database.
    Validates the bearer token and returns the User object.
    """
    user_id = token_payload.get("sub")

    user = CredentialStore(db).find_by_id(user_id)
    if not user:
        # Token is well formed but the account has been deleted
        raise Unauthorized("User not found")

    return user


def get_auth_service(
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    app_settings: Settings = Depends(get_settings)
) -> AuthService:
    return AuthService(db, storage, app_settings)


def get_product_service(
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
) -> ProductService:
    return ProductService(db, storage)
