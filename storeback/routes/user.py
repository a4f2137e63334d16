from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import Optional
import logging

from storeback.core.dependencies import get_auth_service, get_current_user
from storeback.models.user import User
from storeback.schemas.user import (
    Message,
    ProfilePictureResponse,
    RegisterResponse,
    Token,
    UserProfile,
)
from storeback.services.auth_service import AuthService
from storeback.services.storage_service import read_image_payload

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_200_OK)
async def register(
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    photo_base64: Optional[str] = Form(None),
    auth: AuthService = Depends(get_auth_service)
):
    """Public endpoint; the profile photo is mandatory (file upload or base64)"""
    logging.info(f"Register request for username {username!r}")
    picture = await read_image_payload(photo, photo_base64)
    user, token = auth.register(username, password, phone, email, picture)
    logging.info(f"User {user.username} registered successfully")
    return {"message": "User registered successfully", "token": token}


@router.post("/login", response_model=Token)
def login(
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    auth: AuthService = Depends(get_auth_service)
):
    logging.info(f"Login attempt for username {username!r}")
    return {"token": auth.login(username, password)}


@router.get("/profile", response_model=UserProfile)
def get_profile(current_user: User = Depends(get_current_user)):
    """Profile of the authenticated user"""
    return current_user


@router.put("/profile", response_model=Message)
async def edit_profile(
    phone: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    old_password: Optional[str] = Form(None),
    new_password: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    photo_base64: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service)
):
    """
    Update the authenticated user's profile - only supplied fields change.
    Changing the password requires both old_password and new_password.
    """
    logging.info(f"User {current_user.username} editing profile")
    picture = await read_image_payload(photo, photo_base64)
    changed = auth.edit_profile(
        current_user,
        phone_number=phone,
        email=email,
        old_password=old_password,
        new_password=new_password,
        photo=picture,
    )
    if not changed:
        return {"message": "No changes"}
    return {"message": "Profile updated"}


@router.post("/profile-picture", response_model=ProfilePictureResponse)
async def upload_profile_picture(
    photo: Optional[UploadFile] = File(None),
    photo_base64: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service)
):
    picture = await read_image_payload(photo, photo_base64)
    path = auth.replace_profile_picture(current_user, picture)
    return {"message": "Profile picture uploaded successfully", "profile_picture": path}


@router.post("/logout", response_model=Message)
def logout(current_user: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards it and it lapses at expiry
    logging.info(f"User {current_user.username} logged out")
    return {"message": "Logged out"}


@router.api_route("/delete", methods=["POST", "DELETE"], response_model=Message)
def delete_account(
    current_user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service)
):
    logging.info(f"User {current_user.username} deleting account")
    auth.delete_account(current_user)
    return {"message": "Account deleted"}
