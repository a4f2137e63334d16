from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional


class UserLogin(BaseModel):
    username: str = Field(..., min_length=1, max_length=50, description="Username")
    password: str = Field(..., min_length=1, description="User password")

    class Config:
        json_schema_extra = {
            "example": {
                "username": "alice",
                "password": "pw123"
            }
        }


class UserRegister(BaseModel):
    username: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Username (1-50 characters, unique regardless of case)"
    )
    password: str = Field(..., min_length=1, description="Password (required)")
    phone_number: str = Field(..., min_length=1, max_length=20, description="Phone number (required, max 20 characters)")
    email: EmailStr = Field(..., description="Email address (required)")

    @field_validator('username', 'phone_number')
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        if not v or not v.strip():
            raise ValueError(f'{info.field_name} cannot be empty or whitespace only')
        return v.strip()

    class Config:
        json_schema_extra = {
            "example": {
                "username": "alice",
                "password": "pw123",
                "phone_number": "555",
                "email": "a@x.com"
            }
        }


class ProfileUpdate(BaseModel):
    """Profile edit; every field is optional and only supplied ones change"""
    phone_number: Optional[str] = Field(None, min_length=1, max_length=20)
    email: Optional[EmailStr] = None
    old_password: Optional[str] = None
    new_password: Optional[str] = Field(None, min_length=1)


class UserProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    username: str = Field(..., serialization_alias="userName")
    profile_picture: Optional[str] = Field(None, serialization_alias="profilePicture")
    phone_number: Optional[str] = Field(None, serialization_alias="phoneNumber")
    email: Optional[str] = None


class Message(BaseModel):
    message: str


class RegisterResponse(Message):
    token: str


class Token(BaseModel):
    token: str


class ProfilePictureResponse(Message):
    profile_picture: str = Field(..., serialization_alias="profilePicture")
