from fastapi import APIRouter

from storeback.schemas.user import Message

router = APIRouter()


@router.get("", response_model=Message)
def ping():
    """Availability probe used by the client before mutating calls"""
    return {"message": "Server is up and running"}
