import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storeback.database import Base


def normalize_username(username: str) -> str:
    return username.strip().casefold()


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(50), unique=True, nullable=False)
    # Case-folded copy of username; all lookups go through this column
    normalized_username = Column(String(50), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    phone_number = Column(String(20), nullable=True)
    email = Column(String(100), nullable=True)
    profile_picture = Column(String(255), nullable=False)  # Relative path inside the upload root
    role = Column(String(50), nullable=False, default="user")

    # Audit columns
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    products = relationship(
        "Product",
        back_populates="owner",
        order_by="Product.id",
        cascade="all, delete-orphan",
    )
