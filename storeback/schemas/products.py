from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from typing import Optional


class ProductBase(BaseModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Product name (1-100 characters)",
        examples=["Widget", "Smart Phone"]
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Product description (1-500 characters)"
    )
    price: Decimal = Field(
        ...,
        gt=0,
        max_digits=10,
        decimal_places=2,
        description="Product price (must be greater than 0)",
        examples=["9.99", "1499.00"]
    )

    @field_validator('name', 'description')
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        if not v or not v.strip():
            raise ValueError(f'{info.field_name} cannot be empty or whitespace only')
        return v.strip()

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Widget",
                "description": "A very useful widget",
                "price": "9.99"
            }
        }


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    """All fields optional; callers apply model_dump(exclude_unset=True)"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)

    @field_validator('name', 'description')
    @classmethod
    def validate_not_empty(cls, v: Optional[str], info) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError(f'{info.field_name} cannot be empty or whitespace only')
        return v.strip() if v is not None else v


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str
    description: str
    price: Decimal
    image: str
    owner_id: str = Field(..., serialization_alias="ownerId")

    @field_serializer('price')
    def serialize_price(self, price: Decimal) -> float:
        return float(price)
