import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from storeback.core.dependencies import get_current_user, get_product_service
from storeback.models.user import User
from storeback.schemas.products import ProductResponse
from storeback.schemas.user import Message
from storeback.services.product_service import ProductService
from storeback.services.storage_service import read_image_payload

router = APIRouter()


@router.get("", response_model=List[ProductResponse])
def get_products(
    current_user: User = Depends(get_current_user),
    products: ProductService = Depends(get_product_service)
):
    """All products owned by the authenticated user, in storage order"""
    logging.info(f"User {current_user.username} fetching products")
    return products.list(current_user)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product_by_id(
    product_id: int,
    current_user: User = Depends(get_current_user),
    products: ProductService = Depends(get_product_service)
):
    logging.info(f"User {current_user.username} fetching product ID {product_id}")
    return products.get(current_user, product_id)


@router.post("", response_model=ProductResponse)
async def add_product(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    image_base64: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    products: ProductService = Depends(get_product_service)
):
    """
    Add a product for the authenticated user

    - name, description: required, non-empty
    - price: required, decimal greater than 0
    - image: required, multipart file or base64 string (image_base64)
    """
    logging.info(f"User {current_user.username} adding product {name!r}")
    payload = await read_image_payload(image, image_base64)
    return products.create(current_user, name, description, price, payload)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    image_base64: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    products: ProductService = Depends(get_product_service)
):
    """
    Update a product by ID - only the owner may do this
    All fields are optional - only provided fields will be updated
    """
    logging.info(f"User {current_user.username} updating product ID {product_id}")
    payload = await read_image_payload(image, image_base64)
    return products.update(current_user, product_id, name, description, price, payload)


@router.delete("/{product_id}", response_model=Message)
def delete_product(
    product_id: int,
    current_user: User = Depends(get_current_user),
    products: ProductService = Depends(get_product_service)
):
    logging.info(f"User {current_user.username} deleting product ID {product_id}")
    products.delete(current_user, product_id)
    return {"message": "Product deleted"}
