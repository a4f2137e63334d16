import logging
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from storeback.core.exceptions import Forbidden, NotFound, ValidationFailed
from storeback.models.products import Product
from storeback.models.user import User
from storeback.schemas.products import ProductCreate, ProductUpdate
from storeback.services.storage_service import PRODUCT_IMAGES, ImagePayload, StorageService


class ProductService:
    """
    Owner-scoped product CRUD

    Every method takes the authenticated user; reads only ever return that
    user's products and writes on someone else's product raise Forbidden.
    """

    def __init__(self, db: Session, storage: StorageService):
        self.db = db
        self.storage = storage

    def _commit_with_new_image(self, product: Product, new_image: Optional[str]) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            # The record never pointed at the new file, so it would be orphaned
            self.storage.delete(new_image)
            raise
        self.db.refresh(product)

    def _get_for_write(self, owner: User, product_id: int) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFound(f"Product with ID {product_id} not found")
        if product.owner_id != owner.id:
            raise Forbidden(f"Product with ID {product_id} belongs to another user")
        return product

    def create(
        self,
        owner: User,
        name: Optional[str],
        description: Optional[str],
        price: Optional[str],
        image: Optional[ImagePayload],
    ) -> Product:
        try:
            data = ProductCreate(
                name=name or "",
                description=description or "",
                price=price or "",
            )
        except ValidationError as e:
            raise ValidationFailed.from_pydantic(e, "Product data validation failed")

        if image is None:
            raise ValidationFailed("Image is required")

        image_path = self.storage.save_payload(image, PRODUCT_IMAGES)
        product = Product(
            name=data.name,
            description=data.description,
            price=data.price,
            image=image_path,
            owner_id=owner.id,
        )
        self.db.add(product)
        self._commit_with_new_image(product, image_path)

        logging.info(f"Product {product.id} created for user {owner.username}")
        return product

    def list(self, owner: User) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.owner_id == owner.id)
            .order_by(Product.id)
            .all()
        )

    def get(self, owner: User, product_id: int) -> Product:
        product = self.db.query(Product).filter(
            Product.id == product_id,
            Product.owner_id == owner.id
        ).first()
        if not product:
            raise NotFound(f"Product with ID {product_id} not found")
        return product

    def update(
        self,
        owner: User,
        product_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        price: Optional[str] = None,
        image: Optional[ImagePayload] = None,
    ) -> Product:
        """Partial update: fields left as None keep their stored value"""
        product = self._get_for_write(owner, product_id)

        supplied = {
            key: value
            for key, value in {"name": name, "description": description, "price": price}.items()
            if value is not None
        }
        if not supplied and image is None:
            raise ValidationFailed("No fields provided for update")

        try:
            update_dict = ProductUpdate(**supplied).model_dump(exclude_unset=True)
        except ValidationError as e:
            raise ValidationFailed.from_pydantic(e, "Product data validation failed")

        # Update fields
        for key, value in update_dict.items():
            setattr(product, key, value)

        old_image = None
        new_image = None
        if image is not None:
            new_image = self.storage.save_payload(image, PRODUCT_IMAGES)
            old_image = product.image
            product.image = new_image

        self._commit_with_new_image(product, new_image)

        if old_image and old_image != new_image:
            self.storage.delete(old_image)

        logging.info(f"Product {product_id} updated by {owner.username}: {', '.join(sorted(update_dict)) or 'image'}")
        return product

    def delete(self, owner: User, product_id: int) -> None:
        product = self._get_for_write(owner, product_id)

        # Image first, then the record
        self.storage.delete(product.image)
        self.db.delete(product)
        self.db.commit()

        logging.info(f"Product {product_id} deleted by {owner.username}")
