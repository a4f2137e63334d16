# package marker for storeback.models

# Import all models to ensure relationships are properly initialized
from storeback.models.user import User
from storeback.models.products import Product

__all__ = [
    "User",
    "Product",
]
