from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from product_api.models.product import INT64_MAX, INT64_MIN, Product, ProductRead


class ProductRequest(BaseModel):
    """Request body for create and update.

    Update is a full replace: omitted fields fall back to their zero values.
    """
    id: Optional[int] = Field(default=None, ge=INT64_MIN, le=INT64_MAX)
    name: str = ""
    price: float = Field(default=0.0, allow_inf_nan=False)
    quantity: int = Field(default=0, ge=INT64_MIN, le=INT64_MAX)

    def to_entity(self, product_id: Optional[int] = None) -> Product:
        return Product(
            id=product_id if product_id is not None else (self.id or None),
            name=self.name,
            price=self.price,
            quantity=self.quantity,
        )


class ProductEnvelope(BaseModel):
    data: ProductRead

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def wrap(cls, product: Product) -> "ProductEnvelope":
        return cls(data=ProductRead.model_validate(product, from_attributes=True))


class ErrorResponse(BaseModel):
    error: str
