from pydantic import BaseModel, Field, ConfigDict, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated

# Cents precision, written to JSON as a plain number
Price = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Base schema exchanging camelCase field names on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductBase(CamelModel):
    """Base schema for Product with common attributes."""
    name: str = Field(..., min_length=1, max_length=50, description="Product name")
    description: str = Field(..., min_length=1, max_length=100, description="Product description")
    price: Price = Field(
        ..., gt=0, max_digits=18, decimal_places=2,
        description="Product price (must be positive, at most two decimals)"
    )
    stock_available: int = Field(..., ge=0, description="Available stock (must be non-negative)")
    category: str = Field(..., min_length=1, max_length=50, description="Product category")


class AddProductRequest(ProductBase):
    """Schema for creating a new product."""
    pass


class UpdateProductRequest(ProductBase):
    """Schema for replacing the editable fields of an existing product."""
    pass


class ProductResponse(ProductBase):
    """Schema for product response including all fields."""
    product_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, value: datetime) -> datetime:
        """Timestamps are stored in UTC; SQLite returns them without an offset."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class StockMessage(BaseModel):
    message: str
