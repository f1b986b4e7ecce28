"""Shopping list models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ShoppingItemCreate(BaseModel):
    """Fields supplied when adding an entry to the shopping list."""

    name: str = Field(min_length=1, max_length=255)
    quantity: str = Field(default="", max_length=255)
    count: Optional[int] = Field(default=None, ge=0)
    meal_id: Optional[str] = Field(default=None)
    meal_name: Optional[str] = Field(default=None)
    meal_image_url: Optional[str] = Field(default=None)
    checked: bool = Field(default=False)
    kroger_product_id: Optional[str] = Field(default=None)
    product_name: Optional[str] = Field(default=None)
    product_image_url: Optional[str] = Field(default=None)
    product_size: Optional[str] = Field(default=None)
    product_aisle: Optional[str] = Field(default=None)
    price: Optional[float] = Field(default=None, ge=0)
    sold_by: Optional[Literal["WEIGHT", "UNIT"]] = Field(default=None)
    stock_level: Optional[str] = Field(default=None)

    model_config = ConfigDict(frozen=True)


class ShoppingItem(ShoppingItemCreate):
    """Single entry on a user's shopping list, as owned by the remote store."""

    id: str
    created_at: Optional[datetime] = Field(default=None)


class ShoppingItemUpdate(BaseModel):
    """Partial update applied to an existing shopping list entry."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    quantity: Optional[str] = Field(default=None, max_length=255)
    count: Optional[int] = Field(default=None, ge=0)
    checked: Optional[bool] = Field(default=None)
    kroger_product_id: Optional[str] = Field(default=None)
    product_name: Optional[str] = Field(default=None)
    product_image_url: Optional[str] = Field(default=None)
    product_size: Optional[str] = Field(default=None)
    product_aisle: Optional[str] = Field(default=None)
    price: Optional[float] = Field(default=None, ge=0)
    sold_by: Optional[Literal["WEIGHT", "UNIT"]] = Field(default=None)
    stock_level: Optional[str] = Field(default=None)

    model_config = ConfigDict(frozen=True)


__all__ = ["ShoppingItem", "ShoppingItemCreate", "ShoppingItemUpdate"]
