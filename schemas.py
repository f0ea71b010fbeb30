"""
Database Schemas for the Storefront

Each Pydantic model corresponds to one MongoDB collection.
Collection name is the lowercase of the class name.
"""
from decimal import Decimal
from typing import List, Literal, Optional, get_args

from bson.objectid import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

OrderStatus = Literal["Not Process", "Processing", "Shipped", "Delivered", "Cancelled"]
ORDER_STATUSES = get_args(OrderStatus)

CUSTOMER = 0
ADMIN = 1


class User(BaseModel):
    name: str = Field(..., min_length=1, description="Full name")
    email: EmailStr
    password_hash: str = Field(..., description="bcrypt hash")
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1, description="Security answer for password reset")
    role: Literal[0, 1] = CUSTOMER


class Category(BaseModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)

    @field_validator("slug")
    @classmethod
    def slug_is_lowercase(cls, v: str) -> str:
        return v.lower()


class Photo(BaseModel):
    data: bytes
    content_type: str


class Product(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    category: ObjectId
    quantity: int = Field(..., ge=0)
    shipping: Optional[bool] = None
    photo: Optional[Photo] = None

    @field_validator("price")
    @classmethod
    def at_most_two_decimals(cls, v: float) -> float:
        if Decimal(str(v)).as_tuple().exponent < -2:
            raise ValueError("Price can only have up to 2 decimal places")
        return v


class Order(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    products: List[ObjectId] = Field(..., min_length=1)
    payment: dict
    buyer: ObjectId
    status: OrderStatus = "Not Process"

    @field_validator("payment")
    @classmethod
    def amount_not_negative(cls, v: dict) -> dict:
        amount = v.get("amount", 0)
        if not isinstance(amount, (int, float)) or isinstance(amount, bool):
            raise ValueError("Payment amount must be a number")
        if amount < 0:
            raise ValueError("Payment amount cannot be negative")
        return v
