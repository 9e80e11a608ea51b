"""Pydantic request schemas for the Storefront API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. Range and enum checks here reject bad input
before any command is built.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

CategoryName = Literal["tea", "coffee", "snacks", "pastries", "beverages", "breakfast", "lunch", "dinner"]
UnitName = Literal["piece", "cup", "plate", "serving", "kg", "gram", "liter", "ml"]
SpiceLevelName = Literal["none", "mild", "medium", "hot", "extra-hot"]
OrderStatusName = Literal["pending", "confirmed", "preparing", "ready", "completed", "cancelled"]
OrderTypeName = Literal["dine-in", "takeaway", "delivery"]
PaymentMethodName = Literal["cash", "card", "mobile-banking", "online"]
PaymentStatusName = Literal["pending", "paid", "failed", "refunded", "partial-refund"]


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CustomizationSchema(BaseModel):
    option: str = Field(..., max_length=50)
    value: str = Field(..., max_length=50)
    additional_price: float = Field(0.0, ge=0)


class NutritionalInfoSchema(BaseModel):
    calories: float | None = Field(None, ge=0)
    protein: float | None = Field(None, ge=0)
    carbs: float | None = Field(None, ge=0)
    fat: float | None = Field(None, ge=0)
    sugar: float | None = Field(None, ge=0)


class DeliveryAddressSchema(BaseModel):
    street: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    zip_code: str | None = Field(None, max_length=20)
    landmark: str | None = Field(None, max_length=255)
    delivery_instructions: str | None = Field(None, max_length=500)


class CustomerInfoSchema(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=50)
    email: str | None = Field(None, max_length=254)
    phone: str | None = Field(None, pattern=r"^\+?[1-9]\d{0,15}$")
    address: DeliveryAddressSchema | None = None


# ---------------------------------------------------------------------------
# Product Request Schemas
# ---------------------------------------------------------------------------
class ProductAttributes(BaseModel):
    original_price: float | None = Field(None, ge=0)
    subcategory: str | None = Field(None, max_length=50)
    image: str | None = Field(None, max_length=500)
    images: list[str] | None = None
    in_stock: bool | None = None
    stock_quantity: int | None = Field(None, ge=0)
    unit: UnitName | None = None
    preparation_time: int | None = Field(None, ge=1, le=120)
    ingredients: list[str] | None = None
    nutritional_info: NutritionalInfoSchema | None = None
    tags: list[str] | None = None
    is_vegetarian: bool | None = None
    is_vegan: bool | None = None
    is_gluten_free: bool | None = None
    spice_level: SpiceLevelName | None = None
    is_featured: bool | None = None
    sale_price: float | None = Field(None, ge=0)
    sale_start_date: datetime | None = None
    sale_end_date: datetime | None = None


class CreateProductRequest(ProductAttributes):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Masala Chai",
                    "description": "Spiced milk tea brewed with cardamom and ginger",
                    "price": 3.5,
                    "category": "tea",
                    "stock_quantity": 40,
                    "unit": "cup",
                    "tags": ["spiced", "hot"],
                    "is_vegetarian": True,
                }
            ]
        }
    }

    name: str = Field(..., min_length=2, max_length=100)
    description: str = Field(..., min_length=10, max_length=1000)
    price: float = Field(..., ge=0, le=10000)
    category: CategoryName


class UpdateProductRequest(ProductAttributes):
    name: str | None = Field(None, min_length=2, max_length=100)
    description: str | None = Field(None, min_length=10, max_length=1000)
    price: float | None = Field(None, ge=0, le=10000)
    category: CategoryName | None = None
    is_active: bool | None = None


class AddReviewRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"rating": 5, "comment": "Strong and fragrant"}]}}

    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "quantity": 2,
                    "customizations": [{"option": "sugar", "value": "extra", "additional_price": 0.5}],
                    "notes": "Less ice",
                }
            ]
        }
    }

    product_id: str
    quantity: int = Field(1, ge=1, le=50)
    customizations: list[CustomizationSchema] = Field(default_factory=list)
    notes: str | None = Field(None, max_length=200)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(..., ge=0, le=50)
    customizations: list[CustomizationSchema] = Field(default_factory=list)


class RemoveCartItemRequest(BaseModel):
    customizations: list[CustomizationSchema] = Field(default_factory=list)


class ApplyDiscountRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"code": "TEATIME20", "percentage": 20}]}}

    code: str = Field(..., min_length=1, max_length=50)
    amount: float = Field(0.0, ge=0)
    percentage: float = Field(0.0, ge=0, le=100)


class SetTaxRequest(BaseModel):
    rate: float = Field(..., ge=0, le=100)


class SetDeliveryFeeRequest(BaseModel):
    fee: float = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_type": "delivery",
                    "payment_method": "cash",
                    "customer_info": {
                        "name": "Jane Doe",
                        "phone": "+8801711000000",
                        "address": {"street": "12 Lake Road", "city": "Dhaka"},
                    },
                    "special_instructions": "Ring twice",
                }
            ]
        }
    }

    order_type: OrderTypeName
    payment_method: PaymentMethodName
    customer_info: CustomerInfoSchema = Field(default_factory=CustomerInfoSchema)
    table_number: int | None = Field(None, ge=1, le=100)
    special_instructions: str | None = Field(None, max_length=500)


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatusName
    reason: str | None = Field(None, max_length=500)


class CancelOrderRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class RateOrderRequest(BaseModel):
    score: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=500)


class AddOrderNoteRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=500)


class UpdatePaymentRequest(BaseModel):
    payment_status: PaymentStatusName
    transaction_id: str | None = Field(None, max_length=255)
    gateway: str | None = Field(None, max_length=50)
    refund_amount: float | None = Field(None, ge=0)
