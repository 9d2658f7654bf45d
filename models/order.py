"""
Order request models
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

OrderStatus = Literal["pending", "confirmed", "preparing", "ready", "delivered", "cancelled"]


class CustomerInfo(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    table_number: Optional[str] = None
    address: Optional[str] = None
    special_instructions: Optional[str] = None
    order_type: str = "dine-in"


class CartItem(BaseModel):
    id: Optional[str] = None
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(gt=0)
    special_instructions: Optional[str] = None


class CreateOrderRequest(BaseModel):
    restaurant_id: int
    order_number: str = Field(min_length=1)
    customer_info: CustomerInfo
    cart_items: List[CartItem]
    subtotal: Optional[float] = None
    tax_amount: float = 0.0
    delivery_fee: float = 0.0
    total_amount: Optional[float] = None


class UpdateOrderRequest(BaseModel):
    status: OrderStatus
