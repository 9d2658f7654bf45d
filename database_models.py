from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship

from database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Restaurant(Base):
    """
    A restaurant owned by a dashboard user.
    Currency settings drive how prices are rendered to customers.
    """
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    currency_position = Column(String, nullable=False, default="before")
    tax_rate = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    payment_settings = relationship(
        "PaymentSettings", back_populates="restaurant", uselist=False, lazy="selectin"
    )


class User(Base):
    """
    Dashboard account. created_at is the start of the free trial and is
    never updated after signup.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    role = Column(String, nullable=False, default="owner")
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=True)
    # Set when an upgrade request is completed; None means free trial
    plan_name = Column(String, nullable=True)
    plan_started_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class PaymentSettings(Base):
    """Per-restaurant payment gateway configuration."""
    __tablename__ = "payment_settings"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), unique=True, nullable=False)
    payments_enabled = Column(Boolean, nullable=False, default=False)
    allow_cash = Column(Boolean, nullable=False, default=True)
    test_mode = Column(Boolean, nullable=False, default=True)
    stripe_enabled = Column(Boolean, nullable=False, default=False)
    stripe_public_key = Column(String, nullable=True)
    stripe_secret_key = Column(String, nullable=True)
    paypal_enabled = Column(Boolean, nullable=False, default=False)
    paypal_client_id = Column(String, nullable=True)
    paypal_client_secret = Column(String, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    restaurant = relationship("Restaurant", back_populates="payment_settings")

    @property
    def stripe_ready(self) -> bool:
        return bool(self.stripe_enabled and self.stripe_secret_key)

    @property
    def paypal_ready(self) -> bool:
        return bool(self.paypal_enabled and self.paypal_client_id and self.paypal_client_secret)


class Category(Base):
    """Menu section. Deleting a category deletes its items."""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    items = relationship(
        "MenuItem", back_populates="category", cascade="all, delete-orphan", lazy="selectin"
    )


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    image_url = Column(String, nullable=True)
    allergens = Column(JSON, nullable=True)
    dietary_info = Column(JSON, nullable=True)
    ingredients = Column(JSON, nullable=True)
    preparation_time = Column(Integer, nullable=True)  # minutes
    is_available = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    category = relationship("Category", back_populates="items")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    order_number = Column(String, nullable=False)
    customer_name = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)
    customer_table_number = Column(String, nullable=True)
    customer_address = Column(String, nullable=True)
    special_instructions = Column(Text, nullable=True)
    order_type = Column(String, nullable=False, default="dine-in")
    status = Column(String, nullable=False, default="pending")
    payment_status = Column(String, nullable=False, default="unpaid")
    payment_method = Column(String, nullable=True)
    payment_reference = Column(String, nullable=True)
    subtotal = Column(Float, nullable=False, default=0.0)
    tax_amount = Column(Float, nullable=False, default=0.0)
    delivery_fee = Column(Float, nullable=False, default=0.0)
    total_amount = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", lazy="selectin"
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(String, nullable=True)
    name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Float, nullable=False)
    total_price = Column(Float, nullable=False)
    special_instructions = Column(Text, nullable=True)

    order = relationship("Order", back_populates="items")


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String, nullable=False)
    party_size = Column(Integer, nullable=False)
    reservation_date = Column(Date, nullable=False)
    reservation_time = Column(Time, nullable=False)
    special_requests = Column(Text, nullable=True)
    table_preference = Column(String, nullable=True)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class UpgradeRequest(Base):
    __tablename__ = "upgrade_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user_email = Column(String, nullable=False, index=True)
    current_plan = Column(String, nullable=True)
    requested_plan = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="pending")
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    processed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
