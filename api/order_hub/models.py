from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Optional, List, Literal
import re

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from order_hub.db_models import ProductFamily, UnitOfMeasure, OrderType, OrderStatus

EMAIL_RE = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.[A-Za-z]{2,}$")


def _required_text(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _email(value: str) -> str:
    value = (value or "").strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError("invalid email address")
    return value


RequiredText = Annotated[str, AfterValidator(_required_text)]
Email = Annotated[str, AfterValidator(_email)]


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------

class ArticleCreate(BaseModel):
    article_number: RequiredText
    designation: RequiredText
    technology: RequiredText
    product_family: ProductFamily = ProductFamily.bulk_niv2
    unit_price: Decimal = Field(ge=0)
    unit: UnitOfMeasure = UnitOfMeasure.piece
    stock_on_hand: int = Field(default=0, ge=0)


class ArticleUpdate(BaseModel):
    # article_number is immutable; accepted only so a changed value can be rejected
    article_number: Optional[str] = None
    designation: Optional[RequiredText] = None
    technology: Optional[RequiredText] = None
    product_family: Optional[ProductFamily] = None
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    unit: Optional[UnitOfMeasure] = None
    stock_on_hand: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class ArticleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    article_number: str
    designation: str
    technology: str
    product_family: ProductFamily
    unit_price: float
    unit: UnitOfMeasure
    stock_on_hand: int
    stock_reserved: int
    stock_available: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

class Address(BaseModel):
    street: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = "France"


class ClientCreate(BaseModel):
    name: RequiredText
    company: str = ""
    email: Email
    phone: str = ""
    fax: str = ""
    billing_address: Address = Field(default_factory=Address)
    delivery_address: Address = Field(default_factory=Address)
    same_delivery_address: bool = True


class ClientUpdate(BaseModel):
    name: Optional[RequiredText] = None
    company: Optional[str] = None
    email: Optional[Email] = None
    phone: Optional[str] = None
    fax: Optional[str] = None
    billing_address: Optional[Address] = None
    delivery_address: Optional[Address] = None
    same_delivery_address: Optional[bool] = None
    is_active: Optional[bool] = None


class ClientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_number: str
    name: str
    company: str
    email: str
    phone: str
    fax: str
    billing_address: Address
    delivery_address: Address
    same_delivery_address: bool
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ClientBlock(BaseModel):
    """Client data attached to an order when it is read."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_number: str
    name: str
    company: str
    email: str
    phone: str
    billing_address: Address
    delivery_address: Address
    same_delivery_address: bool


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

class OrderLineIn(BaseModel):
    article_id: int
    quantity: int = Field(ge=1)


class OrderCreate(BaseModel):
    client_id: int
    lines: List[OrderLineIn] = Field(min_length=1)
    delivery_date: date
    order_type: OrderType = OrderType.build_to_order
    notes: str = ""
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)


class OrderUpdate(BaseModel):
    client_id: Optional[int] = None
    lines: Optional[List[OrderLineIn]] = Field(default=None, min_length=1)
    delivery_date: Optional[date] = None
    order_type: Optional[OrderType] = None
    notes: Optional[str] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)


class LineConfirmationIn(BaseModel):
    quantity: int = Field(ge=1)


class StatusUpdateIn(BaseModel):
    status: OrderStatus


class OrderFilter(BaseModel):
    search: Optional[str] = None
    status: Optional[Literal["confirmed", "unconfirmed"]] = None


class ConfirmationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    quantity: int
    confirmed_at: datetime


class OrderLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    position: int
    article_id: Optional[int]
    article_number: str
    designation: str
    technology: str
    product_family: str
    unit: str
    unit_price: float
    quantity_ordered: int
    quantity_to_ship: int
    quantity_shipped: int
    quantity_in_preparation: int
    quantity_confirmed: int
    line_total: float
    confirmations: List[ConfirmationOut] = Field(default_factory=list)


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    client_id: int
    client_name: str
    delivery_date: date
    order_type: OrderType
    status: OrderStatus
    is_confirmed: bool
    confirmed_at: Optional[datetime] = None
    notes: str
    tax_rate: float
    amount_pre_tax: float
    amount_tax: float
    amount_total: float
    lines: List[OrderLineOut]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    client: Optional[ClientBlock] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class OrderListOut(BaseModel):
    items: List[OrderOut]
    pagination: Pagination


class ArticleListOut(BaseModel):
    items: List[ArticleOut]
    count: int


class ClientListOut(BaseModel):
    items: List[ClientOut]
    count: int
