# pulse/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

T = TypeVar("T")

#money goes over the wire as "12.50", never as a float
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: f"{v:.2f}", return_type=str, when_used="json"),
]


# =====================================================
# ENVELOPE
# =====================================================
class Envelope(BaseModel, Generic[T]):
    """Uniform response body: ``{success, data?, message?, error?}``."""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[str] = None


class ListEnvelope(Envelope[T], Generic[T]):
    count: int = 0


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class PagedEnvelope(Envelope[T], Generic[T]):
    pagination: Pagination


def paginate(total: int, limit: int, offset: int) -> Pagination:
    return Pagination(total=total, limit=limit, offset=offset, has_more=offset + limit < total)


# =====================================================
# CATALOG
# =====================================================
class BandOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Money
    color: Optional[str] = None
    material: Optional[str] = None
    stock: int
    featured: bool
    liquid_glass: bool
    image_url: Optional[str] = None
    features: List[str] = []
    compatibilities: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, decimal_places=2)
    color: Optional[str] = None
    material: Optional[str] = None
    stock: int = Field(0, ge=0)
    featured: bool = False
    liquid_glass: bool = False
    image_url: Optional[str] = None
    features: List[str] = []
    compatibilities: List[str] = []


class BandUpdate(BaseModel):
    """Partial update; list fields are replaced wholesale when given."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    color: Optional[str] = None
    material: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    featured: Optional[bool] = None
    liquid_glass: Optional[bool] = None
    image_url: Optional[str] = None
    features: Optional[List[str]] = None
    compatibilities: Optional[List[str]] = None


class WatchOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Money
    stock: int
    sizes: List[str] = []
    colors: List[str] = []
    features: List[str] = []
    image_url: Optional[str] = None
    release_year: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WatchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, decimal_places=2)
    stock: int = Field(0, ge=0)
    sizes: List[str] = []
    colors: List[str] = []
    features: List[str] = []
    image_url: Optional[str] = None
    release_year: Optional[int] = Field(None, ge=2015, le=2100)


class WatchUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    features: Optional[List[str]] = None
    image_url: Optional[str] = None
    release_year: Optional[int] = Field(None, ge=2015, le=2100)


class CompatibilityOut(BaseModel):
    watch: WatchOut
    compatible_bands: Dict[str, List[BandOut]]


class ComparisonRow(BaseModel):
    name: str
    key: str
    type: str


class ComparisonOut(BaseModel):
    watches: List[WatchOut]
    comparison: List[ComparisonRow]


# =====================================================
# CART
# =====================================================
class CartAddIn(BaseModel):
    user_id: Optional[int] = Field(None, gt=0)
    session_id: Optional[str] = Field(None, min_length=1, max_length=255)
    band_id: int = Field(..., gt=0)
    quantity: int = Field(1, description="Quantity to add (must be > 0)")


class CartUpdateIn(BaseModel):
    cart_item_id: int = Field(..., gt=0)
    quantity: int


class CartClearIn(BaseModel):
    cart_id: int = Field(..., gt=0)


class CartMergeIn(BaseModel):
    user_id: int = Field(..., gt=0)
    session_id: str = Field(..., min_length=1, max_length=255)


class CartItemOut(BaseModel):
    id: int
    band_id: int
    quantity: int
    added_at: Optional[datetime] = None
    name: str
    price: Money
    image_url: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    stock: int


class CartOut(BaseModel):
    id: Optional[int] = None
    user_id: Optional[int] = None
    session_id: Optional[str] = None
    items: List[CartItemOut] = []
    total: Money = Decimal("0.00")
    item_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =====================================================
# ORDERS
# =====================================================
class Address(BaseModel):
    """Postal address; unknown keys are kept as-is."""

    full_name: str = Field(..., min_length=1)
    line1: str = Field(..., min_length=1)
    line2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: Optional[str] = None
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class OrderCreate(BaseModel):
    cart_id: int = Field(..., gt=0)
    shipping_address: Address
    billing_address: Optional[Address] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    user_id: Optional[int] = Field(None, gt=0)
    notes: Optional[str] = None


class OrderItemOut(BaseModel):
    id: int
    band_id: int
    quantity: int
    unit_price: Money
    name: str
    image_url: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None


class OrderOut(BaseModel):
    id: int
    order_number: str
    user_id: Optional[int] = None
    status: str
    total_amount: Money
    shipping_address: Dict[str, Any]
    billing_address: Dict[str, Any]
    payment_method: str
    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    admin_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemOut] = []


class OrderSummaryOut(BaseModel):
    id: int
    order_number: str
    user_id: Optional[int] = None
    status: str
    total_amount: Money
    item_count: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderStatusIn(BaseModel):
    status: str
    tracking_number: Optional[str] = Field(None, max_length=100)
    admin_notes: Optional[str] = None


class OrderCancelIn(BaseModel):
    reason: Optional[str] = None


class MonthlyRevenue(BaseModel):
    month: str
    orders: int
    revenue: Money


class OrderStatsOut(BaseModel):
    status_counts: Dict[str, int]
    total_orders: int
    total_revenue: Money
    delivered_revenue: Money
    average_order_value: Money
    recent_orders: List[OrderSummaryOut]
    monthly_revenue: List[MonthlyRevenue]


# =====================================================
# AUTH
# =====================================================
class UserOut(BaseModel):
    id: int
    email: Optional[str] = None
    name: str
    apple_id: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuthOut(BaseModel):
    user: UserOut
    token: str


class RegisterIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    apple_id: Optional[str] = None


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AppleLoginIn(BaseModel):
    apple_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    name: Optional[str] = None


class ProfileUpdateIn(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = None


class ChangePasswordIn(BaseModel):
    current_password: str
    new_password: str


class ForgotPasswordIn(BaseModel):
    email: str


class ResetPasswordIn(BaseModel):
    token: str
    new_password: str


# =====================================================
# CONTACT / NEWSLETTER
# =====================================================
class ContactIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    order_number: Optional[str] = None


class ContactOut(BaseModel):
    id: int
    name: str
    email: str
    subject: Optional[str] = None
    message: str
    order_number: Optional[str] = None
    read_status: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NewsletterIn(BaseModel):
    email: Optional[str] = None


class UnsubscribeIn(BaseModel):
    reason: Optional[str] = None


class SubscriberOut(BaseModel):
    id: int
    email: str
    active: bool
    subscribed_at: datetime
    unsubscribed_at: Optional[datetime] = None
    unsubscribe_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SubscribeOut(BaseModel):
    email: str
    already_subscribed: bool = False


# =====================================================
# ADMIN
# =====================================================
class AdminStatsOut(BaseModel):
    bands: int
    watches: int
    orders: int
    users: int
    subscribers: int
    revenue: Money
    recent_orders: List[OrderSummaryOut]
    recent_contacts: List[ContactOut]
