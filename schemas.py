"""
Artisan Store Schemas

Each record model below is stored in one in-memory collection (see database.py). The
collection name is the lowercase class name, e.g. class Product -> collection "product".

Python attributes are snake_case; the JSON API speaks camelCase through the aliases
generated by CamelModel. The *In / *Update models validate request payloads before
anything touches the store.
"""
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
SupportStatus = Literal["open", "in-progress", "resolved", "closed"]

SUPPORT_STATUS_ALIASES = {
    "new": "open",
    "in_progress": "in-progress",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _required(value: Optional[str], message: str) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError(message)
    return value.strip() if value is not None else value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Users

class User(CamelModel):
    id: str
    email: str
    password: str = Field(..., description="passlib hash, never returned by the API")
    first_name: str
    last_name: str
    is_admin: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class PublicUser(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    is_admin: bool = False

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            is_admin=user.is_admin,
        )


class RegisterDTO(CamelModel):
    email: EmailStr
    password: str
    first_name: str
    last_name: str

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v

    @field_validator("first_name")
    @classmethod
    def first_name_required(cls, v: str) -> str:
        return _required(v, "First name is required")

    @field_validator("last_name")
    @classmethod
    def last_name_required(cls, v: str) -> str:
        return _required(v, "Last name is required")


class LoginDTO(CamelModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class AuthResponse(CamelModel):
    user: PublicUser
    session_id: str


# Artisans

class ArtisanIn(CamelModel):
    name: str
    bio: str
    location: str
    specialization: str
    experience: str
    story: str
    image: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        return _required(v, "Name is required")


class ArtisanUpdate(CamelModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    specialization: Optional[str] = None
    experience: Optional[str] = None
    story: Optional[str] = None
    image: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return _required(v, "Name is required")


class Artisan(ArtisanIn):
    id: str
    created_at: datetime = Field(default_factory=utcnow)


# Products

class Dimensions(CamelModel):
    length: float = Field(..., gt=0)
    width: float = Field(..., gt=0)
    height: Optional[float] = Field(None, ge=0)
    unit: str = "cm"


class Weight(CamelModel):
    value: float = Field(..., gt=0)
    unit: str = "g"


class ProductIn(CamelModel):
    asin: Optional[str] = Field(None, description="Generated when omitted")
    name: str
    description: str
    original_price: float = Field(..., gt=0)
    discounted_price: Optional[float] = Field(None, ge=0)
    category: str
    material: str
    country_of_origin: str
    artisan_id: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    dimensions: Optional[Dimensions] = None
    weight: Optional[Weight] = None
    in_stock: bool = True
    featured: bool = False

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        return _required(v, "Product name is required")

    @model_validator(mode="after")
    def discount_below_original(self):
        if self.discounted_price is not None and self.discounted_price >= self.original_price:
            raise ValueError("Discounted price must be lower than original price")
        return self


class ProductUpdate(CamelModel):
    asin: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    original_price: Optional[float] = Field(None, gt=0)
    discounted_price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    material: Optional[str] = None
    country_of_origin: Optional[str] = None
    artisan_id: Optional[str] = None
    images: Optional[List[str]] = None
    dimensions: Optional[Dimensions] = None
    weight: Optional[Weight] = None
    in_stock: Optional[bool] = None
    featured: Optional[bool] = None


class Product(ProductIn):
    id: str
    asin: str
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def effective_price(self) -> float:
        if self.discounted_price is not None:
            return self.discounted_price
        return self.original_price


class ProductWithArtisan(Product):
    artisan: Optional[Artisan] = None


class FeaturedDTO(CamelModel):
    featured: bool


class ProductFilters(CamelModel):
    search: Optional[str] = None
    country: Optional[str] = None
    material: Optional[str] = None
    category: Optional[str] = None


# Reviews

class ReviewIn(CamelModel):
    rating: int
    comment: Optional[str] = None

    @field_validator("rating", mode="before")
    @classmethod
    def rating_in_range(cls, v):
        if isinstance(v, bool):
            raise ValueError("Rating must be between 1 and 5")
        try:
            rating = int(v)
        except (TypeError, ValueError):
            raise ValueError("Rating must be between 1 and 5")
        if rating < 1 or rating > 5:
            raise ValueError("Rating must be between 1 and 5")
        return rating

    @field_validator("comment")
    @classmethod
    def blank_comment_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


class Review(CamelModel):
    id: str
    product_id: str
    user_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class ReviewWithUser(Review):
    user_name: str = "Anonymous User"


# Cart

class CartItemIn(CamelModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class CartItemUpdate(CamelModel):
    quantity: int = Field(..., ge=1)


class CartItem(CamelModel):
    id: str
    user_id: str
    product_id: str
    quantity: int = Field(1, ge=1)
    created_at: datetime = Field(default_factory=utcnow)


class CartLine(CartItem):
    product: Optional[ProductWithArtisan] = None


# Addresses

class AddressFields(CamelModel):
    first_name: str
    last_name: str
    street_address: str
    city: str
    state: str
    zip_code: str
    country: str
    phone: Optional[str] = None

    @field_validator("first_name", "last_name", "street_address", "city", "state", "zip_code", "country")
    @classmethod
    def not_blank(cls, v: str, info) -> str:
        return _required(v, f"{to_camel(info.field_name)} is required")


class AddressIn(AddressFields):
    is_default: bool = False


class AddressUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    is_default: Optional[bool] = None


class Address(AddressIn):
    id: str
    user_id: str
    created_at: datetime = Field(default_factory=utcnow)


# Orders

class OrderItem(CamelModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="unit price captured at checkout")


class OrderIn(CamelModel):
    items: List[OrderItem] = Field(default_factory=list, description="Empty -> snapshot the cart")
    total_amount: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None
    shipping_address: Optional[AddressFields] = None
    payment_method: str = "cod"


class Order(CamelModel):
    id: str
    user_id: str
    items: List[OrderItem]
    total_amount: float
    currency: str = "INR"
    status: OrderStatus = "pending"
    tracking_number: Optional[str] = None
    shipping_address: Optional[AddressFields] = None
    payment_method: str = "cod"
    created_at: datetime = Field(default_factory=utcnow)


class OrderStatusDTO(CamelModel):
    status: OrderStatus
    tracking_number: Optional[str] = None


class Customer(CamelModel):
    first_name: str
    last_name: str
    email: str


class OrderWithCustomer(Order):
    customer: Optional[Customer] = None


# Support

class SupportMessageIn(CamelModel):
    name: str = Field(..., validation_alias=AliasChoices("name", "firstName", "first_name"))
    email: EmailStr
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        return _required(v, "Name is required")

    @field_validator("message")
    @classmethod
    def message_required(cls, v: str) -> str:
        return _required(v, "Message is required")


class SupportMessage(CamelModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str
    status: SupportStatus = "open"
    created_at: datetime = Field(default_factory=utcnow)


class SupportStatusDTO(CamelModel):
    status: SupportStatus

    @field_validator("status", mode="before")
    @classmethod
    def normalize_alias(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return SUPPORT_STATUS_ALIASES.get(v, v)
        return v
