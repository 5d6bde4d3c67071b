"""
Database Schemas for the Storefront

Each Pydantic model represents a collection in MongoDB.
Collection name is the lowercase of the class name.
Payload models used only by the HTTP layer sit at the bottom.
"""
import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "item"


class UserRole(str, Enum):
    user = "user"
    admin = "admin"
    manager = "manager"


class OrderStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"
    refunded = "refunded"


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    failed = "failed"
    refunded = "refunded"


class PaymentMethod(str, Enum):
    card = "card"
    paypal = "paypal"
    stripe = "stripe"


class ApprovalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None
    country: Optional[str] = "France"


class User(BaseModel):
    firstName: str = Field(..., min_length=2, max_length=50)
    lastName: str = Field(..., min_length=2, max_length=50)
    email: EmailStr = Field(..., description="Email address, stored lower case")
    password: str = Field(..., description="bcrypt hash")
    role: UserRole = UserRole.user
    isEmailVerified: bool = False
    address: Optional[Address] = None
    phoneNumber: Optional[str] = None
    loyaltyPoints: int = Field(0, ge=0)


class Category(BaseModel):
    name: str = Field(..., max_length=50)
    slug: Optional[str] = Field(None, description="URL-safe identifier")
    description: Optional[str] = None
    image: Optional[str] = None
    parent: Optional[str] = Field(None, description="Parent category id")
    isActive: bool = True

    @model_validator(mode="after")
    def _derive_slug(self):
        if not self.slug:
            self.slug = slugify(self.name)
        return self


class Product(BaseModel):
    name: str = Field(..., max_length=100)
    slug: Optional[str] = None
    description: str = ""
    price: float = Field(..., ge=0)
    discountPrice: Optional[float] = Field(None, ge=0)
    images: List[str] = []
    category: str = Field(..., description="Category id")
    stock: int = Field(..., ge=0)
    featured: bool = False
    isOrganic: bool = False
    isVegan: bool = False
    isGlutenFree: bool = False

    @model_validator(mode="after")
    def _check_product(self):
        if not self.slug:
            self.slug = slugify(self.name)
        if self.discountPrice is not None and self.discountPrice >= self.price:
            raise ValueError("discountPrice must be lower than price")
        return self


class Review(BaseModel):
    product: str
    rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., min_length=1, max_length=100)
    comment: str = Field(..., min_length=1)
    # the image limit is enforced by the review workflow, not here
    images: List[str] = []


class OrderLine(BaseModel):
    product: str
    quantity: int = Field(..., ge=1)


class ShippingAddress(BaseModel):
    street: str
    city: str
    postalCode: str
    country: str = "France"


class Order(BaseModel):
    items: List[OrderLine]
    shippingAddress: ShippingAddress
    paymentMethod: PaymentMethod


# ---------- Request payloads ----------

class RegisterRequest(BaseModel):
    firstName: str = Field(..., min_length=2, max_length=50)
    lastName: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=8)


class UpdatePasswordRequest(BaseModel):
    currentPassword: str
    newPassword: str = Field(..., min_length=8)


class ProfileUpdate(BaseModel):
    firstName: Optional[str] = Field(None, min_length=2, max_length=50)
    lastName: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    address: Optional[Address] = None
    phoneNumber: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=50)
    slug: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    parent: Optional[str] = None
    isActive: Optional[bool] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    discountPrice: Optional[float] = Field(None, ge=0)
    images: Optional[List[str]] = None
    category: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    featured: Optional[bool] = None
    isOrganic: Optional[bool] = None
    isVegan: Optional[bool] = None
    isGlutenFree: Optional[bool] = None


class StockUpdate(BaseModel):
    stock: int = Field(..., ge=0)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    comment: Optional[str] = Field(None, min_length=1)
    images: Optional[List[str]] = None


class ReviewApproval(BaseModel):
    isApproved: bool


class StatusChange(BaseModel):
    status: OrderStatus


class PaymentChange(BaseModel):
    paymentStatus: PaymentStatus
    transactionId: Optional[str] = None
