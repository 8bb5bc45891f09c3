"""User schemas used for registration, profile and responses."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    business_name: Optional[str] = None


class UserRead(BaseModel):
    id: int
    email: EmailStr

    model_config = ConfigDict(from_attributes=True)


class UserProfileBase(BaseModel):
    business_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None
    default_hourly_rate: Optional[Decimal] = Field(default=None, ge=0)
    default_tax_rate: Optional[Decimal] = Field(default=None, ge=0)
    invoice_prefix: Optional[str] = Field(default=None, min_length=1, max_length=20)
    payment_instructions: Optional[str] = None
    terms_conditions: Optional[str] = None


class UserProfileUpdate(UserProfileBase):
    # invoice_next_number is advanced only by the invoice number allocator
    model_config = ConfigDict(extra="forbid")


class UserProfileRead(UserProfileBase):
    id: int
    email: EmailStr
    invoice_next_number: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
