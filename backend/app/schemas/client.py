"""Client schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

PaymentTerms = Literal["NET_15", "NET_30", "NET_45", "NET_60"]


class ClientBase(BaseModel):
    company: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None
    notes: Optional[str] = None


class ClientCreate(ClientBase):
    name: str = Field(min_length=1)
    default_hourly_rate: Decimal = Field(default=Decimal("0"), ge=0)
    payment_terms: PaymentTerms = "NET_30"


class ClientUpdate(ClientBase):
    name: Optional[str] = Field(default=None, min_length=1)
    default_hourly_rate: Optional[Decimal] = Field(default=None, ge=0)
    payment_terms: Optional[PaymentTerms] = None
    is_archived: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class ClientRead(ClientBase):
    id: int
    owner_id: int
    name: str
    default_hourly_rate: Decimal
    payment_terms: str
    is_archived: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
