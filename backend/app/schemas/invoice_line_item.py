"""Invoice line item schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class InvoiceLineItemBase(BaseModel):
    description: str = Field(min_length=1)
    quantity: Decimal = Field(ge=0)
    rate: Decimal = Field(ge=0)


class InvoiceLineItemCreate(InvoiceLineItemBase):
    pass


class InvoiceLineItemRead(InvoiceLineItemBase):
    id: int
    invoice_id: int
    amount: Decimal
    position: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
