"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.app.schemas.invoice_line_item import InvoiceLineItemCreate, InvoiceLineItemRead
from backend.app.schemas.time_entry import TimeEntryRead

InvoiceStatus = Literal["DRAFT", "SENT", "PAID", "OVERDUE"]


class InvoiceCreate(BaseModel):
    # client_id and line_items are checked by the invoice service so both
    # omissions produce the same 400 wording as the other create failures.
    client_id: Optional[int] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    line_items: List[InvoiceLineItemCreate] = Field(default_factory=list)
    tax_rate: Optional[Decimal] = Field(default=None, ge=0)
    discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None
    time_entry_ids: List[int] = Field(default_factory=list)


class InvoiceUpdate(BaseModel):
    """Fields a caller may patch. Totals are stored as given, not recomputed."""

    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None
    status: Optional[InvoiceStatus] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0)
    subtotal: Optional[Decimal] = Field(default=None, ge=0)
    tax_amount: Optional[Decimal] = Field(default=None, ge=0)
    discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    total: Optional[Decimal] = None
    payment_date: Optional[date] = None
    payment_amount: Optional[Decimal] = Field(default=None, ge=0)
    payment_notes: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class MarkPaidRequest(BaseModel):
    payment_amount: Decimal = Field(ge=0)
    payment_date: Optional[date] = None
    payment_notes: Optional[str] = None


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    client_id: int
    client_name: Optional[str] = None
    client_company: Optional[str] = None
    invoice_number: str

    invoice_date: date
    due_date: Optional[date]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal

    status: str
    payment_date: Optional[date]
    payment_amount: Optional[Decimal]
    payment_notes: Optional[str]
    notes: Optional[str]

    created_at: datetime
    updated_at: datetime


class InvoiceDetail(InvoiceRead):
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    line_items: List[InvoiceLineItemRead] = Field(default_factory=list)
    time_entries: List[TimeEntryRead] = Field(default_factory=list)


class InvoiceEnvelope(BaseModel):
    message: Optional[str] = None
    invoice: InvoiceDetail


class InvoiceList(BaseModel):
    invoices: List[InvoiceRead]


class NextInvoiceNumber(BaseModel):
    next_number: str


class MessageResponse(BaseModel):
    message: str
