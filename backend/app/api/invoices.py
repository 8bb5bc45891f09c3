"""Invoice routes: numbering preview, creation, lifecycle."""

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_user
from backend.app.models.user import User
from backend.app.schemas.invoice import (
    InvoiceCreate,
    InvoiceEnvelope,
    InvoiceList,
    InvoiceUpdate,
    MarkPaidRequest,
    MessageResponse,
    NextInvoiceNumber,
)
from backend.app.services import invoices as invoice_service
from backend.app.services.invoice_numbers import preview_next_invoice_number

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _detail(db: Session, invoice_id: int, owner_id: int):
    return invoice_service.get_invoice_detail(db, invoice_id, owner_id)


@router.get("/next-number", response_model=NextInvoiceNumber)
def get_next_invoice_number(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return {"next_number": preview_next_invoice_number(db, current_user.id)}


@router.get("", response_model=InvoiceList)
def list_invoices(
    status: str | None = None,
    client_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoices = invoice_service.list_invoices(
        db,
        current_user.id,
        status=status,
        client_id=client_id,
        start_date=start_date,
        end_date=end_date,
    )
    return {"invoices": invoices}


@router.get("/{invoice_id}", response_model=InvoiceEnvelope)
def get_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return {"invoice": _detail(db, invoice_id, current_user.id)}


@router.post("", response_model=InvoiceEnvelope, status_code=status.HTTP_201_CREATED)
def create_invoice(
    invoice_in: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = invoice_service.create_invoice(
        db,
        current_user.id,
        client_id=invoice_in.client_id,
        line_items=invoice_in.line_items,
        invoice_date=invoice_in.invoice_date,
        due_date=invoice_in.due_date,
        tax_rate=invoice_in.tax_rate,
        discount_amount=invoice_in.discount_amount,
        notes=invoice_in.notes,
        time_entry_ids=invoice_in.time_entry_ids,
    )
    return {"message": "Invoice created successfully", "invoice": _detail(db, invoice.id, current_user.id)}


@router.put("/{invoice_id}", response_model=InvoiceEnvelope)
def update_invoice(
    invoice_id: int,
    invoice_in: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice_service.update_invoice(db, invoice_id, current_user.id, invoice_in.model_dump(exclude_unset=True))
    return {"message": "Invoice updated successfully", "invoice": _detail(db, invoice_id, current_user.id)}


@router.delete("/{invoice_id}", response_model=MessageResponse)
def delete_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    invoice_service.delete_invoice(db, invoice_id, current_user.id)
    return {"message": "Invoice deleted successfully."}


@router.put("/{invoice_id}/mark-paid", response_model=InvoiceEnvelope)
def mark_invoice_paid(
    invoice_id: int,
    payment: MarkPaidRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice_service.mark_paid(
        db,
        invoice_id,
        current_user.id,
        payment_amount=payment.payment_amount,
        payment_date=payment.payment_date,
        payment_notes=payment.payment_notes,
    )
    return {"message": "Invoice marked as paid", "invoice": _detail(db, invoice_id, current_user.id)}


@router.post("/{invoice_id}/send", response_model=InvoiceEnvelope)
def send_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    invoice = invoice_service.send_invoice(db, invoice_id, current_user.id)
    return {
        "message": f"Invoice {invoice.invoice_number} dispatched to {invoice.client.email}",
        "invoice": _detail(db, invoice_id, current_user.id),
    }
