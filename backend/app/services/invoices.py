"""Invoice creation and lifecycle services.

Creation and deletion each run as a single transaction on the caller's
session. The invoice side owns both directions of the time entry billing
link: ``create_invoice`` is the only code that marks entries billed and
``delete_invoice`` is the only code that unbills them.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from backend.app.core.errors import AppError, InvalidOperationError, NotFoundError, ValidationError
from backend.app.core.time import utc_today
from backend.app.models.client import Client
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_line_item import InvoiceLineItem
from backend.app.models.project import Project
from backend.app.models.time_entry import TimeEntry
from backend.app.services.billing import compute_totals, item_field, line_amount, to_quantity, to_rate
from backend.app.services.invoice_numbers import allocate_invoice_number

logger = logging.getLogger(__name__)

NON_NULLABLE_FIELDS = {"invoice_date", "status", "subtotal", "tax_rate", "tax_amount", "discount_amount", "total"}


def _validate_create_request(client_id: Optional[int], line_items: Sequence[Any]) -> None:
    if client_id is None:
        raise ValidationError("Client is required.")
    if not line_items:
        raise ValidationError("At least one line item is required.")
    missing = [
        f"line_items.{index}.description"
        for index, item in enumerate(line_items)
        if not str(item_field(item, "description") or "").strip()
    ]
    if missing:
        raise ValidationError(f"Invalid input: {', '.join(missing)}")


def _get_owned_client(db: Session, client_id: int, owner_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id, Client.owner_id == owner_id).first()
    if not client:
        raise NotFoundError("Client not found.")
    return client


def get_owned_invoice(db: Session, invoice_id: int, owner_id: int) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id, Invoice.owner_id == owner_id).first()
    if not invoice:
        raise NotFoundError("Invoice not found.")
    return invoice


def get_invoice_detail(db: Session, invoice_id: int, owner_id: int) -> Invoice:
    """Invoice with client, line items and billed time entries loaded."""
    invoice = (
        db.query(Invoice)
        .options(
            selectinload(Invoice.client),
            selectinload(Invoice.line_items),
            selectinload(Invoice.time_entries).selectinload(TimeEntry.project).selectinload(Project.client),
        )
        .filter(Invoice.id == invoice_id, Invoice.owner_id == owner_id)
        .first()
    )
    if not invoice:
        raise NotFoundError("Invoice not found.")
    return invoice


def create_invoice(
    db: Session,
    owner_id: int,
    client_id: Optional[int],
    line_items: Sequence[Any],
    invoice_date: Optional[date] = None,
    due_date: Optional[date] = None,
    tax_rate: Any = None,
    discount_amount: Any = None,
    notes: Optional[str] = None,
    time_entry_ids: Iterable[int] = (),
) -> Invoice:
    """Create a DRAFT invoice, its line items, and bill the given time entries.

    Time entry ids that belong to another user or are already billed are
    skipped without error. Any failure rolls back the whole unit, including
    the invoice number increment.
    """
    _validate_create_request(client_id, line_items)
    entry_ids = sorted({int(entry_id) for entry_id in time_entry_ids or ()})

    try:
        _get_owned_client(db, client_id, owner_id)
        number = allocate_invoice_number(db, owner_id)
        totals = compute_totals(line_items, tax_rate, discount_amount)

        invoice = Invoice(
            owner_id=owner_id,
            client_id=client_id,
            invoice_number=number.formatted,
            invoice_date=invoice_date or utc_today(),
            due_date=due_date,
            subtotal=totals.subtotal,
            tax_rate=totals.tax_rate,
            tax_amount=totals.tax_amount,
            discount_amount=totals.discount_amount,
            total=totals.total,
            notes=notes,
            status="DRAFT",
        )
        db.add(invoice)
        db.flush()  # obtain invoice id for line items and time entries

        for position, item in enumerate(line_items):
            quantity = to_quantity(item_field(item, "quantity"))
            rate = to_rate(item_field(item, "rate"))
            db.add(
                InvoiceLineItem(
                    invoice_id=invoice.id,
                    description=str(item_field(item, "description")).strip(),
                    quantity=quantity,
                    rate=rate,
                    amount=line_amount(quantity, rate),
                    position=position,
                )
            )

        billed = 0
        if entry_ids:
            billed = (
                db.query(TimeEntry)
                .filter(
                    TimeEntry.id.in_(entry_ids),
                    TimeEntry.owner_id == owner_id,
                    TimeEntry.is_billed.is_(False),
                )
                .update({TimeEntry.is_billed: True, TimeEntry.invoice_id: invoice.id}, synchronize_session=False)
            )

        db.commit()
    except AppError:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception("Invoice creation failed for user %s; transaction rolled back", owner_id)
        raise

    db.refresh(invoice)
    logger.info(
        "Invoice %s (id=%s) created for user %s with %s billed time entries",
        invoice.invoice_number,
        invoice.id,
        owner_id,
        billed,
    )
    return invoice


def sweep_overdue(db: Session, owner_id: int, today: Optional[date] = None) -> int:
    """Flip the user's SENT invoices whose due date has passed to OVERDUE."""
    cutoff = today or utc_today()
    flipped = (
        db.query(Invoice)
        .filter(
            Invoice.owner_id == owner_id,
            Invoice.status == "SENT",
            Invoice.due_date.isnot(None),
            Invoice.due_date < cutoff,
        )
        .update({Invoice.status: "OVERDUE"}, synchronize_session=False)
    )
    db.commit()
    if flipped:
        logger.info("Marked %s invoices overdue for user %s", flipped, owner_id)
    return flipped


def list_invoices(
    db: Session,
    owner_id: int,
    status: Optional[str] = None,
    client_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[Invoice]:
    """List the user's invoices, running the overdue sweep first."""
    sweep_overdue(db, owner_id)

    query = db.query(Invoice).options(selectinload(Invoice.client)).filter(Invoice.owner_id == owner_id)
    if status:
        query = query.filter(Invoice.status == status.upper())
    if client_id is not None:
        query = query.filter(Invoice.client_id == client_id)
    if start_date is not None:
        query = query.filter(Invoice.invoice_date >= start_date)
    if end_date is not None:
        query = query.filter(Invoice.invoice_date <= end_date)
    return query.order_by(Invoice.invoice_date.desc(), Invoice.created_at.desc(), Invoice.id.desc()).all()


def update_invoice(db: Session, invoice_id: int, owner_id: int, changes: dict) -> Invoice:
    """Apply a field patch as given; financial fields are not recomputed."""
    if not changes:
        raise ValidationError("No fields to update.")
    nulled = sorted(field for field, value in changes.items() if value is None and field in NON_NULLABLE_FIELDS)
    if nulled:
        raise ValidationError(f"Invalid input: {', '.join(nulled)}")

    invoice = get_owned_invoice(db, invoice_id, owner_id)
    for field, value in changes.items():
        setattr(invoice, field, value)
    db.commit()
    db.refresh(invoice)
    return invoice


def mark_paid(
    db: Session,
    invoice_id: int,
    owner_id: int,
    payment_amount: Decimal,
    payment_date: Optional[date] = None,
    payment_notes: Optional[str] = None,
) -> Invoice:
    """Record a payment and set the invoice PAID.

    The amount is stored as given; under- and overpayments are accepted.
    """
    invoice = get_owned_invoice(db, invoice_id, owner_id)
    invoice.status = "PAID"
    invoice.payment_date = payment_date or utc_today()
    invoice.payment_amount = payment_amount
    invoice.payment_notes = payment_notes
    db.commit()
    db.refresh(invoice)
    logger.info("Invoice %s marked paid (%s) by user %s", invoice.invoice_number, payment_amount, owner_id)
    return invoice


def send_invoice(db: Session, invoice_id: int, owner_id: int) -> Invoice:
    """Move a DRAFT invoice to SENT. Invoices in other states are left as they are."""
    invoice = get_owned_invoice(db, invoice_id, owner_id)
    if not invoice.client or not invoice.client.email:
        raise InvalidOperationError("Client email is required to send invoice.")
    if invoice.status == "DRAFT":
        invoice.status = "SENT"
        db.commit()
        db.refresh(invoice)
    logger.info("Invoice %s dispatched to %s", invoice.invoice_number, invoice.client.email)
    return invoice


def delete_invoice(db: Session, invoice_id: int, owner_id: int) -> int:
    """Delete an unpaid invoice and unbill its time entries.

    Returns the number of time entries returned to unbilled. Entries are
    unbilled before the invoice row goes, in the same transaction.
    """
    try:
        invoice = get_owned_invoice(db, invoice_id, owner_id)
        if invoice.status == "PAID":
            logger.warning("Refused to delete paid invoice %s for user %s", invoice.invoice_number, owner_id)
            raise InvalidOperationError("Cannot delete a paid invoice.")

        unbilled = (
            db.query(TimeEntry)
            .filter(TimeEntry.invoice_id == invoice.id)
            .update({TimeEntry.is_billed: False, TimeEntry.invoice_id: None}, synchronize_session=False)
        )
        number = invoice.invoice_number
        db.delete(invoice)
        db.commit()
    except AppError:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception("Invoice %s deletion failed for user %s; transaction rolled back", invoice_id, owner_id)
        raise

    logger.info("Invoice %s deleted by user %s; %s time entries unbilled", number, owner_id, unbilled)
    return unbilled
