import threading
from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from backend.app.core.errors import InvalidOperationError, NotFoundError, ValidationError
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.models.client import Client
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_line_item import InvoiceLineItem
from backend.app.models.project import Project
from backend.app.models.time_entry import TimeEntry
from backend.app.models.user import User
from backend.app.services import invoices as invoice_service


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _create_owner(db, email="owner@example.com"):
    user = User(email=email, hashed_password="x")
    db.add(user)
    db.commit()
    client = Client(owner_id=user.id, name="Client Co", email="billing@client.example")
    db.add(client)
    db.commit()
    project = Project(owner_id=user.id, client_id=client.id, name="Website", billing_rate=Decimal("80"))
    db.add(project)
    db.commit()
    return user, client, project


def _create_entry(db, owner_id, project_id, minutes):
    entry = TimeEntry(owner_id=owner_id, project_id=project_id, date=date(2030, 1, 1), duration_minutes=minutes)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def _items():
    return [{"description": "Design work", "quantity": Decimal("10"), "rate": Decimal("20")}]


def test_create_invoice_persists_totals_items_and_number(db):
    user, client, _ = _create_owner(db)
    invoice = invoice_service.create_invoice(
        db,
        user.id,
        client_id=client.id,
        line_items=_items() + [{"description": "Hosting", "quantity": 1, "rate": "15.50"}],
        tax_rate=Decimal("8"),
        discount_amount=Decimal("10"),
    )
    assert invoice.invoice_number == "INV-0001"
    assert invoice.status == "DRAFT"
    assert invoice.subtotal == Decimal("215.50")
    assert invoice.tax_amount == Decimal("17.24")
    assert invoice.total == Decimal("222.74")
    assert [item.description for item in invoice.line_items] == ["Design work", "Hosting"]
    assert [item.position for item in invoice.line_items] == [0, 1]
    assert invoice.line_items[1].amount == Decimal("15.50")
    db.refresh(user)
    assert user.invoice_next_number == 2


def test_create_invoice_bills_only_owned_unbilled_entries(db):
    user, client, project = _create_owner(db)
    other, _, other_project = _create_owner(db, email="other@example.com")
    e1 = _create_entry(db, user.id, project.id, 60)
    e2 = _create_entry(db, user.id, project.id, 90)
    foreign = _create_entry(db, other.id, other_project.id, 30)

    first = invoice_service.create_invoice(
        db, user.id, client_id=client.id, line_items=_items(), time_entry_ids=[e1.id]
    )
    second = invoice_service.create_invoice(
        db, user.id, client_id=client.id, line_items=_items(), time_entry_ids=[e1.id, e2.id, foreign.id]
    )

    for entry in (e1, e2, foreign):
        db.refresh(entry)
    assert (e1.is_billed, e1.invoice_id) == (True, first.id)
    assert (e2.is_billed, e2.invoice_id) == (True, second.id)
    assert (foreign.is_billed, foreign.invoice_id) == (False, None)


def test_create_invoice_requires_client_and_line_items(db):
    user, client, project = _create_owner(db)
    entry = _create_entry(db, user.id, project.id, 60)

    with pytest.raises(ValidationError, match="Client is required"):
        invoice_service.create_invoice(db, user.id, client_id=None, line_items=_items())
    with pytest.raises(ValidationError, match="At least one line item"):
        invoice_service.create_invoice(db, user.id, client_id=client.id, line_items=[], time_entry_ids=[entry.id])

    db.refresh(entry)
    db.refresh(user)
    assert entry.is_billed is False
    assert user.invoice_next_number == 1
    assert db.query(Invoice).count() == 0


def test_create_invoice_for_foreign_client_is_not_found(db):
    user, _, _ = _create_owner(db)
    _, other_client, _ = _create_owner(db, email="other@example.com")
    with pytest.raises(NotFoundError):
        invoice_service.create_invoice(db, user.id, client_id=other_client.id, line_items=_items())
    db.refresh(user)
    assert user.invoice_next_number == 1


def test_failure_mid_transaction_rolls_everything_back(db, monkeypatch):
    user, client, project = _create_owner(db)
    entry = _create_entry(db, user.id, project.id, 60)

    def explode(quantity, rate):
        raise RuntimeError("disk full")

    monkeypatch.setattr(invoice_service, "line_amount", explode)
    with pytest.raises(RuntimeError):
        invoice_service.create_invoice(
            db, user.id, client_id=client.id, line_items=_items(), time_entry_ids=[entry.id]
        )

    assert db.query(Invoice).count() == 0
    assert db.query(InvoiceLineItem).count() == 0
    db.refresh(entry)
    db.refresh(user)
    assert (entry.is_billed, entry.invoice_id) == (False, None)
    assert user.invoice_next_number == 1


def test_number_collision_rolls_back_counter(db):
    user, client, _ = _create_owner(db)
    db.add(
        Invoice(
            owner_id=user.id,
            client_id=client.id,
            invoice_number="INV-0001",
            invoice_date=date(2030, 1, 1),
        )
    )
    db.commit()

    with pytest.raises(IntegrityError):
        invoice_service.create_invoice(db, user.id, client_id=client.id, line_items=_items())
    db.refresh(user)
    assert user.invoice_next_number == 1
    assert db.query(Invoice).count() == 1


def test_simultaneous_creations_get_consecutive_numbers():
    setup = SessionLocal()
    user, client, _ = _create_owner(setup)
    user_id, client_id = user.id, client.id
    setup.close()

    start = threading.Barrier(2)
    numbers, errors = [], []

    def create():
        db = SessionLocal()
        try:
            start.wait(timeout=5)
            invoice = invoice_service.create_invoice(db, user_id, client_id=client_id, line_items=_items())
            numbers.append(invoice.invoice_number)
        except Exception as exc:
            errors.append(exc)
        finally:
            db.close()

    workers = [threading.Thread(target=create) for _ in range(2)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout=15)

    assert errors == []
    assert sorted(numbers) == ["INV-0001", "INV-0002"]
    check = SessionLocal()
    try:
        assert check.query(User).filter(User.id == user_id).one().invoice_next_number == 3
    finally:
        check.close()


def test_delete_unbills_entries_and_removes_line_items(db):
    user, client, project = _create_owner(db)
    e1 = _create_entry(db, user.id, project.id, 60)
    e2 = _create_entry(db, user.id, project.id, 90)
    invoice = invoice_service.create_invoice(
        db, user.id, client_id=client.id, line_items=_items(), time_entry_ids=[e1.id, e2.id]
    )
    invoice_id = invoice.id

    unbilled = invoice_service.delete_invoice(db, invoice_id, user.id)

    assert unbilled == 2
    assert db.query(Invoice).filter(Invoice.id == invoice_id).count() == 0
    assert db.query(InvoiceLineItem).filter(InvoiceLineItem.invoice_id == invoice_id).count() == 0
    for entry in (e1, e2):
        db.refresh(entry)
        assert (entry.is_billed, entry.invoice_id) == (False, None)


def test_delete_paid_invoice_is_refused_and_changes_nothing(db):
    user, client, project = _create_owner(db)
    entry = _create_entry(db, user.id, project.id, 60)
    invoice = invoice_service.create_invoice(
        db, user.id, client_id=client.id, line_items=_items(), time_entry_ids=[entry.id]
    )
    invoice_service.mark_paid(db, invoice.id, user.id, payment_amount=Decimal("200.00"))

    with pytest.raises(InvalidOperationError):
        invoice_service.delete_invoice(db, invoice.id, user.id)

    db.refresh(entry)
    assert (entry.is_billed, entry.invoice_id) == (True, invoice.id)
    assert db.query(InvoiceLineItem).filter(InvoiceLineItem.invoice_id == invoice.id).count() == 1


def test_delete_other_users_invoice_is_not_found(db):
    user, client, _ = _create_owner(db)
    other, _, _ = _create_owner(db, email="other@example.com")
    invoice = invoice_service.create_invoice(db, user.id, client_id=client.id, line_items=_items())
    with pytest.raises(NotFoundError):
        invoice_service.delete_invoice(db, invoice.id, other.id)


def test_mark_paid_accepts_any_amount_and_defaults_date(db):
    user, client, _ = _create_owner(db)
    invoice = invoice_service.create_invoice(db, user.id, client_id=client.id, line_items=_items())
    paid = invoice_service.mark_paid(db, invoice.id, user.id, payment_amount=Decimal("1.00"), payment_notes="partial")
    assert paid.status == "PAID"
    assert paid.payment_amount == Decimal("1.00")
    assert paid.payment_notes == "partial"
    assert paid.payment_date is not None


def test_sweep_overdue_flips_only_past_due_sent_and_is_idempotent(db):
    user, client, _ = _create_owner(db)
    today = date(2030, 6, 15)
    past_sent = invoice_service.create_invoice(
        db, user.id, client_id=client.id, line_items=_items(), due_date=today - timedelta(days=1)
    )
    future_sent = invoice_service.create_invoice(
        db, user.id, client_id=client.id, line_items=_items(), due_date=today + timedelta(days=1)
    )
    past_draft = invoice_service.create_invoice(
        db, user.id, client_id=client.id, line_items=_items(), due_date=today - timedelta(days=10)
    )
    invoice_service.update_invoice(db, past_sent.id, user.id, {"status": "SENT"})
    invoice_service.update_invoice(db, future_sent.id, user.id, {"status": "SENT"})

    assert invoice_service.sweep_overdue(db, user.id, today=today) == 1
    assert invoice_service.sweep_overdue(db, user.id, today=today) == 0

    statuses = {inv.id: inv.status for inv in db.query(Invoice).all()}
    assert statuses == {past_sent.id: "OVERDUE", future_sent.id: "SENT", past_draft.id: "DRAFT"}


def test_update_invoice_does_not_recompute_totals(db):
    user, client, _ = _create_owner(db)
    invoice = invoice_service.create_invoice(db, user.id, client_id=client.id, line_items=_items())
    updated = invoice_service.update_invoice(db, invoice.id, user.id, {"subtotal": Decimal("999.00"), "notes": "x"})
    assert updated.subtotal == Decimal("999.00")
    assert updated.total == Decimal("200.00")
    assert updated.notes == "x"


def test_update_invoice_rejects_empty_and_null_required_fields(db):
    user, client, _ = _create_owner(db)
    invoice = invoice_service.create_invoice(db, user.id, client_id=client.id, line_items=_items())
    with pytest.raises(ValidationError, match="No fields"):
        invoice_service.update_invoice(db, invoice.id, user.id, {})
    with pytest.raises(ValidationError, match="invoice_date"):
        invoice_service.update_invoice(db, invoice.id, user.id, {"invoice_date": None})


def test_send_invoice_moves_draft_to_sent_only(db):
    user, client, _ = _create_owner(db)
    invoice = invoice_service.create_invoice(db, user.id, client_id=client.id, line_items=_items())
    assert invoice_service.send_invoice(db, invoice.id, user.id).status == "SENT"
    invoice_service.mark_paid(db, invoice.id, user.id, payment_amount=Decimal("200"))
    assert invoice_service.send_invoice(db, invoice.id, user.id).status == "PAID"


def test_send_invoice_requires_client_email(db):
    user, client, _ = _create_owner(db)
    client.email = None
    db.commit()
    invoice = invoice_service.create_invoice(db, user.id, client_id=client.id, line_items=_items())
    with pytest.raises(InvalidOperationError):
        invoice_service.send_invoice(db, invoice.id, user.id)


def test_stored_totals_rederive_from_stored_items_and_rate(db):
    user, client, _ = _create_owner(db)
    invoice = invoice_service.create_invoice(
        db,
        user.id,
        client_id=client.id,
        line_items=[{"description": "Support", "quantity": "1.5", "rate": "0.33"}] * 2
        + [{"description": "Licence", "quantity": 1, "rate": "1000"}],
        tax_rate="8.125",
    )
    db.refresh(invoice)

    assert [item.amount for item in invoice.line_items] == [Decimal("0.50"), Decimal("0.50"), Decimal("1000.00")]
    assert invoice.subtotal == sum(item.amount for item in invoice.line_items) == Decimal("1001.00")
    assert invoice.tax_rate == Decimal("8.13")
    assert invoice.tax_amount == (invoice.subtotal * invoice.tax_rate / 100).quantize(Decimal("0.01")) == Decimal("81.38")
    assert invoice.total == invoice.subtotal + invoice.tax_amount - invoice.discount_amount
