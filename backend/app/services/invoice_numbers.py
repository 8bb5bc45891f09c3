"""Per-user invoice number allocation.

The counter lives on the user row. Allocation reads it with ``SELECT ... FOR
UPDATE`` and advances it in the caller's transaction, so concurrent invoice
creations for the same user queue on the row lock and can never observe the
same value. SQLite has no row locks; there every transaction starts with
``BEGIN IMMEDIATE`` (see ``db/session.py``), which gives the same ordering
with a database-wide write lock. Rolling back the caller's transaction also
rolls back the increment, so a failed creation does not leave a gap.
"""

from dataclasses import dataclass

from sqlalchemy.orm import Query, Session

from backend.app.core.errors import NotFoundError
from backend.app.models.user import User

DEFAULT_PREFIX = "INV"
SEQUENCE_WIDTH = 4


@dataclass(frozen=True)
class AllocatedNumber:
    formatted: str
    sequence: int


def format_invoice_number(prefix: str | None, sequence: int) -> str:
    return f"{prefix or DEFAULT_PREFIX}-{sequence:0{SEQUENCE_WIDTH}d}"


def locked_counter_query(db: Session, user_id: int) -> Query:
    # populate_existing: the request's current_user may already sit in the
    # identity map with a stale counter
    return db.query(User).filter(User.id == user_id).with_for_update().populate_existing()


def preview_next_invoice_number(db: Session, user_id: int) -> str:
    """Format the number the next invoice would get, without consuming it."""
    user = db.query(User).filter(User.id == user_id).populate_existing().first()
    if user is None:
        raise NotFoundError("User not found.")
    return format_invoice_number(user.invoice_prefix, user.invoice_next_number or 1)


def allocate_invoice_number(db: Session, user_id: int) -> AllocatedNumber:
    """Consume the user's next sequence number inside the open transaction.

    Does not commit; the lock is held until the caller commits or rolls back.
    """
    user = locked_counter_query(db, user_id).first()
    if user is None:
        raise NotFoundError("User not found.")
    sequence = user.invoice_next_number or 1
    user.invoice_next_number = sequence + 1
    db.flush()
    return AllocatedNumber(formatted=format_invoice_number(user.invoice_prefix, sequence), sequence=sequence)
