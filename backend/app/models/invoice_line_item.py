"""Invoice line item model."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class InvoiceLineItem(Base):
    __tablename__ = "invoice_line_items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_invoice_line_items_quantity_non_negative"),
        CheckConstraint("rate >= 0", name="ck_invoice_line_items_rate_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(500), nullable=False)
    quantity = Column(Numeric(12, 4), nullable=False, default=1)
    rate = Column(Numeric(10, 2), nullable=False, default=0)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    invoice = relationship("Invoice", back_populates="line_items")
