"""Invoice model for billing."""

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base

INVOICE_STATUSES = ("DRAFT", "SENT", "PAID", "OVERDUE")


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("owner_id", "invoice_number", name="uq_invoices_owner_number"),
        CheckConstraint("status IN ('DRAFT', 'SENT', 'PAID', 'OVERDUE')", name="ck_invoices_status"),
        CheckConstraint("subtotal >= 0", name="ck_invoices_subtotal_non_negative"),
        CheckConstraint("tax_rate >= 0", name="ck_invoices_tax_rate_non_negative"),
        CheckConstraint("tax_amount >= 0", name="ck_invoices_tax_amount_non_negative"),
        CheckConstraint("discount_amount >= 0", name="ck_invoices_discount_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    invoice_number = Column(String(50), nullable=False)

    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)

    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    # May go negative when the discount exceeds subtotal plus tax
    total = Column(Numeric(12, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default="DRAFT")
    payment_date = Column(Date, nullable=True)
    payment_amount = Column(Numeric(12, 2), nullable=True)
    payment_notes = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    owner = relationship("User", back_populates="invoices")
    client = relationship("Client", back_populates="invoices")
    line_items = relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineItem.position",
    )
    # Unbilling is done explicitly before delete; the ORM must not null these out itself
    time_entries = relationship("TimeEntry", back_populates="invoice", passive_deletes="all")

    @property
    def client_name(self):
        return self.client.name if self.client else None

    @property
    def client_company(self):
        return self.client.company if self.client else None

    @property
    def client_email(self):
        return self.client.email if self.client else None

    @property
    def client_address(self):
        return self.client.address if self.client else None
