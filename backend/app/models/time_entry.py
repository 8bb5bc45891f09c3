"""Time entry model and its billing link to invoices."""

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Text, Time
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class TimeEntry(Base):
    __tablename__ = "time_entries"
    __table_args__ = (
        CheckConstraint("duration_minutes >= 0", name="ck_time_entries_duration_non_negative"),
        # billed <=> linked to an invoice
        CheckConstraint(
            "(is_billed AND invoice_id IS NOT NULL) OR (NOT is_billed AND invoice_id IS NULL)",
            name="ck_time_entries_billed_link",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)
    is_billable = Column(Boolean, nullable=False, default=True)
    is_billed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    owner = relationship("User", back_populates="time_entries")
    project = relationship("Project", back_populates="time_entries")
    invoice = relationship("Invoice", back_populates="time_entries")

    @property
    def project_name(self):
        return self.project.name if self.project else None

    @property
    def client_name(self):
        if self.project is None or self.project.client is None:
            return None
        return self.project.client.name
