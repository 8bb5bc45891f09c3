"""Project model."""

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base

PROJECT_STATUSES = ("ACTIVE", "COMPLETED", "ON_HOLD", "CANCELLED")
BUDGET_TYPES = ("HOURLY", "FIXED_PRICE")


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint("status IN ('ACTIVE', 'COMPLETED', 'ON_HOLD', 'CANCELLED')", name="ck_projects_status"),
        CheckConstraint("budget_type IN ('HOURLY', 'FIXED_PRICE')", name="ck_projects_budget_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    deadline = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="ACTIVE")
    budget_type = Column(String(20), nullable=False, default="HOURLY")
    estimated_budget = Column(Numeric(12, 2), nullable=False, default=0)
    billing_rate = Column(Numeric(10, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    owner = relationship("User", back_populates="projects")
    client = relationship("Client", back_populates="projects")
    time_entries = relationship("TimeEntry", back_populates="project", cascade="all, delete-orphan")

    @property
    def client_name(self):
        return self.client.name if self.client else None
