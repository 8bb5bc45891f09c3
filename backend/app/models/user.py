from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("invoice_next_number >= 1", name="ck_users_invoice_next_number_positive"),)

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    business_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    tax_id = Column(String(100), nullable=True)
    default_hourly_rate = Column(Numeric(10, 2), nullable=False, default=0)
    default_tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    invoice_prefix = Column(String(20), nullable=False, default="INV")
    # Only the invoice number allocator writes this column
    invoice_next_number = Column(Integer, nullable=False, default=1)
    payment_instructions = Column(Text, nullable=True)
    terms_conditions = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    clients = relationship("Client", back_populates="owner", cascade="all, delete-orphan")
    projects = relationship("Project", back_populates="owner", cascade="all, delete-orphan")
    time_entries = relationship("TimeEntry", back_populates="owner", cascade="all, delete-orphan")
    invoices = relationship("Invoice", back_populates="owner", cascade="all, delete-orphan")
