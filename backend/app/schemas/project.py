"""Project schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ProjectStatus = Literal["ACTIVE", "COMPLETED", "ON_HOLD", "CANCELLED"]
BudgetType = Literal["HOURLY", "FIXED_PRICE"]


class ProjectBase(BaseModel):
    description: Optional[str] = None
    start_date: Optional[date] = None
    deadline: Optional[date] = None


class ProjectCreate(ProjectBase):
    client_id: int
    name: str = Field(min_length=1)
    status: ProjectStatus = "ACTIVE"
    budget_type: BudgetType = "HOURLY"
    estimated_budget: Decimal = Field(default=Decimal("0"), ge=0)
    billing_rate: Decimal = Field(default=Decimal("0"), ge=0)


class ProjectUpdate(ProjectBase):
    client_id: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1)
    status: Optional[ProjectStatus] = None
    budget_type: Optional[BudgetType] = None
    estimated_budget: Optional[Decimal] = Field(default=None, ge=0)
    billing_rate: Optional[Decimal] = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")


class ProjectRead(ProjectBase):
    id: int
    owner_id: int
    client_id: int
    client_name: Optional[str] = None
    name: str
    status: str
    budget_type: str
    estimated_budget: Decimal
    billing_rate: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
