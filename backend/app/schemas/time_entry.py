"""Time entry schemas.

``is_billed`` and ``invoice_id`` only appear on the read side: the billing
link is written by the invoice services, never by clients.
"""

from datetime import date as date_type, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TimeEntryCreate(BaseModel):
    project_id: int
    date: date_type
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = None
    is_billable: bool = True

    model_config = ConfigDict(extra="forbid")


class TimeEntryUpdate(BaseModel):
    project_id: Optional[int] = None
    date: Optional[date_type] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = None
    is_billable: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class TimeEntryRead(BaseModel):
    id: int
    owner_id: int
    project_id: int
    project_name: Optional[str] = None
    client_name: Optional[str] = None
    invoice_id: Optional[int] = None
    date: date_type
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    duration_minutes: int
    description: Optional[str] = None
    is_billable: bool
    is_billed: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TimeEntryEnvelope(BaseModel):
    message: Optional[str] = None
    entry: TimeEntryRead


class TimeEntryList(BaseModel):
    entries: List[TimeEntryRead]


class TimeEntrySummary(BaseModel):
    total_hours: float
    billable_hours: float
    unbilled_hours: float
    total_entries: int
