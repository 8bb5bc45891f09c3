"""Time entry routes."""

from datetime import date

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_user
from backend.app.models.user import User
from backend.app.schemas.invoice import MessageResponse
from backend.app.schemas.time_entry import (
    TimeEntryCreate,
    TimeEntryEnvelope,
    TimeEntryList,
    TimeEntrySummary,
)
from backend.app.services import time_entries as time_entry_service

router = APIRouter(prefix="/time-entries", tags=["time-entries"])


@router.get("", response_model=TimeEntryList)
def list_time_entries(
    project_id: int | None = None,
    client_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    is_billable: bool | None = None,
    is_billed: bool | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    entries = time_entry_service.list_time_entries(
        db,
        current_user.id,
        project_id=project_id,
        client_id=client_id,
        start_date=start_date,
        end_date=end_date,
        is_billable=is_billable,
        is_billed=is_billed,
    )
    return {"entries": entries}


@router.get("/summary", response_model=TimeEntrySummary)
def summarize_time_entries(
    project_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return time_entry_service.summarize_time_entries(
        db, current_user.id, project_id=project_id, start_date=start_date, end_date=end_date
    )


@router.get("/{entry_id}", response_model=TimeEntryEnvelope)
def get_time_entry(entry_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return {"entry": time_entry_service.get_owned_time_entry(db, entry_id, current_user.id)}


@router.post("", response_model=TimeEntryEnvelope, status_code=status.HTTP_201_CREATED)
def create_time_entry(
    entry_in: TimeEntryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    entry = time_entry_service.create_time_entry(
        db,
        current_user.id,
        project_id=entry_in.project_id,
        entry_date=entry_in.date,
        start_time=entry_in.start_time,
        end_time=entry_in.end_time,
        duration_minutes=entry_in.duration_minutes,
        description=entry_in.description,
        is_billable=entry_in.is_billable,
    )
    return {"message": "Time entry created successfully", "entry": entry}


@router.put("/{entry_id}", response_model=TimeEntryEnvelope)
def update_time_entry(
    entry_id: int,
    changes: dict = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # Validated by the service once the billed guard has passed
    entry = time_entry_service.update_time_entry(db, entry_id, current_user.id, changes)
    return {"message": "Time entry updated successfully", "entry": entry}


@router.delete("/{entry_id}", response_model=MessageResponse)
def delete_time_entry(entry_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    time_entry_service.delete_time_entry(db, entry_id, current_user.id)
    return {"message": "Time entry deleted successfully."}
