"""Time entry services and the billed-entry guard.

A billed entry is frozen: update and delete check ``is_billed`` before doing
anything else. Only the invoice services move an entry in or out of the
billed state.
"""

import logging
from datetime import date, time
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session, selectinload

from backend.app.core.errors import InvalidOperationError, NotFoundError, ValidationError
from backend.app.models.project import Project
from backend.app.models.time_entry import TimeEntry
from backend.app.schemas.time_entry import TimeEntryUpdate

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
NON_NULLABLE_FIELDS = {"project_id", "date", "duration_minutes", "is_billable"}


def derive_duration(start_time: time, end_time: time) -> int:
    """Minutes from start to end; an end before the start crosses midnight."""
    minutes = (end_time.hour * 60 + end_time.minute) - (start_time.hour * 60 + start_time.minute)
    if minutes < 0:
        minutes += MINUTES_PER_DAY
    return minutes


def _get_owned_project(db: Session, project_id: int, owner_id: int) -> Project:
    project = db.query(Project).filter(Project.id == project_id, Project.owner_id == owner_id).first()
    if not project:
        raise NotFoundError("Project not found.")
    return project


def get_owned_time_entry(db: Session, entry_id: int, owner_id: int) -> TimeEntry:
    entry = db.query(TimeEntry).filter(TimeEntry.id == entry_id, TimeEntry.owner_id == owner_id).first()
    if not entry:
        raise NotFoundError("Time entry not found.")
    return entry


def ensure_unbilled(entry: TimeEntry, action: str) -> None:
    if entry.is_billed:
        logger.warning("Refused to %s billed time entry %s (invoice %s)", action, entry.id, entry.invoice_id)
        raise InvalidOperationError(f"Cannot {action} a billed time entry.")


def create_time_entry(
    db: Session,
    owner_id: int,
    project_id: int,
    entry_date: date,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
    duration_minutes: Optional[int] = None,
    description: Optional[str] = None,
    is_billable: bool = True,
) -> TimeEntry:
    _get_owned_project(db, project_id, owner_id)
    if duration_minutes is None:
        duration_minutes = derive_duration(start_time, end_time) if start_time and end_time else 0

    entry = TimeEntry(
        owner_id=owner_id,
        project_id=project_id,
        date=entry_date,
        start_time=start_time,
        end_time=end_time,
        duration_minutes=duration_minutes,
        description=description,
        is_billable=is_billable,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def update_time_entry(db: Session, entry_id: int, owner_id: int, changes: Mapping[str, Any]) -> TimeEntry:
    """Apply a raw update body to an unbilled entry.

    The body is validated against ``TimeEntryUpdate`` only after the billed
    guard, so a billed entry is refused whatever the body contains.
    """
    entry = get_owned_time_entry(db, entry_id, owner_id)
    ensure_unbilled(entry, "edit")

    try:
        changes = TimeEntryUpdate.model_validate(changes).model_dump(exclude_unset=True)
    except PydanticValidationError as exc:
        raise ValidationError.from_errors(exc.errors()) from exc

    nulled = sorted(field for field, value in changes.items() if value is None and field in NON_NULLABLE_FIELDS)
    if nulled:
        raise ValidationError(f"Invalid input: {', '.join(nulled)}")
    if "project_id" in changes:
        _get_owned_project(db, changes["project_id"], owner_id)

    times_changed = "start_time" in changes or "end_time" in changes
    if times_changed and "duration_minutes" not in changes:
        start = changes.get("start_time", entry.start_time)
        end = changes.get("end_time", entry.end_time)
        if start and end:
            changes = {**changes, "duration_minutes": derive_duration(start, end)}

    for field, value in changes.items():
        setattr(entry, field, value)
    db.commit()
    db.refresh(entry)
    return entry


def delete_time_entry(db: Session, entry_id: int, owner_id: int) -> None:
    entry = get_owned_time_entry(db, entry_id, owner_id)
    ensure_unbilled(entry, "delete")
    db.delete(entry)
    db.commit()


def _filtered_query(
    db: Session,
    owner_id: int,
    project_id: Optional[int] = None,
    client_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    query = db.query(TimeEntry).filter(TimeEntry.owner_id == owner_id)
    if project_id is not None:
        query = query.filter(TimeEntry.project_id == project_id)
    if client_id is not None:
        project_ids = db.query(Project.id).filter(Project.client_id == client_id, Project.owner_id == owner_id)
        query = query.filter(TimeEntry.project_id.in_(project_ids.scalar_subquery()))
    if start_date is not None:
        query = query.filter(TimeEntry.date >= start_date)
    if end_date is not None:
        query = query.filter(TimeEntry.date <= end_date)
    return query


def list_time_entries(
    db: Session,
    owner_id: int,
    project_id: Optional[int] = None,
    client_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    is_billable: Optional[bool] = None,
    is_billed: Optional[bool] = None,
) -> list[TimeEntry]:
    query = _filtered_query(db, owner_id, project_id, client_id, start_date, end_date)
    if is_billable is not None:
        query = query.filter(TimeEntry.is_billable.is_(is_billable))
    if is_billed is not None:
        query = query.filter(TimeEntry.is_billed.is_(is_billed))
    return (
        query.options(selectinload(TimeEntry.project).selectinload(Project.client))
        .order_by(TimeEntry.date.desc(), TimeEntry.created_at.desc(), TimeEntry.id.desc())
        .all()
    )


def summarize_time_entries(
    db: Session,
    owner_id: int,
    project_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict:
    entries = _filtered_query(db, owner_id, project_id=project_id, start_date=start_date, end_date=end_date).all()
    total = sum(entry.duration_minutes or 0 for entry in entries)
    billable = sum(entry.duration_minutes or 0 for entry in entries if entry.is_billable)
    unbilled = sum(entry.duration_minutes or 0 for entry in entries if entry.is_billable and not entry.is_billed)
    return {
        "total_hours": round(total / 60, 2),
        "billable_hours": round(billable / 60, 2),
        "unbilled_hours": round(unbilled / 60, 2),
        "total_entries": len(entries),
    }
