"""CRUD operations for projects."""

from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from backend.app.models.project import Project
from backend.app.models.time_entry import TimeEntry
from backend.app.schemas.project import ProjectCreate, ProjectUpdate


class CRUDProject:
    def create(self, db: Session, *, obj_in: ProjectCreate, owner_id: int) -> Project:
        obj = Project(owner_id=owner_id, **obj_in.model_dump())
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get(self, db: Session, *, project_id: int, owner_id: int) -> Optional[Project]:
        return db.query(Project).filter(Project.id == project_id, Project.owner_id == owner_id).first()

    def get_multi(
        self,
        db: Session,
        *,
        owner_id: int,
        client_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[Project]:
        query = db.query(Project).options(selectinload(Project.client)).filter(Project.owner_id == owner_id)
        if client_id is not None:
            query = query.filter(Project.client_id == client_id)
        if status:
            query = query.filter(Project.status == status.upper())
        return query.order_by(Project.created_at.desc(), Project.id.desc()).all()

    def update(self, db: Session, *, db_obj: Project, obj_in: ProjectUpdate) -> Project:
        update_data = obj_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None and not Project.__table__.c[field].nullable:
                continue
            setattr(db_obj, field, value)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def has_billed_entries(self, db: Session, *, project_id: int) -> bool:
        return (
            db.query(TimeEntry.id)
            .filter(TimeEntry.project_id == project_id, TimeEntry.is_billed.is_(True))
            .first()
            is not None
        )

    def delete(self, db: Session, *, db_obj: Project) -> Project:
        # Unbilled time entries go with the project (relationship cascade)
        db.delete(db_obj)
        db.commit()
        return db_obj


project_crud = CRUDProject()
