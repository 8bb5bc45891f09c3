"""Project routes."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.core.errors import InvalidOperationError, NotFoundError
from backend.app.crud.crud_client import client_crud
from backend.app.crud.crud_project import project_crud
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_user
from backend.app.models.project import Project
from backend.app.models.user import User
from backend.app.schemas.invoice import MessageResponse
from backend.app.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate

router = APIRouter(prefix="/projects", tags=["projects"])


def _get_owned_project(db: Session, project_id: int, owner_id: int) -> Project:
    project = project_crud.get(db, project_id=project_id, owner_id=owner_id)
    if not project:
        raise NotFoundError("Project not found.")
    return project


def _ensure_owned_client(db: Session, client_id: int, owner_id: int) -> None:
    if not client_crud.get(db, client_id=client_id, owner_id=owner_id):
        raise NotFoundError("Client not found.")


@router.get("", response_model=List[ProjectRead])
def list_projects(
    client_id: int | None = None,
    status: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return project_crud.get_multi(db, owner_id=current_user.id, client_id=client_id, status=status)


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _ensure_owned_client(db, project_in.client_id, current_user.id)
    return project_crud.create(db, obj_in=project_in, owner_id=current_user.id)


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_owned_project(db, project_id, current_user.id)


@router.put("/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = _get_owned_project(db, project_id, current_user.id)
    if project_in.client_id is not None:
        _ensure_owned_client(db, project_in.client_id, current_user.id)
    return project_crud.update(db, db_obj=project, obj_in=project_in)


@router.delete("/{project_id}", response_model=MessageResponse)
def delete_project(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    project = _get_owned_project(db, project_id, current_user.id)
    if project_crud.has_billed_entries(db, project_id=project.id):
        raise InvalidOperationError("Cannot delete a project with billed time entries.")
    project_crud.delete(db, db_obj=project)
    return {"message": "Project deleted successfully."}
