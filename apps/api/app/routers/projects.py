from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_session
from ..core.current_user import get_current_admin, get_current_user
from ..models.user import User
from ..schemas.common import DataOut, EmptyOut, ListOut, PathId, ok, ok_list
from ..schemas.project import ProjectCreateIn, ProjectOut, ProjectUpdateIn
from ..services import project_service
from ..services.ticket_service import get_project_or_404

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=ListOut[ProjectOut])
def list_projects(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    projects = project_service.list_projects(session)
    return ok_list(project_service.serialize_projects(session, projects))


@router.post("", response_model=DataOut[ProjectOut], status_code=201)
def create_project(
    payload: ProjectCreateIn,
    session: Session = Depends(get_session),
    admin: User = Depends(get_current_admin),
):
    project = project_service.create_project(session, payload, admin)
    return ok(project_service.serialize_projects(session, [project])[0])


@router.get("/{project_id}", response_model=DataOut[ProjectOut])
def get_project(
    project_id: PathId,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    project = get_project_or_404(session, project_id)
    return ok(project_service.serialize_projects(session, [project])[0])


@router.put("/{project_id}", response_model=DataOut[ProjectOut])
def update_project(
    project_id: PathId,
    payload: ProjectUpdateIn,
    session: Session = Depends(get_session),
    admin: User = Depends(get_current_admin),
):
    project = project_service.update_project(session, project_id, payload)
    return ok(project_service.serialize_projects(session, [project])[0])


@router.delete("/{project_id}", response_model=EmptyOut)
def delete_project(
    project_id: PathId,
    session: Session = Depends(get_session),
    admin: User = Depends(get_current_admin),
):
    project_service.delete_project(session, project_id)
    return ok({})
