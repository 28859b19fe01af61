from __future__ import annotations

import logging

from sqlalchemy import delete, desc, select
from sqlalchemy.orm import Session

from ..core.errors import ValidationError
from ..models.project import Project
from ..models.project_member import ProjectMember
from ..models.ticket import Ticket
from ..models.user import User
from ..schemas.project import ProjectCreateIn, ProjectUpdateIn
from .ticket_service import build_user_map, get_project_or_404

logger = logging.getLogger(__name__)


def load_member_map(session: Session, project_ids: list[int]) -> dict[int, list[int]]:
    if not project_ids:
        return {}
    stmt = select(ProjectMember).where(ProjectMember.project_id.in_(project_ids)).order_by(ProjectMember.user_id)
    member_map: dict[int, list[int]] = {}
    for row in session.scalars(stmt).all():
        member_map.setdefault(row.project_id, []).append(row.user_id)
    return member_map


def serialize_project(p: Project, users: dict[int, User], member_map: dict[int, list[int]]) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "owner": users.get(p.owner_id),
        "members": member_map.get(p.id, []),
        "created_at": p.created_at,
    }


def serialize_projects(session: Session, projects: list[Project]) -> list[dict]:
    users = build_user_map(session, {p.owner_id for p in projects})
    member_map = load_member_map(session, [p.id for p in projects])
    return [serialize_project(p, users, member_map) for p in projects]


def _check_members(session: Session, member_ids: list[int]) -> list[int]:
    member_ids = list(dict.fromkeys(member_ids))
    if member_ids:
        found = session.scalars(select(User.id).where(User.id.in_(member_ids))).all()
        if len(found) != len(member_ids):
            raise ValidationError("Member user not found")
    return member_ids


def _replace_members(session: Session, project_id: int, member_ids: list[int]) -> None:
    session.execute(delete(ProjectMember).where(ProjectMember.project_id == project_id))
    for user_id in member_ids:
        session.add(ProjectMember(project_id=project_id, user_id=user_id))


def list_projects(session: Session) -> list[Project]:
    stmt = select(Project).order_by(desc(Project.created_at), desc(Project.id))
    return list(session.scalars(stmt).all())


def create_project(session: Session, payload: ProjectCreateIn, owner: User) -> Project:
    member_ids = _check_members(session, payload.member_ids)

    # owner always comes from the caller, never the body
    project = Project(name=payload.name, description=payload.description, owner_id=owner.id)
    session.add(project)
    session.flush()
    _replace_members(session, project.id, member_ids)
    session.commit()
    session.refresh(project)
    return project


def update_project(session: Session, project_id: int, payload: ProjectUpdateIn) -> Project:
    project = get_project_or_404(session, project_id)
    fields = payload.model_dump(exclude_unset=True)

    if "name" in fields:
        project.name = fields["name"]
    if "description" in fields:
        project.description = fields["description"]
    if fields.get("member_ids") is not None:
        _replace_members(session, project.id, _check_members(session, fields["member_ids"]))

    session.commit()
    session.refresh(project)
    return project


def delete_project(session: Session, project_id: int) -> None:
    project = get_project_or_404(session, project_id)
    removed = session.execute(delete(Ticket).where(Ticket.project_id == project.id)).rowcount
    session.execute(delete(ProjectMember).where(ProjectMember.project_id == project.id))
    session.delete(project)
    session.commit()
    logger.info("project %s deleted with %s tickets", project_id, removed)
