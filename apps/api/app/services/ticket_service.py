from __future__ import annotations

from dataclasses import dataclass
import logging

from fastapi import BackgroundTasks
from sqlalchemy import Select, and_, desc, or_, select
from sqlalchemy.orm import Session

from ..core.access import is_admin
from ..core.errors import AuthzError, NotFoundError, ValidationError
from ..models.project import Project
from ..models.ticket import TICKET_PRIORITIES, TICKET_STATUSES, Ticket
from ..models.user import User
from ..schemas.common import MAX_ID
from ..schemas.ticket import TicketCreateIn, TicketUpdateIn
from .mail_events import MailTarget, Notifier, TicketMail
from .ticket_changes import TicketChanges, TicketState, diff_ticket

logger = logging.getLogger(__name__)

ALL = "all"
UNASSIGNED = "unassigned"

# request field -> column
PATCHABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "status": "status",
    "priority": "priority",
    "assigned_to": "assigned_to_id",
}


@dataclass
class TicketFilters:
    search: str | None = None
    status: str | None = None
    priority: str | None = None
    assigned_to: str | None = None


@dataclass
class TicketUpdateResult:
    ticket: Ticket
    changes: TicketChanges
    assignment_changed: bool


def build_user_map(session: Session, ids: set[int | None]) -> dict[int, User]:
    ids = {i for i in ids if i is not None}
    if not ids:
        return {}
    users = session.scalars(select(User).where(User.id.in_(ids))).all()
    return {u.id: u for u in users}


def build_project_map(session: Session, ids: set[int]) -> dict[int, Project]:
    if not ids:
        return {}
    projects = session.scalars(select(Project).where(Project.id.in_(ids))).all()
    return {p.id: p for p in projects}


def serialize_ticket(
    t: Ticket,
    users: dict[int, User],
    projects: dict[int, Project] | None = None,
    with_project_description: bool = False,
) -> dict:
    project = projects.get(t.project_id) if projects else None
    project_ref = None
    if project:
        project_ref = {"id": project.id, "name": project.name}
        if with_project_description:
            project_ref["description"] = project.description
    return {
        "id": t.id,
        "title": t.title,
        "description": t.description,
        "status": t.status,
        "priority": t.priority,
        "project_id": t.project_id,
        "project": project_ref,
        "submitter": users.get(t.submitter_id),
        "assigned_to": users.get(t.assigned_to_id) if t.assigned_to_id else None,
        "created_at": t.created_at,
        "updated_at": t.updated_at,
    }


def serialize_tickets(session: Session, tickets: list[Ticket], with_project_description: bool = False) -> list[dict]:
    user_ids: set[int | None] = set()
    for t in tickets:
        user_ids.add(t.submitter_id)
        user_ids.add(t.assigned_to_id)
    users = build_user_map(session, user_ids)
    projects = build_project_map(session, {t.project_id for t in tickets})
    return [serialize_ticket(t, users, projects, with_project_description) for t in tickets]


def _is_active(value: str | None) -> bool:
    return bool(value) and value != ALL


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def build_ticket_query(project_id: int, filters: TicketFilters) -> Select:
    stmt = select(Ticket).where(Ticket.project_id == project_id)

    if _is_active(filters.status):
        if filters.status not in TICKET_STATUSES:
            raise ValidationError(f"Invalid status: {filters.status}")
        stmt = stmt.where(Ticket.status == filters.status)

    if _is_active(filters.priority):
        if filters.priority not in TICKET_PRIORITIES:
            raise ValidationError(f"Invalid priority: {filters.priority}")
        stmt = stmt.where(Ticket.priority == filters.priority)

    search_conditions = []
    if filters.search:
        pattern = _like_pattern(filters.search)
        search_conditions = [
            Ticket.title.ilike(pattern, escape="\\"),
            Ticket.description.ilike(pattern, escape="\\"),
        ]

    assigned_conditions = []
    if _is_active(filters.assigned_to):
        if filters.assigned_to == UNASSIGNED:
            assigned_conditions = [Ticket.assigned_to_id.is_(None)]
        else:
            try:
                assignee_id = int(filters.assigned_to)
            except ValueError:
                assignee_id = None
            if assignee_id is None or not 1 <= assignee_id <= MAX_ID:
                raise ValidationError(f"Invalid assignedTo filter: {filters.assigned_to}")
            stmt = stmt.where(Ticket.assigned_to_id == assignee_id)

    # Search and "unassigned" must both hold.
    if search_conditions and assigned_conditions:
        stmt = stmt.where(and_(or_(*search_conditions), or_(*assigned_conditions)))
    elif search_conditions:
        stmt = stmt.where(or_(*search_conditions))
    elif assigned_conditions:
        stmt = stmt.where(or_(*assigned_conditions))

    return stmt.order_by(desc(Ticket.created_at), desc(Ticket.id))


def get_project_or_404(session: Session, project_id: int) -> Project:
    project = session.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found")
    return project


def get_ticket_or_404(session: Session, ticket_id: int) -> Ticket:
    t = session.get(Ticket, ticket_id)
    if not t:
        raise NotFoundError("Ticket not found")
    return t


def _require_assignee(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise ValidationError("Assigned user not found")
    return user


def list_tickets(session: Session, project_id: int, filters: TicketFilters) -> list[Ticket]:
    get_project_or_404(session, project_id)
    return list(session.scalars(build_ticket_query(project_id, filters)).all())


def create_ticket(session: Session, project_id: int, payload: TicketCreateIn, actor: User) -> Ticket:
    get_project_or_404(session, project_id)
    if payload.assigned_to is not None:
        _require_assignee(session, payload.assigned_to)

    t = Ticket(
        title=payload.title,
        description=payload.description,
        status=payload.status,
        priority=payload.priority,
        project_id=project_id,
        submitter_id=actor.id,
        assigned_to_id=payload.assigned_to,
    )
    session.add(t)
    session.commit()
    session.refresh(t)
    return t


def update_ticket(session: Session, ticket_id: int, payload: TicketUpdateIn, actor: User) -> TicketUpdateResult:
    t = get_ticket_or_404(session, ticket_id)
    before = TicketState.of(t)

    fields = payload.model_dump(exclude_unset=True)
    if fields.get("assigned_to") is not None:
        _require_assignee(session, fields["assigned_to"])

    for name, value in fields.items():
        setattr(t, PATCHABLE_FIELDS[name], value)

    session.commit()
    session.refresh(t)
    after = TicketState.of(t)

    users = build_user_map(session, {before.assigned_to_id, after.assigned_to_id})
    changes = diff_ticket(before, after, {uid: u.name for uid, u in users.items()})
    if changes:
        logger.info("ticket %s updated by user %s: %s", t.id, actor.id, ", ".join(changes.fields()))
    return TicketUpdateResult(ticket=t, changes=changes, assignment_changed=changes.assigned_to is not None)


def delete_ticket(session: Session, ticket_id: int, actor: User) -> None:
    if not is_admin(actor):
        raise AuthzError("Only admin users can delete tickets")
    t = get_ticket_or_404(session, ticket_id)
    session.delete(t)
    session.commit()


def _mail_snapshot(session: Session, t: Ticket) -> TicketMail:
    users = build_user_map(session, {t.submitter_id, t.assigned_to_id})
    project = session.get(Project, t.project_id)
    return TicketMail.of(t, users, project.name if project else None)


def schedule_created_notifications(
    session: Session,
    t: Ticket,
    actor: User,
    notifier: Notifier,
    background: BackgroundTasks,
) -> None:
    if t.assigned_to_id is None or t.assigned_to_id == actor.id:
        return
    snapshot = _mail_snapshot(session, t)
    if snapshot.assignee:
        background.add_task(notifier.send_assignment, snapshot, snapshot.assignee, MailTarget.of(actor))


def schedule_update_notifications(
    session: Session,
    result: TicketUpdateResult,
    actor: User,
    notifier: Notifier,
    background: BackgroundTasks,
) -> None:
    t = result.ticket
    notify_assignee = result.assignment_changed and t.assigned_to_id is not None and t.assigned_to_id != actor.id
    notify_update = bool(result.changes) and (t.assigned_to_id is not None or result.assignment_changed)
    if not (notify_assignee or notify_update):
        return

    snapshot = _mail_snapshot(session, t)
    actor_target = MailTarget.of(actor)
    if notify_assignee and snapshot.assignee:
        background.add_task(notifier.send_assignment, snapshot, snapshot.assignee, actor_target)
    if notify_update:
        background.add_task(notifier.send_update, snapshot, actor_target, result.changes)
