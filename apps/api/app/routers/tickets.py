import logging
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ..db import get_session
from ..core.current_user import get_current_user
from ..models.user import User
from ..schemas.common import DataOut, EmptyOut, ListOut, PathId, ok, ok_list
from ..schemas.ticket import TicketCreateIn, TicketOut, TicketUpdateIn
from ..services import ticket_service
from ..services.mail_events import Notifier, get_notifier
from ..services.ticket_service import TicketFilters

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tickets"])


@router.get("/projects/{project_id}/tickets", response_model=ListOut[TicketOut])
def list_tickets(
    project_id: PathId,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
    search: str | None = Query(default=None),
    status: str | None = Query(default=None),
    priority: str | None = Query(default=None),
    assigned_to: str | None = Query(default=None, alias="assignedTo"),
):
    filters = TicketFilters(search=search, status=status, priority=priority, assigned_to=assigned_to)
    tickets = ticket_service.list_tickets(session, project_id, filters)
    return ok_list(ticket_service.serialize_tickets(session, tickets))


@router.post("/projects/{project_id}/tickets", response_model=DataOut[TicketOut], status_code=201)
def create_ticket(
    project_id: PathId,
    payload: TicketCreateIn,
    background: BackgroundTasks,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    t = ticket_service.create_ticket(session, project_id, payload, user)
    try:
        ticket_service.schedule_created_notifications(session, t, user, notifier, background)
    except Exception:
        logger.exception("failed to schedule assignment mail (ticket_id=%s)", t.id)
    return ok(ticket_service.serialize_tickets(session, [t])[0])


@router.get("/tickets/{ticket_id}", response_model=DataOut[TicketOut])
def get_ticket(
    ticket_id: PathId,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    t = ticket_service.get_ticket_or_404(session, ticket_id)
    return ok(ticket_service.serialize_tickets(session, [t], with_project_description=True)[0])


@router.put("/tickets/{ticket_id}", response_model=DataOut[TicketOut])
def update_ticket(
    ticket_id: PathId,
    payload: TicketUpdateIn,
    background: BackgroundTasks,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    result = ticket_service.update_ticket(session, ticket_id, payload, user)
    try:
        ticket_service.schedule_update_notifications(session, result, user, notifier, background)
    except Exception:
        logger.exception("failed to schedule ticket update mail (ticket_id=%s)", ticket_id)
    return ok(ticket_service.serialize_tickets(session, [result.ticket])[0])


@router.delete("/tickets/{ticket_id}", response_model=EmptyOut)
def delete_ticket(
    ticket_id: PathId,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    ticket_service.delete_ticket(session, ticket_id, user)
    return ok({})
