from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Protocol

from fastapi import Request

from ..models.ticket import Ticket
from ..models.user import User
from .mail_notifications import ticket_link, wrap_template
from .mail_service import MailPayload, normalize_email
from .ticket_changes import TicketChanges

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    @property
    def configured(self) -> bool: ...

    def send(self, payload: MailPayload) -> None: ...


@dataclass(frozen=True)
class MailTarget:
    user_id: int
    name: str
    email: str | None

    @classmethod
    def of(cls, user: User) -> "MailTarget":
        return cls(user_id=user.id, name=user.name, email=user.email)


@dataclass(frozen=True)
class TicketMail:
    """Detached copy of a ticket, safe to use after the request session closes."""

    id: int
    title: str
    description: str
    status: str
    priority: str
    project_id: int
    project_name: str | None
    submitter: MailTarget | None
    assignee: MailTarget | None

    @classmethod
    def of(
        cls,
        ticket: Ticket,
        users: dict[int, User],
        project_name: str | None = None,
    ) -> "TicketMail":
        submitter = users.get(ticket.submitter_id)
        assignee = users.get(ticket.assigned_to_id) if ticket.assigned_to_id else None
        return cls(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            status=ticket.status,
            priority=ticket.priority,
            project_id=ticket.project_id,
            project_name=project_name,
            submitter=MailTarget.of(submitter) if submitter else None,
            assignee=MailTarget.of(assignee) if assignee else None,
        )


def _build_subject(summary: str) -> str:
    return f"[BugTracker] {summary}"


def update_recipients(ticket: TicketMail, actor: MailTarget) -> list[str]:
    """Assignee and submitter, minus the actor and anyone without an email."""
    seen: set[int] = set()
    out: list[str] = []
    for party in (ticket.assignee, ticket.submitter):
        if party is None or party.user_id == actor.user_id or party.user_id in seen:
            continue
        seen.add(party.user_id)
        if party.email:
            out.append(party.email)
    return out


class Notifier:
    """Best-effort ticket mail. Nothing here raises to the caller."""

    def __init__(self, mailer: Mailer, *, base_url: str):
        self.mailer = mailer
        self.base_url = base_url

    @property
    def configured(self) -> bool:
        return self.mailer.configured

    def deliver(self, payload: MailPayload) -> bool:
        if not self.configured:
            logger.info("SMTP not configured, skipping mail. event=%s ticket_id=%s", payload.event_type, payload.ticket_id)
            return False

        recipients = [addr for addr in (normalize_email(r) for r in payload.recipients) if addr]
        if not recipients:
            logger.info("No valid recipients, skipping mail. event=%s ticket_id=%s", payload.event_type, payload.ticket_id)
            return False
        payload.recipients = recipients

        try:
            self.mailer.send(payload)
        except Exception:  # noqa: BLE001 - mail must never fail the request
            logger.exception("Mail send failed. event=%s ticket_id=%s", payload.event_type, payload.ticket_id)
            return False
        logger.info("Mail sent. event=%s ticket_id=%s to=%s", payload.event_type, payload.ticket_id, recipients)
        return True

    def send_assignment(self, ticket: TicketMail, assignee: MailTarget, actor: MailTarget) -> bool:
        if not self.configured or not assignee.email:
            return False
        summary = "A ticket has been assigned to you."
        fields = [
            ("Ticket", ticket.title),
            ("Description", ticket.description),
            ("Project", ticket.project_name or "N/A"),
            ("Assigned by", actor.name),
        ]
        text, body = wrap_template(
            alert_type="New Ticket Assignment",
            summary=summary,
            fields=fields,
            status=ticket.status,
            priority=ticket.priority,
            link_url=ticket_link(self.base_url, ticket.project_id),
        )
        return self.deliver(
            MailPayload(
                event_type="ticket_assigned",
                subject=_build_subject(f"New Ticket Assignment: {ticket.title}"),
                body_text=text,
                body_html=body,
                recipients=[assignee.email],
                ticket_id=ticket.id,
            )
        )

    def send_update(self, ticket: TicketMail, actor: MailTarget, changes: TicketChanges) -> bool:
        if not self.configured or not changes:
            return False
        recipients = update_recipients(ticket, actor)
        if not recipients:
            return False
        fields = [
            ("Ticket", ticket.title),
            ("Project", ticket.project_name or "N/A"),
            ("Updated by", actor.name),
        ]
        text, body = wrap_template(
            alert_type="Ticket Updated",
            summary="A ticket you are involved in was updated.",
            fields=fields,
            status=ticket.status,
            priority=ticket.priority,
            link_url=ticket_link(self.base_url, ticket.project_id),
            changes=changes.rows(),
        )
        return self.deliver(
            MailPayload(
                event_type="ticket_updated",
                subject=_build_subject(f"Ticket Updated: {ticket.title}"),
                body_text=text,
                body_html=body,
                recipients=recipients,
                ticket_id=ticket.id,
            )
        )


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier
