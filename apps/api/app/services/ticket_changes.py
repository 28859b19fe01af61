"""Field-level diff of a ticket before and after an update.

Only five fields are ever compared, so the result is a fixed record with one
optional slot per field rather than an open mapping. A slot is filled only
when the value actually changed.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..models.ticket import Ticket

UNASSIGNED_LABEL = "Unassigned"

FIELD_LABELS = {
    "title": "Title",
    "description": "Description",
    "status": "Status",
    "priority": "Priority",
    "assigned_to": "Assigned To",
}


@dataclass(frozen=True)
class TicketState:
    title: str
    description: str
    status: str
    priority: str
    assigned_to_id: int | None

    @classmethod
    def of(cls, ticket: Ticket) -> "TicketState":
        return cls(
            title=ticket.title,
            description=ticket.description,
            status=ticket.status,
            priority=ticket.priority,
            assigned_to_id=ticket.assigned_to_id,
        )


@dataclass(frozen=True)
class FieldChange:
    old: str
    new: str


@dataclass(frozen=True)
class AssigneeChange:
    old_id: int | None
    new_id: int | None
    old_label: str = UNASSIGNED_LABEL
    new_label: str = UNASSIGNED_LABEL


@dataclass(frozen=True)
class TicketChanges:
    title: FieldChange | None = None
    description: FieldChange | None = None
    status: FieldChange | None = None
    priority: FieldChange | None = None
    assigned_to: AssigneeChange | None = None

    def fields(self) -> list[str]:
        return [name for name in FIELD_LABELS if getattr(self, name) is not None]

    def __bool__(self) -> bool:
        return bool(self.fields())

    def rows(self) -> list[tuple[str, str, str]]:
        """(label, old, new) triples for rendering in mail."""
        rows: list[tuple[str, str, str]] = []
        for name in self.fields():
            change = getattr(self, name)
            if isinstance(change, AssigneeChange):
                rows.append((FIELD_LABELS[name], change.old_label, change.new_label))
            else:
                rows.append((FIELD_LABELS[name], change.old, change.new))
        return rows


def _text_change(old: str, new: str) -> FieldChange | None:
    if old == new:
        return None
    return FieldChange(old=old, new=new)


def diff_ticket(
    before: TicketState,
    after: TicketState,
    user_names: dict[int, str] | None = None,
) -> TicketChanges:
    names = user_names or {}

    def label(user_id: int | None) -> str:
        if user_id is None:
            return UNASSIGNED_LABEL
        return names.get(user_id, f"User #{user_id}")

    assigned_to = None
    if before.assigned_to_id != after.assigned_to_id:
        assigned_to = AssigneeChange(
            old_id=before.assigned_to_id,
            new_id=after.assigned_to_id,
            old_label=label(before.assigned_to_id),
            new_label=label(after.assigned_to_id),
        )

    return TicketChanges(
        title=_text_change(before.title, after.title),
        description=_text_change(before.description, after.description),
        status=_text_change(before.status, after.status),
        priority=_text_change(before.priority, after.priority),
        assigned_to=assigned_to,
    )
