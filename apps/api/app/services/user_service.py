from __future__ import annotations

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from ..core.access import forbid_self_deletion
from ..core.errors import NotFoundError, ValidationError
from ..core.security import hash_password
from ..models.project import Project
from ..models.project_member import ProjectMember
from ..models.ticket import Ticket
from ..models.user import User
from ..schemas.user import UserUpdateIn

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_by_email(session: Session, email: str) -> User | None:
    return session.scalar(select(User).where(User.email == normalize_email(email)))


def list_users(session: Session) -> list[User]:
    return list(session.scalars(select(User).order_by(User.id.asc())).all())


def get_user_or_404(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def create_user(session: Session, *, name: str, email: str, password: str, role: str = "employee") -> User:
    if find_by_email(session, email):
        raise ValidationError("Email already registered")
    user = User(
        name=name,
        email=normalize_email(email),
        password_hash=hash_password(password),
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def update_user(session: Session, user_id: int, payload: UserUpdateIn) -> User:
    user = get_user_or_404(session, user_id)
    fields = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in fields:
        email = normalize_email(fields["email"])
        other = find_by_email(session, email)
        if other and other.id != user.id:
            raise ValidationError("Email already registered")
        user.email = email
    if "name" in fields:
        user.name = fields["name"]
    if "role" in fields:
        user.role = fields["role"]

    session.commit()
    session.refresh(user)
    return user


def delete_user(session: Session, user_id: int, actor: User) -> None:
    user = get_user_or_404(session, user_id)
    forbid_self_deletion(actor, user.id)

    owned = session.scalar(select(func.count(Project.id)).where(Project.owner_id == user.id))
    submitted = session.scalar(select(func.count(Ticket.id)).where(Ticket.submitter_id == user.id))
    if owned or submitted:
        raise ValidationError("User still owns projects or submitted tickets")

    session.execute(update(Ticket).where(Ticket.assigned_to_id == user.id).values(assigned_to_id=None))
    session.execute(delete(ProjectMember).where(ProjectMember.user_id == user.id))
    session.delete(user)
    session.commit()
    logger.info("user %s deleted by %s", user_id, actor.id)
