"""Role and ownership checks shared by the routers."""
from ..models.user import User
from .errors import AuthError, AuthzError, ValidationError


def is_admin(user: User) -> bool:
    return user.role == "admin"


def require_authenticated(user: User | None) -> User:
    if user is None:
        raise AuthError()
    return user


def require_role(user: User, role: str) -> None:
    if user.role != role:
        if role == "admin":
            raise AuthzError("Access denied. Admin role required.")
        raise AuthzError()


def forbid_self_deletion(user: User, target_id: int) -> None:
    if user.id == target_id:
        raise ValidationError("Cannot delete your own account")
