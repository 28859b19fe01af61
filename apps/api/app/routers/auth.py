from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..schemas.auth import LoginIn, RegisterIn, TokenOut
from ..schemas.common import DataOut, EmptyOut, ListOut, PathId, ok, ok_list
from ..schemas.user import UserOut, UserUpdateIn
from ..core.current_user import get_current_admin, get_current_user
from ..core.errors import AuthError, ValidationError
from ..core.security import verify_password, create_access_token
from ..models.user import User
from ..services import user_service
from ..db import get_session

router = APIRouter(prefix="/auth", tags=["auth"])


def token_response(user: User) -> dict:
    return ok({"token": create_access_token(str(user.id), user.role), "user": user})


@router.post("/register", response_model=DataOut[TokenOut])
def register(payload: RegisterIn, session: Session = Depends(get_session)):
    user = user_service.create_user(
        session,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    return token_response(user)


@router.post("/login", response_model=DataOut[TokenOut])
def login(payload: LoginIn, session: Session = Depends(get_session)):
    if not payload.email or not payload.password:
        raise ValidationError("Please provide an email and password")
    user = user_service.find_by_email(session, payload.email)
    # same message for unknown email and wrong password
    if not user or not verify_password(payload.password, user.password_hash):
        raise AuthError("Invalid credentials")
    return token_response(user)


@router.get("/me", response_model=DataOut[UserOut])
def me(user: User = Depends(get_current_user)):
    return ok(user)


@router.get("/users", response_model=ListOut[UserOut])
def list_users(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return ok_list(user_service.list_users(session))


@router.put("/users/{user_id}", response_model=DataOut[UserOut])
def update_user(
    user_id: PathId,
    payload: UserUpdateIn,
    session: Session = Depends(get_session),
    admin: User = Depends(get_current_admin),
):
    return ok(user_service.update_user(session, user_id, payload))


@router.delete("/users/{user_id}", response_model=EmptyOut)
def delete_user(
    user_id: PathId,
    session: Session = Depends(get_session),
    admin: User = Depends(get_current_admin),
):
    user_service.delete_user(session, user_id, admin)
    return ok({})
