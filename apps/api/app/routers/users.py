from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.current_user import get_current_admin, get_current_user
from ..db import get_session
from ..models.user import User
from ..schemas.common import DataOut, EmptyOut, ListOut, PathId, ok, ok_list
from ..schemas.user import UserOut, UserUpdateIn
from ..services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=ListOut[UserOut])
def list_users(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return ok_list(user_service.list_users(session))


@router.get("/{user_id}", response_model=DataOut[UserOut])
def get_user(
    user_id: PathId,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return ok(user_service.get_user_or_404(session, user_id))


@router.put("/{user_id}", response_model=DataOut[UserOut])
def update_user(
    user_id: PathId,
    payload: UserUpdateIn,
    session: Session = Depends(get_session),
    admin: User = Depends(get_current_admin),
):
    return ok(user_service.update_user(session, user_id, payload))


@router.delete("/{user_id}", response_model=EmptyOut)
def delete_user(
    user_id: PathId,
    session: Session = Depends(get_session),
    admin: User = Depends(get_current_admin),
):
    user_service.delete_user(session, user_id, admin)
    return ok({})
