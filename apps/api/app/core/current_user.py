from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import jwt

from ..db import get_session
from ..models.user import User
from .access import require_authenticated, require_role
from .errors import AuthError
from .security import decode_token

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    session: Session = Depends(get_session),
) -> User:
    if not creds:
        raise AuthError()

    try:
        payload = decode_token(creds.credentials)
        user_id = int(payload["sub"])
    except (jwt.PyJWTError, KeyError, TypeError, ValueError):
        raise AuthError()

    return require_authenticated(session.get(User, user_id))


def get_current_admin(user: User = Depends(get_current_user)) -> User:
    require_role(user, "admin")
    return user
