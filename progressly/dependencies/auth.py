from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from progressly.db.session import get_db
from progressly.models.user import User
from progressly.utils.auth import verify_token
from progressly.utils.permissions import is_admin


def _user_id_from_header(authorization: Optional[str]) -> Optional[int]:
    """Returns the user id carried by a bearer token, or None if the header is absent or unusable."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.replace("Bearer ", "").strip()
    if not token or token.lower() in ["null", "undefined", "none"]:
        return None
    payload = verify_token(token)
    if not payload or not payload.get("sub"):
        return None
    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        return None


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    """
    FastAPI dependency for authenticated routes.
    401 when there is no valid session, 403 when the account is deactivated.
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )

    user_id = _user_id_from_header(authorization)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )
    if user.is_deactivated:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated"
        )
    return user


def get_optional_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Same as get_current_user but anonymous requests get None instead of a 401."""
    user_id = _user_id_from_header(authorization)
    if user_id is None:
        return None
    user = db.query(User).filter(User.id == user_id).first()
    if not user or user.is_deactivated:
        return None
    return user


def get_admin_user(user: User = Depends(get_current_user)) -> User:
    if not is_admin(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden"
        )
    return user
