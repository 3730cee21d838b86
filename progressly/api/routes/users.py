"""
Account routes: soft delete and restore.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from progressly.db.session import get_db
from progressly.dependencies.auth import get_current_user
from progressly.models.user import User
from progressly.schemas.users import RestoreAccountRequest
from progressly.services import accounts
from progressly.utils.responses import raise_for_result

router = APIRouter()


@router.delete("")
def deactivate_account(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Deactivate the account. It can be restored for 7 days, then it is purged."""
    accounts.deactivate_user(db, user)
    return {
        "success": True,
        "message": f"Account deactivated. You can restore it within {accounts.RESTORE_WINDOW_DAYS} days.",
    }


@router.post("/restore")
def restore_account(body: RestoreAccountRequest, db: Session = Depends(get_db)):
    raise_for_result(accounts.restore_user(db, body.email))
    return {"success": True, "message": "Account restored successfully! You can now log in."}
