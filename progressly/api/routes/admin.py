"""
Admin Routes
Affiliate review, payout processing, support ticket moderation and user management.
Every route requires an admin (401 without a session, 403 for non-admins).
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from progressly.db.session import get_db
from progressly.dependencies.auth import get_admin_user
from progressly.models.user import User
from progressly.schemas.affiliate import (
    AffiliateResponse,
    AffiliateStatusUpdate,
    PayoutProcessRequest,
    PayoutResponse,
)
from progressly.schemas.tickets import AdminTicketResponse, TicketMessageCreate, TicketMessageResponse
from progressly.schemas.users import UserResponse, UserRoleUpdate
from progressly.services import accounts, affiliate as affiliate_service, tickets as ticket_service
from progressly.utils.responses import raise_for_result

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Affiliates ---

@router.get("/affiliates")
def list_affiliates(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    affiliates = affiliate_service.list_affiliates(db, status=status_filter)
    return {"success": True, "affiliates": [AffiliateResponse.model_validate(a) for a in affiliates]}


@router.patch("/affiliates/{affiliate_id}")
def update_affiliate_status(
    affiliate_id: int,
    body: AffiliateStatusUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    result = raise_for_result(affiliate_service.change_affiliate_status(db, affiliate_id, body.action))
    logger.info("Admin %s applied %s to affiliate %s", admin.id, body.action, affiliate_id)
    return {"success": True, "affiliate": AffiliateResponse.model_validate(result.data)}


# --- Payouts ---

@router.get("/payouts")
def list_payouts(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    payouts = affiliate_service.list_payouts(db, status=status_filter)
    return {
        "success": True,
        "payouts": [
            {
                **PayoutResponse.model_validate(payout).model_dump(),
                "affiliate": {
                    "id": payout.affiliate.id,
                    "email": payout.affiliate.email,
                    "affiliate_code": payout.affiliate.affiliate_code,
                    "first_name": payout.affiliate.first_name,
                    "last_name": payout.affiliate.last_name,
                },
            }
            for payout in payouts
        ],
    }


@router.patch("/payouts/{payout_id}")
def process_payout(
    payout_id: int,
    body: PayoutProcessRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    """Complete or reject a pending payout. A payout that is no longer pending is a 400."""
    raise_for_result(affiliate_service.process_payout(db, payout_id, body.action, body.notes))
    logger.info("Admin %s processed payout %s (%s)", admin.id, payout_id, body.action)
    return {"success": True}


# --- Support tickets ---

def _admin_ticket(ticket) -> AdminTicketResponse:
    data = AdminTicketResponse.model_validate(ticket)
    data.user_email = ticket_service.ticket_owner_email(ticket)
    return data


def _get_ticket_or_404(db: Session, ticket_id: int):
    ticket = ticket_service.get_ticket(db, ticket_id)
    if not ticket:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    return ticket


@router.get("/tickets")
def list_tickets(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    tickets = ticket_service.list_all_tickets(db, status=status_filter)
    return {"success": True, "tickets": [_admin_ticket(t) for t in tickets]}


@router.delete("/tickets/{ticket_id}")
def delete_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    ticket_service.delete_ticket(db, _get_ticket_or_404(db, ticket_id))
    return {"success": True}


@router.post("/tickets/{ticket_id}/close")
def close_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    ticket = ticket_service.close_ticket(db, _get_ticket_or_404(db, ticket_id))
    return {"success": True, "ticket": _admin_ticket(ticket)}


@router.post("/tickets/{ticket_id}/reply")
def reply_to_ticket(
    ticket_id: int,
    body: TicketMessageCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    ticket = _get_ticket_or_404(db, ticket_id)
    message = ticket_service.add_admin_reply(db, ticket, body.content)
    return {"success": True, "message": TicketMessageResponse.model_validate(message)}


# --- Users ---

@router.get("/users")
def list_users(
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    return {"success": True, "users": [UserResponse.model_validate(u) for u in accounts.list_users(db)]}


@router.patch("/users/{user_id}")
def update_user_role(
    user_id: int,
    body: UserRoleUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    result = raise_for_result(accounts.update_user_role(db, user_id, body.role))
    return {"success": True, "user": UserResponse.model_validate(result.data)}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    raise_for_result(accounts.delete_user(db, admin, user_id))
    return {"success": True}
