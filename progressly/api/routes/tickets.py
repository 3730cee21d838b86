"""
Support ticket routes for the signed-in user.
A ticket owned by someone else is reported as not found.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from progressly.db.session import get_db
from progressly.dependencies.auth import get_current_user
from progressly.models.user import User
from progressly.schemas.tickets import (
    TicketCreate,
    TicketMessageCreate,
    TicketMessageResponse,
    TicketResponse,
    TicketStatusUpdate,
)
from progressly.services import tickets as ticket_service

router = APIRouter()


def _get_owned_ticket(db: Session, ticket_id: int, user: User):
    ticket = ticket_service.get_user_ticket(db, ticket_id, user)
    if not ticket:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    return ticket


@router.get("")
def list_tickets(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    tickets = ticket_service.list_user_tickets(db, user.id)
    return {"success": True, "tickets": [TicketResponse.model_validate(t) for t in tickets]}


@router.post("")
def create_ticket(
    body: TicketCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not body.title.strip() or not body.description.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title and description are required")
    ticket = ticket_service.create_ticket(db, user.id, body.title, body.description)
    return {"success": True, "ticket": TicketResponse.model_validate(ticket)}


@router.patch("/{ticket_id}")
def update_ticket(
    ticket_id: int,
    body: TicketStatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Close or reopen one of the user's tickets."""
    if body.status not in ticket_service.TICKET_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status")
    ticket = _get_owned_ticket(db, ticket_id, user)
    ticket = ticket_service.set_ticket_status(db, ticket, body.status)
    return {"success": True, "ticket": TicketResponse.model_validate(ticket)}


@router.delete("/{ticket_id}")
def delete_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    ticket_service.delete_ticket(db, _get_owned_ticket(db, ticket_id, user))
    return {"success": True}


@router.post("/{ticket_id}/messages")
def add_message(
    ticket_id: int,
    body: TicketMessageCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    ticket = _get_owned_ticket(db, ticket_id, user)
    if not body.content.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message content is required")
    message = ticket_service.add_user_message(db, ticket, body.content)
    return {"success": True, "message": TicketMessageResponse.model_validate(message)}
