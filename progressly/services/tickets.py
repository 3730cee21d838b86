"""
Support ticket lifecycle.

Tickets are open or closed and can be reopened. Messages are append-only and
ordered by creation time. User-facing lookups go through owns_resource, so a
ticket that belongs to someone else looks exactly like a missing one.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from progressly.models.support_ticket import SupportTicket, TicketMessage
from progressly.models.user import User
from progressly.utils.permissions import owns_resource

logger = logging.getLogger(__name__)

TICKET_STATUSES = ("open", "closed")


def list_user_tickets(db: Session, user_id: int) -> List[SupportTicket]:
    return db.query(SupportTicket).options(
        selectinload(SupportTicket.messages)
    ).filter(
        SupportTicket.user_id == user_id
    ).order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc()).all()


def create_ticket(db: Session, user_id: int, title: str, description: str) -> SupportTicket:
    ticket = SupportTicket(user_id=user_id, title=title.strip(), description=description.strip(), status="open")
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    logger.info("Ticket %s opened by user %s", ticket.id, user_id)
    return ticket


def get_user_ticket(db: Session, ticket_id: int, user: User) -> Optional[SupportTicket]:
    """Fetch a ticket only if it belongs to the user. Anything else reads as absent."""
    ticket = get_ticket(db, ticket_id)
    return ticket if owns_resource(user, ticket) else None


def get_ticket(db: Session, ticket_id: int) -> Optional[SupportTicket]:
    return db.query(SupportTicket).filter(SupportTicket.id == ticket_id).first()


def set_ticket_status(db: Session, ticket: SupportTicket, status: str) -> SupportTicket:
    """Close or reopen a ticket."""
    if status not in TICKET_STATUSES:
        raise ValueError(f"Invalid ticket status: {status}")
    ticket.status = status
    db.commit()
    db.refresh(ticket)
    logger.info("Ticket %s is now %s", ticket.id, status)
    return ticket


def close_ticket(db: Session, ticket: SupportTicket) -> SupportTicket:
    return set_ticket_status(db, ticket, "closed")


def _add_message(db: Session, ticket: SupportTicket, content: str, is_admin: bool) -> TicketMessage:
    message = TicketMessage(ticket_id=ticket.id, content=content.strip(), is_admin=is_admin)
    db.add(message)
    return message


def add_user_message(db: Session, ticket: SupportTicket, content: str) -> TicketMessage:
    message = _add_message(db, ticket, content, is_admin=False)
    db.commit()
    db.refresh(message)
    return message


def add_admin_reply(db: Session, ticket: SupportTicket, content: str) -> TicketMessage:
    """Append an admin message and bump the ticket's updated_at."""
    message = _add_message(db, ticket, content, is_admin=True)
    ticket.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(message)
    logger.info("Admin replied to ticket %s", ticket.id)
    return message


def delete_ticket(db: Session, ticket: SupportTicket) -> None:
    """Permanently delete a ticket and its messages."""
    ticket_id = ticket.id
    db.delete(ticket)
    db.commit()
    logger.info("Ticket %s deleted", ticket_id)


def list_all_tickets(db: Session, status: Optional[str] = None) -> List[SupportTicket]:
    """Admin view: most recently active first."""
    query = db.query(SupportTicket).options(
        selectinload(SupportTicket.messages),
        selectinload(SupportTicket.user),
    )
    if status:
        query = query.filter(SupportTicket.status == status)
    return query.order_by(SupportTicket.updated_at.desc(), SupportTicket.id.desc()).all()


def ticket_owner_email(ticket: SupportTicket) -> Optional[str]:
    user: Optional[User] = ticket.user
    return user.email if user else None
