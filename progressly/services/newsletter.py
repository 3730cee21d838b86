import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from progressly.core.results import OperationResult
from progressly.models.newsletter_subscriber import NewsletterSubscriber
from progressly.utils.validation import is_valid_email, normalize_email

logger = logging.getLogger(__name__)


def subscribe(db: Session, email: str) -> OperationResult:
    """Add an email to the newsletter list. Duplicates are rejected."""
    if not is_valid_email(email):
        return OperationResult.fail("Please provide a valid email address")

    email = normalize_email(email)
    if db.query(NewsletterSubscriber).filter(NewsletterSubscriber.email == email).first():
        return OperationResult.fail("You're already subscribed!")

    db.add(NewsletterSubscriber(email=email))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return OperationResult.fail("You're already subscribed!")

    logger.info("Newsletter subscription added for %s", email)
    return OperationResult.ok()
