"""
Account lifecycle: soft delete with a restore window, admin user management
and manual plan upgrades.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from progressly.core.plan_limits import PlanTier, parse_plan_tier
from progressly.core.results import OperationResult
from progressly.models.subscription import Subscription
from progressly.models.user import User
from progressly.utils.validation import normalize_email

logger = logging.getLogger(__name__)

RESTORE_WINDOW_DAYS = 7
USER_ROLES = ("user", "admin")


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def deactivate_user(db: Session, user: User) -> User:
    """Soft delete: the account can be restored for RESTORE_WINDOW_DAYS days."""
    user.is_deactivated = True
    user.deactivated_at = datetime.utcnow()
    db.commit()
    db.refresh(user)
    logger.info("User %s deactivated", user.id)
    return user


def restore_user(db: Session, email: str, now: Optional[datetime] = None) -> OperationResult:
    if not email:
        return OperationResult.fail("Email is required")

    user = get_user_by_email(db, email)
    if not user:
        return OperationResult.fail("No account found with this email", not_found=True)
    if not user.is_deactivated:
        return OperationResult.fail("This account is not deactivated")

    now = now or datetime.utcnow()
    if user.deactivated_at and now - user.deactivated_at >= timedelta(days=RESTORE_WINDOW_DAYS):
        return OperationResult.fail(
            f"The {RESTORE_WINDOW_DAYS}-day restoration window has passed. This account cannot be restored."
        )

    user.is_deactivated = False
    user.deactivated_at = None
    db.commit()
    logger.info("User %s restored", user.id)
    return OperationResult.ok(user)


def purge_expired_accounts(db: Session, now: Optional[datetime] = None) -> int:
    """Hard-delete accounts whose restore window has passed. Returns the number deleted."""
    now = now or datetime.utcnow()
    cutoff = now - timedelta(days=RESTORE_WINDOW_DAYS)
    expired = db.query(User).filter(
        User.is_deactivated.is_(True),
        User.deactivated_at <= cutoff,
    ).all()
    for user in expired:
        db.delete(user)
    db.commit()
    if expired:
        logger.info("Purged %s deactivated account(s)", len(expired))
    return len(expired)


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def update_user_role(db: Session, user_id: int, role: str) -> OperationResult:
    if role not in USER_ROLES:
        return OperationResult.fail("Invalid role")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        return OperationResult.fail("User not found", not_found=True)
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info("User %s role set to %s", user_id, role)
    return OperationResult.ok(user)


def delete_user(db: Session, acting_admin: User, user_id: int) -> OperationResult:
    if user_id == acting_admin.id:
        return OperationResult.fail("Cannot delete yourself")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        return OperationResult.fail("User not found", not_found=True)
    db.delete(user)
    db.commit()
    logger.info("User %s deleted by admin %s", user_id, acting_admin.id)
    return OperationResult.ok()


def upgrade_user(db: Session, email: str, plan_tier: str, days: int = 30) -> OperationResult:
    """Grant a plan manually (support/testing), without a Stripe subscription."""
    tier = parse_plan_tier(plan_tier)
    user = get_user_by_email(db, email)
    if not user:
        return OperationResult.fail("No account found with this email", not_found=True)

    subscription = db.query(Subscription).filter(Subscription.user_id == user.id).first()
    if not subscription:
        subscription = Subscription(user_id=user.id)
        db.add(subscription)

    subscription.plan_tier = tier.value
    if tier == PlanTier.FREE:
        subscription.status = "inactive"
        subscription.stripe_price_id = None
        subscription.current_period_end = None
    else:
        subscription.status = "active"
        subscription.stripe_price_id = f"manual_{tier.value}"
        subscription.current_period_end = datetime.utcnow() + timedelta(days=days)
    db.commit()
    logger.info("User %s manually set to %s plan", user.id, tier.value)
    return OperationResult.ok(subscription)
