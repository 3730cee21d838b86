"""
Affiliate program: applications, referral attribution, commissions and payouts.

Earnings invariant, kept by every function that touches money here:
    total_earnings == pending_earnings + paid_earnings

Commissions credit total and pending together. Completing a payout moves its
amount from pending to paid. Requesting a payout debits nothing; payouts that
are still pending only reserve part of the pending balance (see
get_available_balance).
"""
import logging
import os
import secrets
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from progressly.core.results import OperationResult
from progressly.models.affiliate import Affiliate, Commission, Payout, Referral
from progressly.models.user import User
from progressly.utils.validation import is_valid_email, normalize_email

logger = logging.getLogger(__name__)

# Commission rate as a decimal (25%)
COMMISSION_RATE = Decimal("0.25")

# Minimum payout amount in dollars
MINIMUM_PAYOUT = Decimal("50")

# Referral cookie lifetime in days
COOKIE_DURATION_DAYS = 30

APP_URL = os.getenv("APP_URL", "http://localhost:3000")

DUPLICATE_APPLICATION_ERROR = "An affiliate application with this email already exists"
EXISTING_APPLICATION_ERROR = "You already have an affiliate application"

PAYOUT_ACTIONS = ("complete", "reject")

# action -> (statuses it may be applied from, resulting status)
AFFILIATE_TRANSITIONS = {
    "approve": (("pending", "suspended"), "approved"),
    "reject": (("pending",), "rejected"),
    "suspend": (("approved",), "suspended"),
}

CENT = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def generate_affiliate_code() -> str:
    """Random 8-character upper-case hex code."""
    return secrets.token_hex(4).upper()


def _unique_affiliate_code(db: Session) -> str:
    while True:
        code = generate_affiliate_code()
        if not db.query(Affiliate.id).filter(Affiliate.affiliate_code == code).first():
            return code


def referral_link(affiliate: Affiliate) -> str:
    return f"{APP_URL}/?ref={affiliate.affiliate_code}"


def get_affiliate_by_user_id(db: Session, user_id: int) -> Optional[Affiliate]:
    return db.query(Affiliate).filter(Affiliate.user_id == user_id).first()


def get_affiliate_by_code(db: Session, code: str) -> Optional[Affiliate]:
    if not code:
        return None
    return db.query(Affiliate).filter(Affiliate.affiliate_code == code.strip().upper()).first()


def claim_affiliate_for_user(db: Session, user: User) -> Optional[Affiliate]:
    """
    Attach a public application made with the user's email before the
    account existed. Returns the user's affiliate record, if any.
    """
    affiliate = get_affiliate_by_user_id(db, user.id)
    if affiliate:
        return affiliate

    affiliate = db.query(Affiliate).filter(
        Affiliate.email == normalize_email(user.email),
        Affiliate.user_id.is_(None),
    ).first()
    if affiliate:
        affiliate.user_id = user.id
        db.commit()
        db.refresh(affiliate)
        logger.info("Linked affiliate %s to user %s", affiliate.id, user.id)
    return affiliate


def _persist_application(db: Session, affiliate: Affiliate) -> OperationResult:
    db.add(affiliate)
    try:
        db.commit()
    except IntegrityError:
        # Unique email/user constraint: a concurrent application won the race
        db.rollback()
        logger.warning("Duplicate affiliate application for %s", affiliate.email)
        return OperationResult.fail(DUPLICATE_APPLICATION_ERROR)
    db.refresh(affiliate)
    logger.info("Affiliate application %s created (%s), awaiting approval", affiliate.id, affiliate.email)
    return OperationResult.ok(affiliate)


def create_affiliate_application(
    db: Session,
    user: User,
    paypal_email: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    date_of_birth: Optional[date] = None,
    has_social_following: bool = False,
    social_handle: Optional[str] = None,
) -> OperationResult:
    """Create a pending affiliate application for a signed-in user."""
    if claim_affiliate_for_user(db, user):
        return OperationResult.fail(EXISTING_APPLICATION_ERROR)
    if paypal_email and not is_valid_email(paypal_email):
        return OperationResult.fail("Please enter a valid PayPal email address")

    email = normalize_email(user.email)
    if db.query(Affiliate.id).filter(Affiliate.email == email).first():
        return OperationResult.fail(DUPLICATE_APPLICATION_ERROR)

    affiliate = Affiliate(
        user_id=user.id,
        email=email,
        affiliate_code=_unique_affiliate_code(db),
        paypal_email=paypal_email.strip() if paypal_email else None,
        first_name=first_name,
        last_name=last_name,
        date_of_birth=date_of_birth,
        has_social_following=bool(has_social_following),
        social_handle=social_handle,
        status="pending",
    )
    return _persist_application(db, affiliate)


def create_public_affiliate_application(
    db: Session,
    email: Optional[str],
    first_name: Optional[str],
    last_name: Optional[str],
    date_of_birth: Optional[date] = None,
    has_social_following: Optional[bool] = False,
    social_handle: Optional[str] = None,
    paypal_email: Optional[str] = None,
) -> OperationResult:
    """
    Create a pending affiliate application from the public form.

    The applicant does not need an account. If one exists for the email the
    application is linked to it, and a user can only apply once.
    """
    if not email or not (first_name or "").strip() or not (last_name or "").strip():
        return OperationResult.fail("Email, first name, and last name are required")
    if not is_valid_email(email):
        return OperationResult.fail("Please enter a valid email address")
    if paypal_email and not is_valid_email(paypal_email):
        return OperationResult.fail("Please enter a valid PayPal email address")

    email = normalize_email(email)
    if db.query(Affiliate.id).filter(Affiliate.email == email).first():
        logger.warning("Rejected duplicate affiliate application for %s", email)
        return OperationResult.fail(DUPLICATE_APPLICATION_ERROR)

    user = db.query(User).filter(func.lower(User.email) == email).first()
    if user and get_affiliate_by_user_id(db, user.id):
        logger.warning("Rejected affiliate application for %s: user %s already applied", email, user.id)
        return OperationResult.fail(DUPLICATE_APPLICATION_ERROR)

    affiliate = Affiliate(
        user_id=user.id if user else None,
        email=email,
        affiliate_code=_unique_affiliate_code(db),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        date_of_birth=date_of_birth,
        has_social_following=bool(has_social_following),
        social_handle=social_handle,
        paypal_email=paypal_email.strip() if paypal_email else email,
        status="pending",
    )
    return _persist_application(db, affiliate)


def change_affiliate_status(db: Session, affiliate_id: int, action: str) -> OperationResult:
    """Admin review: approve, reject or suspend an affiliate."""
    if action not in AFFILIATE_TRANSITIONS:
        return OperationResult.fail("Invalid action")

    affiliate = db.query(Affiliate).filter(Affiliate.id == affiliate_id).first()
    if not affiliate:
        return OperationResult.fail("Affiliate not found", not_found=True)

    allowed_from, new_status = AFFILIATE_TRANSITIONS[action]
    if affiliate.status not in allowed_from:
        return OperationResult.fail(f"Cannot {action} an affiliate that is {affiliate.status}")

    affiliate.status = new_status
    db.commit()
    db.refresh(affiliate)
    logger.info("Affiliate %s is now %s", affiliate.id, new_status)
    return OperationResult.ok(affiliate)


def approve_affiliate(db: Session, affiliate_id: int) -> OperationResult:
    return change_affiliate_status(db, affiliate_id, "approve")


def reject_affiliate(db: Session, affiliate_id: int) -> OperationResult:
    return change_affiliate_status(db, affiliate_id, "reject")


def suspend_affiliate(db: Session, affiliate_id: int) -> OperationResult:
    return change_affiliate_status(db, affiliate_id, "suspend")


def list_affiliates(db: Session, status: Optional[str] = None) -> List[Affiliate]:
    query = db.query(Affiliate)
    if status:
        query = query.filter(Affiliate.status == status)
    return query.order_by(Affiliate.created_at.desc(), Affiliate.id.desc()).all()


def track_referral_click(db: Session, affiliate_code: str) -> Optional[int]:
    """Record a click on an approved affiliate's link. Returns the referral id."""
    affiliate = get_affiliate_by_code(db, affiliate_code)
    if not affiliate or affiliate.status != "approved":
        return None

    referral = Referral(affiliate_id=affiliate.id, status="clicked")
    db.add(referral)
    db.commit()
    db.refresh(referral)
    return referral.id


def link_referral_to_user(
    db: Session, affiliate_code: str, user_id: int, referral_id: Optional[int] = None
) -> Optional[Referral]:
    """
    Attribute a signed-up user to the affiliate whose code they arrived with.
    Reuses the tracked click when its id is known, otherwise creates a new
    referral. A user is only ever attributed once.
    """
    existing = db.query(Referral).filter(Referral.referred_user_id == user_id).first()
    if existing:
        return existing

    affiliate = get_affiliate_by_code(db, affiliate_code)
    if not affiliate or affiliate.status != "approved":
        return None
    if affiliate.user_id == user_id:
        # Self-referrals earn nothing
        return None

    referral = None
    if referral_id:
        referral = db.query(Referral).filter(
            Referral.id == referral_id,
            Referral.affiliate_id == affiliate.id,
            Referral.referred_user_id.is_(None),
        ).first()
    if not referral:
        referral = Referral(affiliate_id=affiliate.id)
        db.add(referral)

    referral.referred_user_id = user_id
    referral.status = "signed_up"
    referral.signed_up_at = datetime.utcnow()
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return db.query(Referral).filter(Referral.referred_user_id == user_id).first()
    db.refresh(referral)
    logger.info("User %s attributed to affiliate %s", user_id, affiliate.id)
    return referral


def record_commission(
    db: Session, user_id: int, payment_amount, stripe_payment_id: str
) -> Optional[Commission]:
    """
    Record the affiliate commission for a payment made by a referred user.
    Returns None when the user was not referred by an approved affiliate.
    A payment id that was already credited is not credited again.
    """
    referral = db.query(Referral).filter(Referral.referred_user_id == user_id).first()
    if not referral or referral.affiliate.status != "approved":
        return None

    if stripe_payment_id:
        already = db.query(Commission).filter(Commission.stripe_payment_id == stripe_payment_id).first()
        if already:
            logger.info("Commission for payment %s already recorded", stripe_payment_id)
            return already

    amount = _money(Decimal(str(payment_amount)) * COMMISSION_RATE)
    commission = Commission(
        affiliate_id=referral.affiliate_id,
        referral_id=referral.id,
        amount=amount,
        stripe_payment_id=stripe_payment_id,
        status="pending",
    )
    db.add(commission)

    if referral.status != "converted":
        referral.status = "converted"
        referral.converted_at = datetime.utcnow()

    # Total and pending move together in one statement
    db.query(Affiliate).filter(Affiliate.id == referral.affiliate_id).update(
        {
            Affiliate.total_earnings: Affiliate.total_earnings + amount,
            Affiliate.pending_earnings: Affiliate.pending_earnings + amount,
        },
        synchronize_session=False,
    )
    db.commit()
    db.refresh(commission)
    logger.info(
        "Recorded commission %s of %s for affiliate %s (user %s)",
        commission.id, amount, referral.affiliate_id, user_id,
    )
    return commission


def get_reserved_amount(db: Session, affiliate_id: int) -> Decimal:
    """Sum of payouts that are requested but not yet processed."""
    reserved = db.query(func.coalesce(func.sum(Payout.amount), 0)).filter(
        Payout.affiliate_id == affiliate_id,
        Payout.status == "pending",
    ).scalar()
    return _money(reserved)


def get_available_balance(db: Session, affiliate: Affiliate) -> Decimal:
    """Pending earnings not already reserved by an open payout request."""
    return _money(affiliate.pending_earnings or 0) - get_reserved_amount(db, affiliate.id)


def request_payout(
    db: Session, affiliate: Affiliate, amount, paypal_email: str
) -> OperationResult:
    """
    Request a payout of `amount` (the whole available balance when None).
    Nothing is debited until an admin completes the payout.
    """
    if affiliate.status != "approved":
        return OperationResult.fail("Affiliate account not approved")
    if not paypal_email or not is_valid_email(paypal_email):
        return OperationResult.fail("PayPal email required")

    available = get_available_balance(db, affiliate)
    if available < MINIMUM_PAYOUT:
        return OperationResult.fail(f"Minimum payout is ${MINIMUM_PAYOUT}")

    payout_amount = available if amount is None else _money(amount)
    if payout_amount <= 0:
        return OperationResult.fail("Payout amount must be greater than zero")
    if payout_amount > available:
        return OperationResult.fail("Insufficient balance")

    payout = Payout(
        affiliate_id=affiliate.id,
        amount=payout_amount,
        paypal_email=paypal_email.strip(),
        status="pending",
    )
    db.add(payout)
    if paypal_email.strip() != affiliate.paypal_email:
        affiliate.paypal_email = paypal_email.strip()
    db.commit()
    db.refresh(payout)
    logger.info("Payout %s of %s requested by affiliate %s", payout.id, payout_amount, affiliate.id)
    return OperationResult.ok(payout)


def _settle_covered_commissions(db: Session, affiliate_id: int) -> None:
    """Mark unpaid commissions paid, oldest first, while paid earnings cover them."""
    paid_earnings = db.query(Affiliate.paid_earnings).filter(Affiliate.id == affiliate_id).scalar()
    already_paid = db.query(func.coalesce(func.sum(Commission.amount), 0)).filter(
        Commission.affiliate_id == affiliate_id,
        Commission.status == "paid",
    ).scalar()
    budget = _money(paid_earnings or 0) - _money(already_paid)

    unpaid = db.query(Commission).filter(
        Commission.affiliate_id == affiliate_id,
        Commission.status.in_(("pending", "approved")),
    ).order_by(Commission.created_at, Commission.id).all()
    for commission in unpaid:
        amount = _money(commission.amount)
        if amount > budget:
            break
        commission.status = "paid"
        budget -= amount


def process_payout(
    db: Session, payout_id: int, action: str, notes: Optional[str] = None
) -> OperationResult:
    """
    Admin decision on a payout request: pending -> completed | rejected.

    Completed and rejected are terminal; processing a payout that is no
    longer pending fails without changing anything, so a repeated
    completion can never pay twice.

    A pending request only reserves its amount. Completing it moves the
    amount from pending to paid earnings and marks the oldest commissions
    the paid total now fully covers as paid. Rejecting it touches no
    earnings, so the reserved amount becomes available again.
    """
    if action not in PAYOUT_ACTIONS:
        return OperationResult.fail("Invalid action")

    payout = db.query(Payout).filter(Payout.id == payout_id).first()
    if not payout:
        return OperationResult.fail("Payout not found", not_found=True)
    if payout.status != "pending":
        logger.warning("Refused to %s payout %s: status is %s", action, payout_id, payout.status)
        return OperationResult.fail(f"Payout is already {payout.status}")

    affiliate_id = payout.affiliate_id
    amount = _money(payout.amount)
    new_status = "completed" if action == "complete" else "rejected"

    try:
        # Conditional update: a concurrent request that got here first leaves zero rows to claim
        claimed = db.query(Payout).filter(
            Payout.id == payout_id,
            Payout.status == "pending",
        ).update(
            {Payout.status: new_status, Payout.processed_at: datetime.utcnow(), Payout.notes: notes},
            synchronize_session=False,
        )
        if claimed != 1:
            db.rollback()
            return OperationResult.fail("Payout is no longer pending")

        if action == "complete":
            moved = db.query(Affiliate).filter(
                Affiliate.id == affiliate_id,
                Affiliate.pending_earnings >= amount,
            ).update(
                {
                    Affiliate.pending_earnings: Affiliate.pending_earnings - amount,
                    Affiliate.paid_earnings: Affiliate.paid_earnings + amount,
                },
                synchronize_session=False,
            )
            if moved != 1:
                db.rollback()
                return OperationResult.fail("Insufficient pending earnings for this payout")

            _settle_covered_commissions(db, affiliate_id)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.expire_all()
    if action == "complete":
        logger.info("Payout %s completed: %s moved to paid for affiliate %s", payout_id, amount, affiliate_id)
    else:
        logger.info("Payout %s rejected: %s released to affiliate %s pending balance", payout_id, amount, affiliate_id)
    return OperationResult.ok()


def list_payouts(db: Session, status: Optional[str] = None, affiliate_id: Optional[int] = None) -> List[Payout]:
    query = db.query(Payout)
    if status:
        query = query.filter(Payout.status == status)
    if affiliate_id:
        query = query.filter(Payout.affiliate_id == affiliate_id)
    return query.order_by(Payout.requested_at.desc(), Payout.id.desc()).all()


def get_affiliate_stats(db: Session, affiliate: Affiliate) -> dict:
    referrals = db.query(Referral).filter(Referral.affiliate_id == affiliate.id).all()
    clicks = len(referrals)
    signups = len([r for r in referrals if r.status in ("signed_up", "converted")])
    conversions = len([r for r in referrals if r.status == "converted"])

    return {
        "clicks": clicks,
        "signups": signups,
        "conversions": conversions,
        "conversion_rate": f"{conversions / clicks * 100:.1f}" if clicks > 0 else "0",
        "total_earnings": _money(affiliate.total_earnings or 0),
        "pending_earnings": _money(affiliate.pending_earnings or 0),
        "paid_earnings": _money(affiliate.paid_earnings or 0),
    }


def earnings_level(earnings) -> str:
    """Badge shown on the public leaderboard instead of the real amount."""
    earnings = Decimal(str(earnings or 0))
    if earnings >= 1000:
        return "diamond"
    if earnings >= 500:
        return "gold"
    if earnings >= 100:
        return "silver"
    if earnings >= 25:
        return "bronze"
    return "starter"


def get_leaderboard(db: Session, limit: int = 20) -> List[dict]:
    affiliates = db.query(Affiliate).filter(
        Affiliate.status == "approved"
    ).order_by(Affiliate.total_earnings.desc(), Affiliate.id).limit(limit).all()

    leaderboard = []
    for rank, affiliate in enumerate(affiliates, start=1):
        signups = db.query(Referral).filter(
            Referral.affiliate_id == affiliate.id,
            Referral.status.in_(("signed_up", "converted")),
        ).count()
        leaderboard.append({
            "rank": rank,
            "name": affiliate.first_name or (affiliate.user.name if affiliate.user else None) or "Anonymous",
            "social_handle": affiliate.social_handle,
            "avatar": affiliate.user.image if affiliate.user else None,
            "signups": signups,
            "earnings_level": earnings_level(affiliate.total_earnings),
        })
    return leaderboard
