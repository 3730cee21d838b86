"""
Stripe webhook handling.

checkout.session.completed stores the new subscription for the user named in
the session metadata. invoice.payment_succeeded refreshes price and period
for renewals and plan changes. Both record the affiliate commission for the
payment.
"""
import logging
import os
from datetime import datetime
from decimal import Decimal
from typing import Optional

import stripe
from sqlalchemy.orm import Session

from progressly.core.plan_limits import plan_for_price
from progressly.models.subscription import Subscription
from progressly.models.user import User
from progressly.services.affiliate import record_commission

logger = logging.getLogger(__name__)

stripe.api_key = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")

HANDLED_EVENTS = ("checkout.session.completed", "invoice.payment_succeeded")


def _get(obj, key, default=None):
    """Field lookup that works for both StripeObjects and plain dicts."""
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def construct_event(payload: bytes, sig_header: Optional[str]):
    """Verify the Stripe-Signature header. Raises ValueError or SignatureVerificationError."""
    return stripe.Webhook.construct_event(payload, sig_header, STRIPE_WEBHOOK_SECRET)


def _period_end(subscription) -> Optional[datetime]:
    # Newer API versions moved current_period_end onto the subscription item
    timestamp = _get(subscription, "current_period_end")
    if timestamp is None:
        items = _get(_get(subscription, "items"), "data", [])
        if items:
            timestamp = _get(items[0], "current_period_end")
    return datetime.utcfromtimestamp(int(timestamp)) if timestamp else None


def _price_id(subscription) -> str:
    items = _get(_get(subscription, "items"), "data", [])
    return _get(_get(items[0], "price"), "id") if items else None


def _apply_stripe_subscription(subscription_row: Subscription, stripe_subscription) -> None:
    price_id = _price_id(stripe_subscription)
    tier, interval = plan_for_price(price_id)
    subscription_row.stripe_subscription_id = _get(stripe_subscription, "id")
    subscription_row.stripe_price_id = price_id
    subscription_row.plan_tier = tier.value
    subscription_row.billing_interval = interval
    subscription_row.status = _get(stripe_subscription, "status", "active")
    subscription_row.current_period_end = _period_end(stripe_subscription)


def _record_payment_commission(db: Session, user_id: int, amount_cents, payment_id: str) -> None:
    if not amount_cents:
        return
    amount = Decimal(int(amount_cents)) / 100
    commission = record_commission(db, user_id, amount, payment_id)
    if commission:
        logger.info("Recorded affiliate commission for user %s: $%s", user_id, commission.amount)


def handle_checkout_completed(db: Session, session) -> Optional[Subscription]:
    metadata = _get(session, "metadata", {})
    raw_user_id = _get(metadata, "user_id") or _get(metadata, "userId")
    try:
        user_id = int(raw_user_id)
    except (TypeError, ValueError):
        logger.warning("Checkout session %s has no usable user id in metadata", _get(session, "id"))
        return None

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning("Checkout session %s references unknown user %s", _get(session, "id"), user_id)
        return None

    stripe_subscription = stripe.Subscription.retrieve(_get(session, "subscription"))

    subscription = db.query(Subscription).filter(Subscription.user_id == user_id).first()
    if not subscription:
        subscription = Subscription(user_id=user_id)
        db.add(subscription)
    _apply_stripe_subscription(subscription, stripe_subscription)
    subscription.stripe_customer_id = _get(stripe_subscription, "customer") or _get(session, "customer")
    db.commit()
    db.refresh(subscription)
    logger.info("User %s subscribed to %s (%s)", user_id, subscription.plan_tier, subscription.billing_interval)

    _record_payment_commission(
        db, user_id, _get(session, "amount_total"),
        _get(session, "payment_intent") or _get(session, "id"),
    )
    return subscription


def handle_invoice_paid(db: Session, invoice) -> Optional[Subscription]:
    # The first invoice is covered by checkout.session.completed
    if _get(invoice, "billing_reason") == "subscription_create":
        return None

    stripe_subscription = stripe.Subscription.retrieve(_get(invoice, "subscription"))
    subscription = db.query(Subscription).filter(
        Subscription.stripe_subscription_id == _get(stripe_subscription, "id")
    ).first()
    if not subscription:
        logger.warning("Invoice %s paid for unknown subscription %s", _get(invoice, "id"), _get(stripe_subscription, "id"))
        return None

    _apply_stripe_subscription(subscription, stripe_subscription)
    db.commit()
    db.refresh(subscription)
    logger.info("Subscription %s renewed until %s", subscription.stripe_subscription_id, subscription.current_period_end)

    _record_payment_commission(
        db, subscription.user_id, _get(invoice, "amount_paid"),
        _get(invoice, "payment_intent") or _get(invoice, "id"),
    )
    return subscription


def handle_stripe_event(db: Session, event) -> bool:
    """Dispatch a verified event. Returns False for event types that are ignored."""
    event_type = _get(event, "type")
    obj = _get(_get(event, "data"), "object")
    if event_type == "checkout.session.completed":
        handle_checkout_completed(db, obj)
    elif event_type == "invoice.payment_succeeded":
        handle_invoice_paid(db, obj)
    else:
        logger.info("Ignoring Stripe event %s", event_type)
        return False
    return True
