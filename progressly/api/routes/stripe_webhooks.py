"""
Stripe webhook endpoint. Register this URL in the Stripe dashboard:
https://your-backend.com/api/webhooks/stripe
"""
import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from progressly.db.session import get_db
from progressly.services import billing

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/stripe")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    payload = await request.body()
    sig_header = request.headers.get("Stripe-Signature")

    try:
        event = billing.construct_event(payload, sig_header)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("Rejected Stripe webhook: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Webhook Error: {e}")

    billing.handle_stripe_event(db, event)
    return {"received": True}
