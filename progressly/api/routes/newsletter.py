from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from progressly.db.session import get_db
from progressly.schemas.contact import NewsletterSubscribeRequest
from progressly.services.newsletter import subscribe
from progressly.utils.responses import raise_for_result

router = APIRouter()


@router.post("")
def subscribe_to_newsletter(body: NewsletterSubscribeRequest, db: Session = Depends(get_db)):
    raise_for_result(subscribe(db, body.email or ""))
    return {"success": True, "message": "Thanks for subscribing!"}
