from pydantic import BaseModel
from typing import Optional


class NewsletterSubscribeRequest(BaseModel):
    email: Optional[str] = None


class ContactRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
