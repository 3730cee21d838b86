from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class TicketCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)


class TicketStatusUpdate(BaseModel):
    status: str  # open or closed


class TicketMessageCreate(BaseModel):
    content: str = Field(..., min_length=1)


class TicketMessageResponse(BaseModel):
    id: int
    ticket_id: int
    content: str
    is_admin: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TicketResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: str
    status: str
    created_at: datetime
    updated_at: datetime
    messages: List[TicketMessageResponse] = []

    class Config:
        from_attributes = True


class AdminTicketResponse(TicketResponse):
    user_email: Optional[str] = None
