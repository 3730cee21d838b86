from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    role: str
    is_deactivated: bool
    deactivated_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserRoleUpdate(BaseModel):
    role: str


class RestoreAccountRequest(BaseModel):
    email: Optional[str] = None
