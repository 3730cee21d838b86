from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime
from progressly.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    image = Column(String, nullable=True)  # Avatar URL from the identity provider
    role = Column(String, default="user", nullable=False)  # "user" or "admin"
    # Soft delete: account can be restored for 7 days after deactivation
    is_deactivated = Column(Boolean, default=False, nullable=False)
    deactivated_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
