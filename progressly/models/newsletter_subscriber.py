from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime
from progressly.db.base import Base


class NewsletterSubscriber(Base):
    __tablename__ = "newsletter_subscribers"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)  # Lower-cased and trimmed
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
