from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from datetime import datetime
from progressly.db.base import Base


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    plan_tier = Column(String, nullable=False, default="free")  # "free", "starter" or "pro"
    status = Column(String, nullable=False, default="inactive")
    stripe_customer_id = Column(String, unique=True, nullable=True)
    stripe_subscription_id = Column(String, unique=True, nullable=True)
    stripe_price_id = Column(String, nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    billing_interval = Column(String, nullable=True)  # "month" or "year"
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
