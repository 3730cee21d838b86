"""
Model for per-user usage counters, one row per (user, period kind, period start).
A missing row means nothing was used in that period.
"""
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, UniqueConstraint
from datetime import datetime
from progressly.db.base import Base


class UsagePeriod(Base):
    __tablename__ = "usage_periods"
    __table_args__ = (
        UniqueConstraint("user_id", "period", "period_start", name="uq_usage_periods_user_period_start"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    period = Column(String, nullable=False)  # "day", "week" or "month"
    period_start = Column(Date, nullable=False)  # UTC date the period begins on
    analyses = Column(Integer, default=0, nullable=False)
    optimizations = Column(Integer, default=0, nullable=False)
    format_searches = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return (
            f"<UsagePeriod(user_id={self.user_id}, {self.period}@{self.period_start}, "
            f"analyses={self.analyses}, optimizations={self.optimizations}, "
            f"format_searches={self.format_searches})>"
        )
