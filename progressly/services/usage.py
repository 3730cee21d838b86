"""
Service for per-user usage counters.

Counters live in UsagePeriod rows keyed by (user, period kind, period start).
Period boundaries are fixed in UTC:
  - day:   00:00
  - week:  Monday 00:00
  - month: the 1st at 00:00
A new period simply means a new row, so nothing has to be reset.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from progressly.models.usage_period import UsagePeriod

logger = logging.getLogger(__name__)

DAY = "day"
WEEK = "week"
MONTH = "month"


def day_start(now: Optional[datetime] = None) -> date:
    now = now or datetime.utcnow()
    return now.date()


def week_start(now: Optional[datetime] = None) -> date:
    today = day_start(now)
    return today - timedelta(days=today.weekday())


def month_start(now: Optional[datetime] = None) -> date:
    return day_start(now).replace(day=1)


def period_start(period: str, now: Optional[datetime] = None) -> date:
    if period == DAY:
        return day_start(now)
    if period == WEEK:
        return week_start(now)
    if period == MONTH:
        return month_start(now)
    raise ValueError(f"Unknown usage period: {period}")


@dataclass
class UsageSnapshot:
    analyses_today: int
    analyses_this_week: int
    analyses_this_month: int
    optimizations_this_month: int
    format_searches_this_month: int
    current_month: int
    current_year: int
    week_start: date


def _get_period(db: Session, user_id: int, period: str, start: date) -> Optional[UsagePeriod]:
    return db.query(UsagePeriod).filter(
        UsagePeriod.user_id == user_id,
        UsagePeriod.period == period,
        UsagePeriod.period_start == start,
    ).first()


def get_user_usage(db: Session, user_id: int, now: Optional[datetime] = None) -> UsageSnapshot:
    """
    Get the user's counters for the current day, week and month.
    Periods without a row count as zero usage; nothing is written.
    """
    now = now or datetime.utcnow()
    day_row = _get_period(db, user_id, DAY, day_start(now))
    week_row = _get_period(db, user_id, WEEK, week_start(now))
    month_row = _get_period(db, user_id, MONTH, month_start(now))

    return UsageSnapshot(
        analyses_today=day_row.analyses if day_row else 0,
        analyses_this_week=week_row.analyses if week_row else 0,
        analyses_this_month=month_row.analyses if month_row else 0,
        optimizations_this_month=month_row.optimizations if month_row else 0,
        format_searches_this_month=month_row.format_searches if month_row else 0,
        current_month=now.month,
        current_year=now.year,
        week_start=week_start(now),
    )


def _ensure_period(db: Session, user_id: int, period: str, start: date) -> None:
    """Create the period row if absent. A concurrent insert of the same row is not an error."""
    if _get_period(db, user_id, period, start):
        return
    db.add(UsagePeriod(user_id=user_id, period=period, period_start=start))
    try:
        db.commit()
    except IntegrityError:
        # Another request created it first
        db.rollback()


def _increment(db: Session, user_id: int, column, periods, now: Optional[datetime] = None) -> None:
    now = now or datetime.utcnow()
    for period in periods:
        start = period_start(period, now)
        _ensure_period(db, user_id, period, start)
        # Increment in SQL so simultaneous requests are all counted
        db.query(UsagePeriod).filter(
            UsagePeriod.user_id == user_id,
            UsagePeriod.period == period,
            UsagePeriod.period_start == start,
        ).update({column: column + 1}, synchronize_session=False)
    db.commit()


def record_analysis_usage(db: Session, user_id: int, now: Optional[datetime] = None) -> None:
    """Record one analysis against the day, week and month counters."""
    _increment(db, user_id, UsagePeriod.analyses, (DAY, WEEK, MONTH), now)
    logger.info("Recorded analysis usage for user %s", user_id)


def record_optimization_usage(db: Session, user_id: int, now: Optional[datetime] = None) -> None:
    _increment(db, user_id, UsagePeriod.optimizations, (MONTH,), now)
    logger.info("Recorded optimization usage for user %s", user_id)


def record_format_search_usage(db: Session, user_id: int, now: Optional[datetime] = None) -> None:
    _increment(db, user_id, UsagePeriod.format_searches, (MONTH,), now)
    logger.info("Recorded format search usage for user %s", user_id)
