from datetime import date, datetime

from progressly.models.usage_period import UsagePeriod
from progressly.services.usage import (
    get_user_usage,
    month_start,
    record_analysis_usage,
    record_format_search_usage,
    record_optimization_usage,
    week_start,
)

# A Wednesday
NOW = datetime(2026, 4, 15, 10, 30)


def test_period_boundaries():
    assert week_start(NOW) == date(2026, 4, 13)
    assert week_start(datetime(2026, 4, 13, 0, 0)) == date(2026, 4, 13)
    assert week_start(datetime(2026, 4, 19, 23, 59)) == date(2026, 4, 13)
    assert month_start(NOW) == date(2026, 4, 1)


def test_missing_rows_read_as_zero_and_nothing_is_written(db_session, user):
    usage = get_user_usage(db_session, user.id, now=NOW)
    assert usage.analyses_today == 0
    assert usage.analyses_this_week == 0
    assert usage.analyses_this_month == 0
    assert usage.optimizations_this_month == 0
    assert usage.format_searches_this_month == 0
    assert usage.current_month == 4
    assert usage.current_year == 2026
    assert usage.week_start == date(2026, 4, 13)
    assert db_session.query(UsagePeriod).count() == 0


def test_analysis_counts_against_day_week_and_month(db_session, user):
    record_analysis_usage(db_session, user.id, now=NOW)
    record_analysis_usage(db_session, user.id, now=NOW)

    usage = get_user_usage(db_session, user.id, now=NOW)
    assert usage.analyses_today == 2
    assert usage.analyses_this_week == 2
    assert usage.analyses_this_month == 2


def test_new_day_starts_fresh_but_week_keeps_counting(db_session, user):
    record_analysis_usage(db_session, user.id, now=NOW)
    thursday = datetime(2026, 4, 16, 9, 0)

    usage = get_user_usage(db_session, user.id, now=thursday)
    assert usage.analyses_today == 0
    assert usage.analyses_this_week == 1


def test_new_week_resets_weekly_counter(db_session, user):
    record_analysis_usage(db_session, user.id, now=datetime(2026, 4, 19, 23, 59))
    usage = get_user_usage(db_session, user.id, now=datetime(2026, 4, 20, 0, 0))
    assert usage.analyses_this_week == 0
    assert usage.analyses_this_month == 1


def test_monthly_counters(db_session, user):
    record_optimization_usage(db_session, user.id, now=NOW)
    record_optimization_usage(db_session, user.id, now=NOW)
    record_format_search_usage(db_session, user.id, now=NOW)

    usage = get_user_usage(db_session, user.id, now=NOW)
    assert usage.optimizations_this_month == 2
    assert usage.format_searches_this_month == 1
    assert usage.analyses_this_month == 0

    next_month = get_user_usage(db_session, user.id, now=datetime(2026, 5, 1, 0, 0))
    assert next_month.optimizations_this_month == 0


def test_counters_are_per_user(db_session, user, other_user):
    record_optimization_usage(db_session, user.id, now=NOW)
    assert get_user_usage(db_session, other_user.id, now=NOW).optimizations_this_month == 0


def test_one_row_per_period(db_session, user):
    for _ in range(3):
        record_analysis_usage(db_session, user.id, now=NOW)
    rows = db_session.query(UsagePeriod).filter(UsagePeriod.user_id == user.id).all()
    assert sorted(r.period for r in rows) == ["day", "month", "week"]
    assert all(r.analyses == 3 for r in rows)
