from datetime import datetime, timedelta

import pytest

from progressly.core.plan_limits import PlanTier, UnknownPlanError
from progressly.models.support_ticket import SupportTicket
from progressly.models.user import User
from progressly.services import accounts
from progressly.services.entitlements import get_user_plan
from progressly.services.tickets import create_ticket


def test_deactivate_then_restore_within_window(db_session, user):
    accounts.deactivate_user(db_session, user)
    assert user.is_deactivated is True
    assert user.deactivated_at is not None

    result = accounts.restore_user(db_session, "CREATOR@example.com", now=user.deactivated_at + timedelta(days=6))
    assert result.success
    db_session.refresh(user)
    assert user.is_deactivated is False
    assert user.deactivated_at is None


def test_restore_after_window_fails(db_session, user):
    accounts.deactivate_user(db_session, user)
    result = accounts.restore_user(db_session, user.email, now=user.deactivated_at + timedelta(days=7))
    assert not result.success
    assert "restoration window has passed" in result.error


def test_restore_errors(db_session, user):
    assert accounts.restore_user(db_session, "").error == "Email is required"
    assert accounts.restore_user(db_session, "ghost@example.com").not_found
    assert accounts.restore_user(db_session, user.email).error == "This account is not deactivated"


def test_purge_deletes_only_expired_accounts(db_session, make_user):
    now = datetime(2026, 4, 15, 12, 0)
    expired = make_user(email="expired@example.com")
    recent = make_user(email="recent@example.com")
    active = make_user(email="active@example.com")
    create_ticket(db_session, expired.id, "Old", "Ticket")

    expired.is_deactivated, expired.deactivated_at = True, now - timedelta(days=8)
    recent.is_deactivated, recent.deactivated_at = True, now - timedelta(days=2)
    db_session.commit()

    assert accounts.purge_expired_accounts(db_session, now=now) == 1
    emails = {u.email for u in db_session.query(User).all()}
    assert emails == {"recent@example.com", "active@example.com"}
    assert db_session.query(SupportTicket).count() == 0
    assert active.is_deactivated is False


def test_role_update_and_delete(db_session, admin, user):
    assert accounts.update_user_role(db_session, user.id, "superuser").error == "Invalid role"
    assert accounts.update_user_role(db_session, user.id, "admin").data.role == "admin"
    assert accounts.update_user_role(db_session, 999, "user").not_found

    assert accounts.delete_user(db_session, admin, admin.id).error == "Cannot delete yourself"
    assert accounts.delete_user(db_session, admin, user.id).success
    assert db_session.query(User).filter(User.id == user.id).first() is None


def test_manual_upgrade(db_session, user):
    result = accounts.upgrade_user(db_session, user.email, "pro", days=10)
    assert result.success
    assert get_user_plan(db_session, user.id) == PlanTier.PRO

    accounts.upgrade_user(db_session, user.email, "free")
    assert get_user_plan(db_session, user.id) == PlanTier.FREE

    with pytest.raises(UnknownPlanError):
        accounts.upgrade_user(db_session, user.email, "platinum")
    assert accounts.upgrade_user(db_session, "ghost@example.com", "pro").not_found
