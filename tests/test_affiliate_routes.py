from decimal import Decimal

import pytest

from progressly.models.affiliate import Affiliate, Payout, Referral
from progressly.services import affiliate as affiliate_service


@pytest.fixture
def partner(db_session, user):
    affiliate = affiliate_service.create_affiliate_application(db_session, user, paypal_email="pay@example.com").data
    affiliate_service.approve_affiliate(db_session, affiliate.id)
    return affiliate


@pytest.fixture
def funded_partner(db_session, make_user, partner):
    """Approved affiliate with 50.00 in pending earnings."""
    customer = make_user(email="buyer@example.com")
    affiliate_service.link_referral_to_user(db_session, partner.affiliate_code, customer.id)
    affiliate_service.record_commission(db_session, customer.id, 200, "pi_funding")
    return partner


def test_me_without_application(client, user, headers_for):
    response = client.get("/api/affiliate/me", headers=headers_for(user))
    assert response.status_code == 200
    assert response.json() == {"affiliate": None}


def test_apply_then_me(client, user, headers_for):
    response = client.post("/api/affiliate/apply", json={"paypal_email": "pay@example.com"}, headers=headers_for(user))
    assert response.status_code == 200
    assert response.json()["affiliate"]["status"] == "pending"

    me = client.get("/api/affiliate/me", headers=headers_for(user)).json()["affiliate"]
    assert me["email"] == user.email
    assert me["referral_link"].endswith(f"?ref={me['affiliate_code']}")

    again = client.post("/api/affiliate/apply", json={}, headers=headers_for(user))
    assert again.status_code == 400


def test_public_apply(client):
    payload = {"email": "fan@example.com", "first_name": "Fan", "last_name": "Person"}
    response = client.post("/api/public/affiliate/apply", json=payload)
    assert response.status_code == 200
    assert response.json()["success"] is True

    duplicate = client.post("/api/public/affiliate/apply", json=payload)
    assert duplicate.status_code == 400
    assert duplicate.json() == {"success": False, "error": affiliate_service.DUPLICATE_APPLICATION_ERROR}

    missing = client.post("/api/public/affiliate/apply", json={"email": "x@example.com"})
    assert missing.status_code == 400
    assert missing.json()["error"] == "Email, first name, and last name are required"


def test_public_apply_rejects_malformed_email(client, db_session):
    payload = {"email": "jane@example..com", "first_name": "Jane", "last_name": "Doe"}
    response = client.post("/api/public/affiliate/apply", json=payload)
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Please enter a valid email address"}
    assert db_session.query(Affiliate).count() == 0


def test_stats_requires_affiliate(client, user, headers_for):
    response = client.get("/api/affiliate/stats", headers=headers_for(user))
    assert response.status_code == 404
    assert response.json()["error"] == "Not an affiliate"


def test_stats(client, user, funded_partner, headers_for):
    stats = client.get("/api/affiliate/stats", headers=headers_for(user)).json()["stats"]
    assert stats["signups"] == 1
    assert stats["conversions"] == 1
    assert stats["pending_earnings"] == 50.0


def test_track_sets_referral_cookies(client, partner):
    response = client.post("/api/affiliate/track", json={"affiliate_code": partner.affiliate_code})
    assert response.status_code == 200
    assert response.cookies.get("ref") == partner.affiliate_code
    assert response.cookies.get("ref_id")

    check = client.get("/api/affiliate/track")
    assert check.json()["has_referral"] is True
    assert check.json()["affiliate_code"] == partner.affiliate_code


def test_track_skips_own_link_for_signed_in_affiliate(client, db_session, user, partner, headers_for):
    response = client.post(
        "/api/affiliate/track", json={"affiliate_code": partner.affiliate_code}, headers=headers_for(user)
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Own referral link not tracked"
    assert "ref" not in response.cookies
    assert db_session.query(Referral).count() == 0


def test_track_counts_other_signed_in_visitors(client, db_session, other_user, partner, headers_for):
    response = client.post(
        "/api/affiliate/track", json={"affiliate_code": partner.affiliate_code}, headers=headers_for(other_user)
    )
    assert response.status_code == 200
    assert response.cookies.get("ref") == partner.affiliate_code
    assert db_session.query(Referral).count() == 1


def test_track_treats_bad_token_as_anonymous(client, db_session, partner):
    response = client.post(
        "/api/affiliate/track",
        json={"affiliate_code": partner.affiliate_code},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 200
    assert db_session.query(Referral).count() == 1


def test_track_rejects_unknown_code(client):
    assert client.post("/api/affiliate/track", json={"affiliate_code": "ZZZZZZZZ"}).status_code == 400
    assert client.post("/api/affiliate/track", json={}).status_code == 400


def test_attribute_after_signup(client, db_session, make_user, partner, headers_for):
    client.post("/api/affiliate/track", json={"affiliate_code": partner.affiliate_code})
    newcomer = make_user(email="newcomer@example.com")

    response = client.post("/api/affiliate/attribute", headers=headers_for(newcomer))
    assert response.json() == {"success": True, "attributed": True}


def test_request_payout(client, db_session, user, funded_partner, headers_for):
    listing = client.get("/api/affiliate/payouts", headers=headers_for(user)).json()
    assert listing["can_request_payout"] is True
    assert listing["minimum_payout"] == 50.0

    response = client.post(
        "/api/affiliate/payouts", json={"paypal_email": "new@paypal.com"}, headers=headers_for(user)
    )
    assert response.status_code == 200
    assert response.json()["payout"]["amount"] == 50.0
    assert response.json()["payout"]["status"] == "pending"

    db_session.expire_all()
    affiliate = db_session.query(Affiliate).filter(Affiliate.id == funded_partner.id).one()
    assert affiliate.paypal_email == "new@paypal.com"
    assert affiliate.pending_earnings == Decimal("50.00")

    again = client.post("/api/affiliate/payouts", json={"paypal_email": "new@paypal.com"}, headers=headers_for(user))
    assert again.status_code == 400


def test_unapproved_affiliate_cannot_request_payout(client, db_session, user, headers_for):
    affiliate_service.create_affiliate_application(db_session, user)
    response = client.post("/api/affiliate/payouts", json={"paypal_email": "a@b.co"}, headers=headers_for(user))
    assert response.status_code == 403


def test_admin_processes_payout(client, db_session, admin, funded_partner, headers_for):
    payout = affiliate_service.request_payout(db_session, funded_partner, 50, "pay@example.com").data

    pending = client.get("/api/admin/payouts?status=pending", headers=headers_for(admin)).json()["payouts"]
    assert [p["id"] for p in pending] == [payout.id]
    assert pending[0]["affiliate"]["affiliate_code"] == funded_partner.affiliate_code

    bad = client.patch(f"/api/admin/payouts/{payout.id}", json={"action": "approve"}, headers=headers_for(admin))
    assert bad.status_code == 400

    done = client.patch(
        f"/api/admin/payouts/{payout.id}", json={"action": "reject", "notes": "Wrong PayPal"}, headers=headers_for(admin)
    )
    assert done.status_code == 200

    repeat = client.patch(f"/api/admin/payouts/{payout.id}", json={"action": "complete"}, headers=headers_for(admin))
    assert repeat.status_code == 400
    assert repeat.json()["error"] == "Payout is already rejected"

    db_session.expire_all()
    assert db_session.query(Payout).filter(Payout.id == payout.id).one().notes == "Wrong PayPal"
    affiliate = db_session.query(Affiliate).filter(Affiliate.id == funded_partner.id).one()
    assert affiliate.pending_earnings == Decimal("50.00")

    missing = client.patch("/api/admin/payouts/9999", json={"action": "complete"}, headers=headers_for(admin))
    assert missing.status_code == 404


def test_admin_reviews_affiliates(client, db_session, admin, user, headers_for):
    affiliate = affiliate_service.create_affiliate_application(db_session, user).data
    listing = client.get("/api/admin/affiliates?status=pending", headers=headers_for(admin)).json()
    assert [a["id"] for a in listing["affiliates"]] == [affiliate.id]

    response = client.patch(f"/api/admin/affiliates/{affiliate.id}", json={"action": "approve"}, headers=headers_for(admin))
    assert response.status_code == 200
    assert response.json()["affiliate"]["status"] == "approved"

    invalid = client.patch(f"/api/admin/affiliates/{affiliate.id}", json={"action": "reject"}, headers=headers_for(admin))
    assert invalid.status_code == 400
