from datetime import timedelta

from progressly.utils.auth import create_access_token


def test_missing_token_is_401(client):
    response = client.get("/api/usage")
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Unauthorized"}


def test_garbage_token_is_401(client):
    response = client.get("/api/usage", headers={"Authorization": "Bearer not.a.token"})
    assert response.status_code == 401


def test_expired_token_is_401(client, user):
    token = create_access_token({"sub": user.id}, expires_delta=timedelta(minutes=-1))
    response = client.get("/api/usage", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_token_for_unknown_user_is_401(client):
    token = create_access_token({"sub": 4242})
    response = client.get("/api/usage", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_deactivated_account_is_403(client, db_session, user, headers_for):
    user.is_deactivated = True
    db_session.commit()
    response = client.get("/api/usage", headers=headers_for(user))
    assert response.status_code == 403


def test_admin_routes_reject_regular_users(client, user, headers_for):
    for method, path in (
        ("get", "/api/admin/affiliates"),
        ("get", "/api/admin/payouts"),
        ("get", "/api/admin/tickets"),
        ("get", "/api/admin/users"),
    ):
        response = getattr(client, method)(path, headers=headers_for(user))
        assert response.status_code == 403, path
        assert response.json()["success"] is False


def test_admin_routes_require_a_session(client):
    response = client.patch("/api/admin/payouts/1", json={"action": "complete"})
    assert response.status_code == 401


def test_public_routes_work_anonymously(client):
    assert client.get("/api/plans").status_code == 200
    assert client.get("/api/affiliate/leaderboard").status_code == 200
