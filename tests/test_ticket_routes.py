from progressly.models.support_ticket import SupportTicket
from progressly.services import tickets as ticket_service


def _open_ticket(client, user, headers_for, title="Billing"):
    response = client.post("/api/tickets", json={"title": title, "description": "Charged twice"}, headers=headers_for(user))
    assert response.status_code == 200
    return response.json()["ticket"]


def test_create_and_list(client, user, headers_for):
    ticket = _open_ticket(client, user, headers_for)
    assert ticket["status"] == "open"
    assert ticket["messages"] == []

    listing = client.get("/api/tickets", headers=headers_for(user)).json()["tickets"]
    assert [t["id"] for t in listing] == [ticket["id"]]


def test_empty_title_is_400(client, user, headers_for):
    response = client.post("/api/tickets", json={"title": "", "description": "x"}, headers=headers_for(user))
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_other_users_ticket_is_404_and_unchanged(client, db_session, user, other_user, headers_for):
    ticket = _open_ticket(client, user, headers_for)

    patch = client.patch(f"/api/tickets/{ticket['id']}", json={"status": "closed"}, headers=headers_for(other_user))
    assert patch.status_code == 404
    delete = client.delete(f"/api/tickets/{ticket['id']}", headers=headers_for(other_user))
    assert delete.status_code == 404
    message = client.post(
        f"/api/tickets/{ticket['id']}/messages", json={"content": "hi"}, headers=headers_for(other_user)
    )
    assert message.status_code == 404

    db_session.expire_all()
    stored = db_session.query(SupportTicket).filter(SupportTicket.id == ticket["id"]).one()
    assert stored.status == "open"
    assert stored.messages == []


def test_close_reopen_and_message(client, user, headers_for):
    ticket = _open_ticket(client, user, headers_for)
    closed = client.patch(f"/api/tickets/{ticket['id']}", json={"status": "closed"}, headers=headers_for(user))
    assert closed.json()["ticket"]["status"] == "closed"

    invalid = client.patch(f"/api/tickets/{ticket['id']}", json={"status": "pending"}, headers=headers_for(user))
    assert invalid.status_code == 400

    reply = client.post(f"/api/tickets/{ticket['id']}/messages", json={"content": "Any update?"}, headers=headers_for(user))
    assert reply.json()["message"]["is_admin"] is False


def test_delete_own_ticket(client, db_session, user, headers_for):
    ticket = _open_ticket(client, user, headers_for)
    assert client.delete(f"/api/tickets/{ticket['id']}", headers=headers_for(user)).status_code == 200
    assert db_session.query(SupportTicket).count() == 0


def test_admin_ticket_workflow(client, db_session, admin, user, headers_for):
    ticket = _open_ticket(client, user, headers_for)

    listing = client.get("/api/admin/tickets", headers=headers_for(admin)).json()["tickets"]
    assert listing[0]["user_email"] == user.email

    reply = client.post(f"/api/admin/tickets/{ticket['id']}/reply", json={"content": "Refunded"}, headers=headers_for(admin))
    assert reply.status_code == 200
    assert reply.json()["message"]["is_admin"] is True

    closed = client.post(f"/api/admin/tickets/{ticket['id']}/close", headers=headers_for(admin))
    assert closed.json()["ticket"]["status"] == "closed"
    assert [m["content"] for m in closed.json()["ticket"]["messages"]] == ["Refunded"]

    assert client.get("/api/admin/tickets?status=open", headers=headers_for(admin)).json()["tickets"] == []

    assert client.delete(f"/api/admin/tickets/{ticket['id']}", headers=headers_for(admin)).status_code == 200
    assert client.delete(f"/api/admin/tickets/{ticket['id']}", headers=headers_for(admin)).status_code == 404
    assert ticket_service.get_ticket(db_session, ticket["id"]) is None
