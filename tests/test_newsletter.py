from progressly.models.newsletter_subscriber import NewsletterSubscriber
from progressly.services.newsletter import subscribe


def test_subscribe_normalizes_email(db_session):
    assert subscribe(db_session, "  Fan@Example.COM ").success
    assert db_session.query(NewsletterSubscriber).one().email == "fan@example.com"


def test_duplicate_subscription_is_rejected(db_session):
    subscribe(db_session, "fan@example.com")
    result = subscribe(db_session, "FAN@example.com")
    assert not result.success
    assert result.error == "You're already subscribed!"
    assert db_session.query(NewsletterSubscriber).count() == 1


def test_invalid_email(db_session):
    for email in ("", "fan", "fan@", "fan@example", "fan@example..com", "fan @example.com"):
        result = subscribe(db_session, email)
        assert result.error == "Please provide a valid email address"
