import pytest
import requests

from payview.config import settings
from payview.services import email_service, notification_service
from payview.services.notification_service import send_purchase_notifications

from helpers import BUYER_ID, auth_header


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    def fake_send(to, subject, html):
        sent.append({"to": to, "subject": subject, "html": html})
        return True

    monkeypatch.setattr(notification_service, "send_email", fake_send)
    return sent


def test_purchase_emails_use_recorded_split(session, ledger, outbox, pending, creator):
    completed = ledger.complete_transaction("cs_test_pending").transaction

    result = send_purchase_notifications(session, completed)

    assert result.buyer_notified and result.seller_notified
    buyer_mail, seller_mail = outbox
    assert buyer_mail["to"] == "buyer@example.com"
    assert "Purchase Confirmation" in buyer_mail["subject"]
    assert "$10.00" in buyer_mail["html"]
    assert completed.transaction_number in buyer_mail["html"]

    assert seller_mail["to"] == "creator@example.com"
    assert "$9.50" in seller_mail["html"]
    assert "5% platform fee" in seller_mail["html"]


def test_purchase_route_requires_the_buyer(client, outbox, ledger, pending, paid_file):
    ledger.complete_transaction("cs_test_pending")
    payload = {"fileId": paid_file.id, "buyerId": BUYER_ID, "sessionId": "cs_test_pending"}

    response = client.post("/notifications/purchase", json=payload, headers=auth_header("someone-else"))
    assert response.status_code == 400
    assert response.json() == {"error": "Access denied"}
    assert outbox == []

    response = client.post("/notifications/purchase", json=payload, headers=auth_header(BUYER_ID))
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert len(outbox) == 2


def test_purchase_route_refuses_pending(client, outbox, pending, paid_file):
    payload = {"fileId": paid_file.id, "buyerId": BUYER_ID, "sessionId": "cs_test_pending"}
    response = client.post("/notifications/purchase", json=payload, headers=auth_header(BUYER_ID))
    assert response.status_code == 400
    assert response.json() == {"error": "Payment not completed"}
    assert outbox == []


def test_purchase_route_mismatched_file(client, outbox, ledger, pending, paid_file):
    ledger.complete_transaction("cs_test_pending")
    payload = {"fileId": paid_file.id + 1, "buyerId": BUYER_ID, "sessionId": "cs_test_pending"}
    response = client.post("/notifications/purchase", json=payload, headers=auth_header(BUYER_ID))
    assert response.status_code == 400
    assert outbox == []


# brevo --------------------------------------------------------------------


class _Response:
    def __init__(self, status_code):
        self.status_code = status_code
        self.text = ""


def test_send_email_without_api_key(monkeypatch):
    monkeypatch.setattr(settings, "brevo_api_key", None)
    assert email_service.send_email("buyer@example.com", "Hi", "<p>hi</p>") is False


def test_send_email_posts_to_brevo(monkeypatch):
    calls = []

    def fake_post(url, json, headers, timeout):
        calls.append({"url": url, "json": json, "headers": headers})
        return _Response(201)

    monkeypatch.setattr(settings, "brevo_api_key", "brevo-key")
    monkeypatch.setattr(email_service.requests, "post", fake_post)

    assert email_service.send_email("buyer@example.com", "Hi", "<p>hi</p>") is True
    [call] = calls
    assert call["url"] == email_service.BREVO_API_URL
    assert call["headers"]["api-key"] == "brevo-key"
    assert call["json"]["to"] == [{"email": "buyer@example.com"}]


@pytest.mark.parametrize("outcome", [_Response(500), requests.ConnectionError("down")])
def test_send_email_failures_are_reported(monkeypatch, outcome):
    def fake_post(url, json, headers, timeout):
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(settings, "brevo_api_key", "brevo-key")
    monkeypatch.setattr(email_service.requests, "post", fake_post)
    assert email_service.send_email("buyer@example.com", "Hi", "<p>hi</p>") is False


def test_send_email_invalid_recipient():
    assert email_service.send_email("not-an-email", "Hi", "<p>hi</p>") is False
