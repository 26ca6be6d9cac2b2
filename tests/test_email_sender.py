import pytest
import requests
from unittest.mock import patch, MagicMock

import email_sender
from errors import EmailDeliveryError


def brevo_response(status_code=201, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.content = b"{}" if body is not None else b""
    response.json.return_value = body or {}
    response.text = str(body)
    return response


@patch("email_sender.requests.post")
def test_send_email_posts_to_brevo(mock_post):
    mock_post.return_value = brevo_response(body={"messageId": "<abc@brevo>"})

    result = email_sender.send_email("ada@example.com", "Hello", "<p>Hi</p>", "Hi", name="Ada")

    assert result == {"success": True, "message_id": "<abc@brevo>"}
    url = mock_post.call_args.args[0]
    payload = mock_post.call_args.kwargs["json"]
    headers = mock_post.call_args.kwargs["headers"]
    assert url == "https://api.brevo.com/v3/smtp/email"
    assert headers["api-key"] == "xkeysib-test"
    assert payload["sender"] == {"name": "Newsletter Generator", "email": "news@example.com"}
    assert payload["to"] == [{"email": "ada@example.com", "name": "Ada"}]
    assert payload["textContent"] == "Hi"


@patch("email_sender.requests.post")
def test_send_email_raises_on_rejection(mock_post):
    mock_post.return_value = brevo_response(status_code=400, body={"message": "invalid sender"})

    with pytest.raises(EmailDeliveryError) as exc:
        email_sender.send_email("ada@example.com", "Hello", "<p>Hi</p>")
    assert "invalid sender" in exc.value.message


@patch("email_sender.requests.post")
def test_send_email_wraps_network_errors(mock_post):
    mock_post.side_effect = requests.exceptions.ConnectTimeout("timed out")

    with pytest.raises(EmailDeliveryError):
        email_sender.send_email("ada@example.com", "Hello", "<p>Hi</p>")


@patch("email_sender.send_email")
def test_send_bulk_reports_each_recipient(mock_send):
    def fake_send(to, subject, html, text, name=None):
        if to == "bad@example.com":
            raise EmailDeliveryError("Brevo rejected email to bad@example.com")
        return {"success": True, "message_id": f"id-{to}"}

    mock_send.side_effect = fake_send
    recipients = [{"email": "a@example.com", "name": "A"}, {"email": "bad@example.com", "name": ""}]

    results = email_sender.send_bulk(recipients, "Subject", "<p>x</p>", "x", max_workers=2)

    assert results[0] == {"email": "a@example.com", "success": True, "message_id": "id-a@example.com"}
    assert results[1]["success"] is False
    assert "bad@example.com" in results[1]["error"]


def test_send_bulk_with_no_recipients():
    assert email_sender.send_bulk([], "Subject", "<p>x</p>") == []


@patch("email_sender.requests.post")
def test_send_bulk_survives_odd_brevo_replies(mock_post):
    replies = {
        "a@x.io": brevo_response(body={"messageId": "<a@brevo>"}),
        "b@x.io": brevo_response(status_code=400, body={"message": None}),
        "c@x.io": brevo_response(body=["not", "a", "dict"]),
    }
    mock_post.side_effect = lambda url, json, headers, timeout: replies[json["to"][0]["email"]]
    recipients = [{"email": email} for email in replies]

    results = email_sender.send_bulk(recipients, "Subject", "<p>x</p>", max_workers=1)

    assert [r["success"] for r in results] == [True, False, True]
    assert "HTTP 400" in results[1]["error"]
    assert results[2]["message_id"] is None


@patch("email_sender.send_email", side_effect=[{"success": True, "message_id": "1"}, KeyError("boom")])
def test_send_bulk_records_unexpected_errors_per_recipient(mock_send):
    recipients = [{"email": "a@x.io"}, {"email": "b@x.io"}]

    results = email_sender.send_bulk(recipients, "Subject", "<p>x</p>", max_workers=1)

    assert results[0]["success"] is True
    assert results[1] == {"email": "b@x.io", "success": False, "error": "KeyError: 'boom'"}
