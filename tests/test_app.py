import json
from unittest.mock import patch

from errors import ConflictError, EmailDeliveryError, GenerationError, NotFoundError


FORM = {
    "company_name": "Acme Analytics",
    "website_url": "https://acme.io",
    "contact_email": "Owner@Acme.io",
    "phone_number": "+1 555 010 2030",
    "industry": "technology",
    "target_audience": "Data teams",
    "audience_description": "Heads of data",
    "newsletter_objectives": ["Thought leadership", "Product updates"],
    "primary_cta": "Book a demo",
}

CSV = b"name,email\nAda,ada@example.com\nGrace,grace@example.com\nBroken,nope\n"


def test_index_lists_endpoints(api_client):
    body = api_client.get("/").json()
    assert body["status"] == "running"
    assert "POST /api/onboarding" in body["endpoints"]


@patch("app.db")
def test_health_reports_database_outage(mock_db, api_client):
    mock_db.ping.side_effect = ConnectionError("Supabase is not configured")

    response = api_client.get("/health")

    assert response.status_code == 503
    assert response.json()["components"]["database"]["status"] == "unhealthy"


def test_industries(api_client):
    names = api_client.get("/api/industries").json()["data"]
    assert {"value": "finance", "label": "Finance & Banking", "icon": "💰"} in names

    assert api_client.get("/api/industries/retail").json()["data"]["industry"] == "Retail & E-commerce"
    assert api_client.get("/api/industries/space").status_code == 404


@patch("app.db")
def test_onboarding_with_contact_list(mock_db, api_client):
    mock_db.create_company.return_value = {"id": "c1", "company_name": "Acme Analytics", "contacts_count": 0}
    mock_db.create_csv_upload.return_value = {"id": "u1"}
    mock_db.insert_contacts.return_value = (2, 0)
    mock_db.create_newsletter.return_value = {"id": "n1", "status": "draft"}

    response = api_client.post(
        "/api/onboarding",
        data=FORM,
        files={"contact_list": ("contacts.csv", CSV, "text/csv")},
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    assert body["data"]["contacts_processed"] == 2
    assert body["data"]["company"]["contacts_count"] == 2
    assert body["data"]["newsletter"]["id"] == "n1"

    company_fields = mock_db.create_company.call_args.args[0]
    assert company_fields["contact_email"] == "owner@acme.io"
    assert company_fields["newsletter_objectives"] == "Thought leadership\nProduct updates"
    company_id, upload_id, contacts, batch_size = mock_db.insert_contacts.call_args.args
    assert (company_id, upload_id, batch_size) == ("c1", "u1", 100)
    assert [c["email"] for c in contacts] == ["ada@example.com", "grace@example.com"]
    mock_db.complete_csv_upload.assert_called_once_with("u1", 2, 0)
    mock_db.update_company_contacts_count.assert_called_once_with("c1", 2)
    mock_db.create_newsletter.assert_called_once_with("c1", "Acme Analytics Newsletter Draft")


@patch("app.db")
def test_onboarding_without_contact_list(mock_db, api_client):
    mock_db.create_company.return_value = {"id": "c1"}
    mock_db.create_newsletter.return_value = {"id": "n1"}

    response = api_client.post("/api/onboarding", data=FORM)

    assert response.status_code == 200
    assert response.json()["data"]["contacts_processed"] == 0
    mock_db.create_csv_upload.assert_not_called()


@patch("app.db")
def test_onboarding_rejects_invalid_form(mock_db, api_client):
    response = api_client.post("/api/onboarding", data=dict(FORM, contact_email="nope", company_name=""))

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert set(body["errors"]) == {"contact_email", "company_name"}
    mock_db.create_company.assert_not_called()


@patch("app.db")
def test_onboarding_rejects_csv_without_contacts(mock_db, api_client):
    response = api_client.post(
        "/api/onboarding",
        data=FORM,
        files={"contact_list": ("contacts.csv", b"name,email\nBroken,nope\n", "text/csv")},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "No valid contacts found in CSV"
    mock_db.create_company.assert_not_called()


@patch("app.db")
def test_onboarding_duplicate_company(mock_db, api_client):
    mock_db.create_company.side_effect = ConflictError("A company with this email already exists")

    response = api_client.post("/api/onboarding", data=FORM)

    assert response.status_code == 400
    assert response.json()["message"] == "A company with this email already exists"


@patch("app.db")
def test_submit_company_json(mock_db, api_client):
    mock_db.create_company.return_value = {"id": "c9"}

    response = api_client.post("/api/submit", json={"company_name": "Acme", "contact_email": "a@acme.io"})

    assert response.json() == {"success": True, "data": {"company_id": "c9"}}
    bad = api_client.post("/api/submit", json={"company_name": "Acme", "contact_email": "bad"})
    assert bad.status_code == 400


@patch("app.generate_newsletter")
def test_generate_route(mock_generate, api_client):
    mock_generate.return_value = {"newsletter_id": "n1", "industry_summary": "S", "sections": []}

    response = api_client.post("/api/newsletter/generate", json={"newsletterId": "n1"})

    assert response.status_code == 200
    assert response.json()["data"]["newsletter_id"] == "n1"
    mock_generate.assert_called_once_with("n1")


@patch("app.generate_newsletter", side_effect=NotFoundError("Newsletter not found"))
def test_generate_route_not_found(mock_generate, api_client):
    response = api_client.post("/api/newsletter/generate", json={"newsletterId": "zzz"})
    assert response.status_code == 404
    assert response.json()["message"] == "Newsletter not found"


@patch("app.generate_newsletter_stream")
@patch("app.load_newsletter", return_value={"id": "n1"})
def test_generate_stream_route(mock_load, mock_stream, api_client):
    async def events(newsletter):
        yield {"type": "summary", "data": "S"}
        yield {"type": "complete", "newsletter_id": newsletter["id"]}

    mock_stream.side_effect = events

    response = api_client.post("/api/newsletter/generate-stream", json={"newsletterId": "n1"})

    lines = [json.loads(line) for line in response.text.strip().split("\n")]
    assert [line["type"] for line in lines] == ["start", "summary", "complete"]
    assert response.headers["x-newsletter-id"] == "n1"


@patch("app.send_newsletter_draft", side_effect=EmailDeliveryError("Brevo rejected email"))
def test_email_route_surfaces_delivery_errors(mock_draft, api_client):
    response = api_client.post("/api/newsletter/email", json={"newsletterId": "n1"})
    assert response.status_code == 502


@patch("app.send_newsletter")
def test_send_route(mock_send, api_client):
    mock_send.return_value = {"newsletter_id": "n1", "totalSent": 2, "failedCount": 0, "status": "success", "failed": []}

    body = api_client.post("/api/newsletter/send", json={"newsletterId": "n1"}).json()

    assert body["success"] is True
    assert body["totalSent"] == 2


@patch("app.db")
def test_get_newsletter_route(mock_db, api_client, generated_newsletter):
    mock_db.get_newsletter.return_value = generated_newsletter
    assert api_client.get("/api/newsletter/newsletter-1").json()["data"]["title"] == "Acme Analytics Newsletter Draft"

    mock_db.get_newsletter.return_value = None
    assert api_client.get("/api/newsletter/missing").status_code == 404


@patch("app.db")
def test_status_update_route(mock_db, api_client):
    mock_db.set_newsletter_status.return_value = True

    ok = api_client.post("/api/newsletter/n1/status", json={"status": "approved"})
    bad = api_client.post("/api/newsletter/n1/status", json={"status": "published"})

    assert ok.json()["data"] == {"id": "n1", "status": "approved"}
    assert bad.status_code == 400
    assert "status" in bad.json()["errors"]


@patch("app.db")
def test_latest_newsletter_routes(mock_db, api_client):
    mock_db.get_latest_newsletter.return_value = {"id": "n7"}
    assert api_client.get("/api/newsletters/latest").json()["id"] == "n7"
    assert api_client.get("/api/company/c1/latest-newsletter").json()["id"] == "n7"
    mock_db.get_latest_newsletter.assert_called_with("c1")

    mock_db.get_latest_newsletter.return_value = None
    assert api_client.get("/api/newsletters/latest").status_code == 404


@patch("app.db")
def test_unconfigured_database_is_503(mock_db, api_client):
    mock_db.get_newsletter.side_effect = ConnectionError("Supabase is not configured")
    response = api_client.get("/api/newsletter/n1")
    assert response.status_code == 503


@patch("app.db")
def test_unexpected_errors_are_generic_500(mock_db, api_client):
    mock_db.get_newsletter.side_effect = RuntimeError("secret details")
    response = api_client.get("/api/newsletter/n1")
    assert response.status_code == 500
    assert response.json()["message"] == "Internal server error"


@patch("app.db")
def test_onboarding_marks_upload_failed_when_import_breaks(mock_db, api_client):
    mock_db.create_company.return_value = {"id": "c1"}
    mock_db.create_csv_upload.return_value = {"id": "u1"}
    mock_db.insert_contacts.side_effect = ConnectionError("Supabase is not configured")

    response = api_client.post(
        "/api/onboarding",
        data=FORM,
        files={"contact_list": ("contacts.csv", CSV, "text/csv")},
    )

    assert response.status_code == 503
    mock_db.fail_csv_upload.assert_called_once_with("u1", "Supabase is not configured")
    mock_db.create_newsletter.assert_not_called()


@patch("main.generate_industry_summary", side_effect=GenerationError("model unavailable"))
@patch("main.db")
@patch("app.load_newsletter")
def test_generate_stream_route_reports_failure(mock_load, mock_db, mock_summary, api_client, generated_newsletter):
    mock_load.return_value = generated_newsletter

    response = api_client.post("/api/newsletter/generate-stream", json={"newsletterId": "newsletter-1"})

    lines = [json.loads(line) for line in response.text.strip().split("\n")]
    assert lines[0]["type"] == "start"
    assert lines[-1]["type"] == "error"
    assert lines[-1]["message"] == "model unavailable"
    mock_db.fail_newsletter.assert_called_once_with("newsletter-1", "model unavailable")


@patch("app.db")
def test_onboarding_rejects_malformed_csv_header(mock_db, api_client):
    content = b"name," + b"x" * 200000 + b"\nAda,ada@example.com\n"

    response = api_client.post(
        "/api/onboarding",
        data=FORM,
        files={"contact_list": ("contacts.csv", content, "text/csv")},
    )

    assert response.status_code == 400
    mock_db.create_company.assert_not_called()
