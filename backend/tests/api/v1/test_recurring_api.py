import pytest
from fastapi import status
from unittest.mock import patch

from backend.app.models.models import FinancialAccount, Transaction


@pytest.fixture
def template_payload(test_hub, test_account):
    return {
        "hub_id": test_hub.id,
        "financial_account_id": test_account.id,
        "type": "expense",
        "amount": 1200.0,
        "note": "Rent",
        "frequency_days": 30,
        "start_date": "2026-03-01T00:00:00"
    }


def create_template_via_api(client, payload):
    response = client.post("/api/v1/recurring-templates/", json=payload)
    assert response.status_code == status.HTTP_200_OK
    return response.json()


def test_create_template(client, template_payload):
    data = create_template_via_api(client, template_payload)

    assert data["status"] == "active"
    assert data["amount"] == 1200.0
    assert data["last_generated_date"] is None
    assert data["consecutive_failures"] == 0
    assert data["archived_at"] is None


def test_create_template_uses_default_frequency(client, template_payload):
    del template_payload["frequency_days"]

    data = create_template_via_api(client, template_payload)

    assert data["frequency_days"] == 30


def test_create_template_end_before_start(client, template_payload):
    template_payload["end_date"] = "2026-02-01T00:00:00"

    response = client.post("/api/v1/recurring-templates/", json=template_payload)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_create_transfer_without_destination(client, template_payload):
    template_payload["type"] = "transfer"

    response = client.post("/api/v1/recurring-templates/", json=template_payload)

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_create_template_unknown_account(client, template_payload):
    template_payload["financial_account_id"] = "missing"

    response = client.post("/api/v1/recurring-templates/", json=template_payload)

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_generate_endpoint_creates_transaction(client, db_session, template_payload, test_hub, test_account):
    template = create_template_via_api(client, template_payload)

    response = client.post("/api/v1/recurring-templates/generate")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": 1, "failed": 0, "skipped": 0, "errors": []}

    transaction = db_session.query(Transaction).filter(Transaction.recurring_template_id == template["id"]).one()
    assert transaction.amount == 1200.0
    assert db_session.query(FinancialAccount).filter(FinancialAccount.id == test_account.id).one().balance == 3800.0

    # Same instant again: already generated for this period
    response = client.post("/api/v1/recurring-templates/generate")
    assert response.json()["skipped"] == 1
    assert db_session.query(Transaction).count() == 1

    listed = client.get(f"/api/v1/recurring-templates/?hub_id={test_hub.id}").json()
    assert listed[0]["last_generated_date"].startswith("2026-03-15")

    notifications = client.get(f"/api/v1/notifications/?hub_id={test_hub.id}").json()
    assert [n["type"] for n in notifications] == ["success"]


def test_generate_endpoint_reports_insufficient_funds(client, db_session, template_payload, test_hub):
    template_payload["amount"] = 9000.0
    template = create_template_via_api(client, template_payload)

    response = client.post("/api/v1/recurring-templates/generate")

    data = response.json()
    assert data["failed"] == 1
    assert data["errors"][0]["template_id"] == template["id"]
    assert "insufficient_funds" in data["errors"][0]["error"]

    listed = client.get(f"/api/v1/recurring-templates/?hub_id={test_hub.id}").json()
    assert listed[0]["failure_reason"] == "insufficient_funds"
    assert listed[0]["consecutive_failures"] == 1
    assert listed[0]["last_generated_date"] is None

    unread = client.get(f"/api/v1/notifications/?hub_id={test_hub.id}&unread_only=true").json()
    assert unread[0]["type"] == "warning"


@patch("backend.app.services.notification_service.get_settings")
def test_generate_endpoint_with_notifications_disabled(mock_settings, client, template_payload, test_hub):
    mock_settings.return_value.notifications_enabled = False
    create_template_via_api(client, template_payload)

    response = client.post("/api/v1/recurring-templates/generate")

    assert response.json()["success"] == 1
    assert client.get(f"/api/v1/notifications/?hub_id={test_hub.id}").json() == []


def test_archive_and_unarchive(client, template_payload, test_hub):
    template = create_template_via_api(client, template_payload)

    response = client.post(f"/api/v1/recurring-templates/{template['id']}/archive")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["archived_at"].startswith("2026-03-15")

    assert client.get(f"/api/v1/recurring-templates/?hub_id={test_hub.id}").json() == []
    assert len(client.get(f"/api/v1/recurring-templates/?hub_id={test_hub.id}&include_archived=true").json()) == 1

    generated = client.post("/api/v1/recurring-templates/generate").json()
    assert generated == {"success": 0, "failed": 0, "skipped": 0, "errors": []}

    response = client.post(f"/api/v1/recurring-templates/{template['id']}/unarchive")
    assert response.json()["archived_at"] is None
    assert client.post("/api/v1/recurring-templates/generate").json()["success"] == 1


def test_update_template(client, template_payload):
    template = create_template_via_api(client, template_payload)

    response = client.put(
        f"/api/v1/recurring-templates/{template['id']}",
        json={"amount": 1300.0, "status": "inactive"}
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["amount"] == 1300.0
    assert data["status"] == "inactive"


def test_update_template_end_before_start(client, template_payload):
    template = create_template_via_api(client, template_payload)

    response = client.put(
        f"/api/v1/recurring-templates/{template['id']}",
        json={"end_date": "2026-01-01T00:00:00"}
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.parametrize("field", ["start_date", "amount", "frequency_days", "financial_account_id", "status"])
def test_update_template_rejects_null_required_field(client, template_payload, field):
    template = create_template_via_api(client, template_payload)

    response = client.put(f"/api/v1/recurring-templates/{template['id']}", json={field: None})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert field in response.json()["detail"]

    listed = client.get(f"/api/v1/recurring-templates/?hub_id={template_payload['hub_id']}").json()
    assert listed[0]["start_date"].startswith("2026-03-01")
    assert listed[0]["amount"] == 1200.0


def test_update_template_clears_optional_field(client, template_payload):
    template_payload["end_date"] = "2026-12-31T00:00:00"
    template = create_template_via_api(client, template_payload)

    response = client.put(
        f"/api/v1/recurring-templates/{template['id']}",
        json={"end_date": None, "note": None}
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["end_date"] is None
    assert response.json()["note"] is None


def test_update_missing_template(client):
    response = client.put("/api/v1/recurring-templates/missing", json={"amount": 1.0})

    assert response.status_code == status.HTTP_404_NOT_FOUND
