import pytest
from fastapi import status

from backend.app.models.models import AccountType, FinancialAccount
from backend.app.schemas.accounts import FinancialAccountCreate
from backend.app.services.account_service import (
    create_financial_account, get_hub_accounts, get_account_in_hub, debit_account, credit_account
)

# Service layer tests
def test_create_account_service(db_session, test_hub, test_user):
    """Test account creation at the service layer"""
    account_data = FinancialAccountCreate(
        hub_id=test_hub.id,
        user_id=test_user.id,
        name="Service Test Account",
        type=AccountType.SAVINGS,
        balance=1200.0
    )
    account = create_financial_account(db_session, account_data)

    assert account.id is not None
    assert account.hub_id == test_hub.id
    assert account.type == AccountType.SAVINGS
    assert account.balance == 1200.0

def test_create_account_nonexistent_hub(db_session):
    """Creating an account for a non-existent hub raises an error"""
    account_data = FinancialAccountCreate(hub_id="nonexistent-id", name="Invalid Account")

    with pytest.raises(Exception) as excinfo:
        create_financial_account(db_session, account_data)
    assert "not found" in str(excinfo.value)

def test_get_hub_accounts(db_session, test_hub, test_account, savings_account):
    accounts = get_hub_accounts(db_session, test_hub.id)

    names = sorted(a.name for a in accounts)
    assert names == ["Test Checking Account", "Test Savings Account"]

def test_get_account_in_other_hub_is_not_found(db_session, test_account):
    with pytest.raises(Exception) as excinfo:
        get_account_in_hub(db_session, test_account.id, "another-hub")
    assert "not found" in str(excinfo.value)

def test_debit_account_within_balance(db_session, test_account):
    assert debit_account(db_session, test_account.id, 1500.0) is True
    db_session.commit()

    db_session.refresh(test_account)
    assert test_account.balance == 3500.0

def test_debit_account_to_exactly_zero(db_session, test_account):
    assert debit_account(db_session, test_account.id, 5000.0) is True
    db_session.commit()

    db_session.refresh(test_account)
    assert test_account.balance == 0.0

def test_debit_account_refuses_overdraft(db_session, test_account):
    """The balance never goes negative; the account is left untouched"""
    assert debit_account(db_session, test_account.id, 5000.01) is False
    db_session.commit()

    db_session.refresh(test_account)
    assert test_account.balance == 5000.0

def test_debit_missing_account(db_session):
    assert debit_account(db_session, "missing", 1.0) is False

def test_credit_account(db_session, savings_account):
    assert credit_account(db_session, savings_account.id, 250.0) is True
    db_session.commit()

    db_session.refresh(savings_account)
    assert savings_account.balance == 250.0

# API tests
def test_create_account_api(client, test_hub):
    response = client.post(
        "/api/v1/accounts/",
        json={
            "hub_id": test_hub.id,
            "name": "API Account",
            "type": "checking",
            "balance": 300.0
        }
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["name"] == "API Account"
    assert data["type"] == "checking"
    assert data["balance"] == 300.0

def test_create_account_negative_balance(client, test_hub):
    response = client.post(
        "/api/v1/accounts/",
        json={"hub_id": test_hub.id, "name": "Overdrawn", "balance": -1.0}
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

def test_get_accounts_api(client, db_session, test_hub, test_account):
    response = client.get(f"/api/v1/accounts/?hub_id={test_hub.id}")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert len(data) == 1
    assert data[0]["id"] == test_account.id
    assert db_session.query(FinancialAccount).count() == 1

def test_get_accounts_unknown_hub(client):
    response = client.get("/api/v1/accounts/?hub_id=missing")

    assert response.status_code == status.HTTP_404_NOT_FOUND
