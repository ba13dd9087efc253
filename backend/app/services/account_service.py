from sqlalchemy.orm import Session
from fastapi import HTTPException
from typing import List

from backend.app.models.models import FinancialAccount, Hub
from backend.app.schemas.accounts import FinancialAccountCreate

def create_financial_account(db: Session, account_data: FinancialAccountCreate) -> FinancialAccount:
    """Service function to create a new financial account"""

    # Verify the hub exists
    hub = db.query(Hub).filter(Hub.id == account_data.hub_id).first()
    if not hub:
        raise HTTPException(status_code=404, detail=f"Hub with id {account_data.hub_id} not found")

    new_account = FinancialAccount(
        hub_id=account_data.hub_id,
        user_id=account_data.user_id,
        name=account_data.name,
        type=account_data.type,
        balance=account_data.balance,
        note=account_data.note
    )

    db.add(new_account)
    db.commit()
    db.refresh(new_account)

    return new_account

def get_hub_accounts(db: Session, hub_id: str) -> List[FinancialAccount]:
    """Get all financial accounts of a hub"""

    hub = db.query(Hub).filter(Hub.id == hub_id).first()
    if not hub:
        raise HTTPException(status_code=404, detail=f"Hub with id {hub_id} not found")

    return db.query(FinancialAccount).filter(FinancialAccount.hub_id == hub_id).all()

def get_account_in_hub(db: Session, account_id: str, hub_id: str) -> FinancialAccount:
    """Fetch an account and verify it belongs to the hub"""
    account = db.query(FinancialAccount).filter(
        FinancialAccount.id == account_id,
        FinancialAccount.hub_id == hub_id
    ).first()
    if not account:
        raise HTTPException(status_code=404, detail=f"Account with id {account_id} not found")
    return account

def debit_account(db: Session, account_id: str, amount: float) -> bool:
    """
    Subtract `amount` from an account unless that would make the balance negative.

    Runs as one conditional UPDATE so concurrent debits cannot overdraw the
    account. Returns False when no row was updated. Does not commit; the caller
    owns the unit of work.
    """
    updated = db.query(FinancialAccount).filter(
        FinancialAccount.id == account_id,
        FinancialAccount.balance >= amount
    ).update(
        {FinancialAccount.balance: FinancialAccount.balance - amount},
        synchronize_session=False
    )
    return updated == 1

def credit_account(db: Session, account_id: str, amount: float) -> bool:
    """Add `amount` to an account. Does not commit."""
    updated = db.query(FinancialAccount).filter(
        FinancialAccount.id == account_id
    ).update(
        {FinancialAccount.balance: FinancialAccount.balance + amount},
        synchronize_session=False
    )
    return updated == 1
