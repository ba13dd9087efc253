from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from backend.app.schemas.accounts import FinancialAccountCreate, FinancialAccountResponse
from backend.app.services.account_service import create_financial_account, get_hub_accounts
from backend.app.database import get_db_session

router = APIRouter()

@router.post("/", response_model=FinancialAccountResponse)
async def create_account(account_data: FinancialAccountCreate, db: Session = Depends(get_db_session)):
    """
    Create a new financial account.

    - Links an account to a hub
    - The opening balance must not be negative
    """
    return create_financial_account(db, account_data)

@router.get("/", response_model=List[FinancialAccountResponse])
async def get_accounts(
    hub_id: str = Query(..., description="ID of the hub"),
    db: Session = Depends(get_db_session)
):
    """
    Get the financial accounts of a hub
    """
    return get_hub_accounts(db, hub_id)
