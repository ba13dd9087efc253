from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from backend.app.models.models import AccountType

class FinancialAccountCreate(BaseModel):
    hub_id: str
    user_id: Optional[str] = None
    name: str
    type: AccountType = AccountType.CASH
    balance: float = Field(0.0, ge=0)
    note: Optional[str] = None

class FinancialAccountResponse(BaseModel):
    id: str
    hub_id: str
    user_id: Optional[str] = None
    name: str
    type: AccountType
    balance: float
    note: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
