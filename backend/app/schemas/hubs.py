from typing import Optional
from datetime import datetime
from pydantic import BaseModel

class HubCreate(BaseModel):
    name: str
    user_id: Optional[str] = None
    budget_carry_over: bool = False
    budget_email_warnings: bool = True

class HubResponse(BaseModel):
    id: str
    name: str
    user_id: Optional[str] = None
    budget_carry_over: bool
    budget_email_warnings: bool
    created_at: datetime

    class Config:
        from_attributes = True

class HubSettingsUpdate(BaseModel):
    budget_carry_over: Optional[bool] = None
    budget_email_warnings: Optional[bool] = None

class HubSettingsResponse(BaseModel):
    hub_id: str
    budget_carry_over: bool
    budget_email_warnings: bool
