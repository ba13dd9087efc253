from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

class BudgetBase(BaseModel):
    category_id: Optional[str] = None
    allocated_amount: float = Field(..., ge=0)
    spent_amount: float = Field(0.0, ge=0)
    warning_percentage: int = Field(80, ge=0, le=100)

class BudgetCreate(BudgetBase):
    hub_id: str
    user_id: Optional[str] = None

class BudgetUpdate(BaseModel):
    category_id: Optional[str] = None
    allocated_amount: Optional[float] = Field(None, ge=0)
    spent_amount: Optional[float] = Field(None, ge=0)
    warning_percentage: Optional[int] = Field(None, ge=0, le=100)
    is_active: Optional[bool] = None

class BudgetInDB(BudgetBase):
    id: str
    hub_id: str
    user_id: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

class MonthlyBudget(BaseModel):
    """A budget as seen in one month: its instance figures plus spending"""
    budget_id: str
    instance_id: str
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    month: int
    year: int
    allocated_amount: float
    carried_over_amount: float
    spent_amount: float
    calculated_spent_amount: float
    available: float
    remaining: float
    percent_used: float
    warning_percentage: int
    warning_reached: bool

class RolloverRequest(BaseModel):
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=1970)

class RolloverResult(BaseModel):
    success: bool
    message: Optional[str] = None
    processed: int = 0
    failed: int = 0
