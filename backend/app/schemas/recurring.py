from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime

from backend.app.models.models import TransactionType, TemplateStatus

class RecurringTemplateCreate(BaseModel):
    hub_id: str
    user_id: Optional[str] = None
    financial_account_id: str
    destination_account_id: Optional[str] = None
    category_id: Optional[str] = None
    type: TransactionType
    source: Optional[str] = None
    amount: float = Field(..., ge=0)
    note: Optional[str] = None
    frequency_days: Optional[int] = Field(None, ge=1)
    start_date: datetime
    end_date: Optional[datetime] = None

    @validator('end_date')
    def validate_end_date(cls, v, values):
        start = values.get('start_date')
        if v is not None and start is not None and v < start:
            raise ValueError('End date must not be before start date')
        return v

class RecurringTemplateUpdate(BaseModel):
    financial_account_id: Optional[str] = None
    destination_account_id: Optional[str] = None
    category_id: Optional[str] = None
    source: Optional[str] = None
    amount: Optional[float] = Field(None, ge=0)
    note: Optional[str] = None
    frequency_days: Optional[int] = Field(None, ge=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[TemplateStatus] = None

class RecurringTemplateResponse(BaseModel):
    id: str
    hub_id: str
    user_id: Optional[str] = None
    financial_account_id: str
    destination_account_id: Optional[str] = None
    category_id: Optional[str] = None
    type: TransactionType
    source: Optional[str] = None
    amount: float
    note: Optional[str] = None
    frequency_days: int
    start_date: datetime
    end_date: Optional[datetime] = None
    status: TemplateStatus
    archived_at: Optional[datetime] = None
    last_generated_date: Optional[datetime] = None
    last_failed_date: Optional[datetime] = None
    failure_reason: Optional[str] = None
    consecutive_failures: int
    created_at: datetime

    class Config:
        from_attributes = True

class GenerationError(BaseModel):
    template_id: str
    error: str

class GenerationStats(BaseModel):
    success: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[GenerationError] = Field(default_factory=list)

class GenerationResult(BaseModel):
    success: bool
    message: str
    stats: GenerationStats
