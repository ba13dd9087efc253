from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from backend.app.database import get_db_session
from backend.app.schemas.budgets import (
    BudgetCreate, BudgetInDB, BudgetUpdate, MonthlyBudget, RolloverRequest, RolloverResult
)
from backend.app.services.budget_service import (
    create_budget, get_budgets_by_month, update_budget, deactivate_budget
)
from backend.app.services.budget_rollover_service import perform_monthly_rollover
from backend.app.services.clock import Clock, get_clock

router = APIRouter()

@router.post("/", response_model=BudgetInDB)
def create_budget_endpoint(
    budget_data: BudgetCreate,
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock)
):
    """
    Create a new budget for a specific category
    """
    return create_budget(db, budget_data, now=clock.now())

@router.get("/", response_model=List[MonthlyBudget])
def get_budgets_endpoint(
    hub_id: str = Query(..., description="ID of the hub"),
    month: Optional[int] = Query(None, ge=1, le=12, description="Month (1-12)"),
    year: Optional[int] = Query(None, description="Year"),
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock)
):
    """
    Get the budgets of a hub for one month.

    - Defaults to the current month
    - Materializes the month's budget instances on first request, applying carry-over if enabled
    - Budgets created after the requested month are not returned
    """
    now = clock.now()
    return get_budgets_by_month(db, hub_id, month or now.month, year or now.year)

@router.put("/{budget_id}", response_model=BudgetInDB)
def update_budget_endpoint(
    budget_id: str,
    budget_update: BudgetUpdate,
    db: Session = Depends(get_db_session)
):
    """
    Update an existing budget. Already materialized months keep their allocation.
    """
    return update_budget(db, budget_id, budget_update)

@router.post("/{budget_id}/deactivate", response_model=BudgetInDB)
def deactivate_budget_endpoint(
    budget_id: str,
    db: Session = Depends(get_db_session)
):
    """
    Deactivate a budget. Months already materialized keep their instance.
    """
    return deactivate_budget(db, budget_id)

@router.post("/rollover", response_model=RolloverResult)
def rollover_endpoint(
    request: RolloverRequest,
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock)
):
    """
    Materialize budget instances for every hub for the given (or current) month
    """
    return perform_monthly_rollover(db, clock, request.month, request.year)
