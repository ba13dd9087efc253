import logging
from datetime import datetime
from typing import List, Dict, Any, Optional, Set

from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException

from backend.app.models.models import (
    Budget, BudgetInstance, Hub, Transaction, TransactionCategory, TransactionType
)
from backend.app.schemas.budgets import BudgetCreate, BudgetUpdate
from backend.app.services.carry_over import (
    calculate_carry_over, effective_budget, previous_period, month_index
)
from backend.app.services.hub_service import get_carry_over_enabled

logger = logging.getLogger(__name__)

def month_bounds(month: int, year: int):
    """[start, end) datetimes of a calendar month"""
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end

def create_budget(db: Session, budget: BudgetCreate, now: Optional[datetime] = None) -> Budget:
    """Create a new budget for a category"""
    hub = db.query(Hub).filter(Hub.id == budget.hub_id).first()
    if not hub:
        raise HTTPException(status_code=404, detail=f"Hub with id {budget.hub_id} not found")

    if budget.category_id:
        category = db.query(TransactionCategory).filter(
            TransactionCategory.id == budget.category_id,
            TransactionCategory.hub_id == budget.hub_id
        ).first()
        if not category:
            raise HTTPException(status_code=404, detail="Category not found")

    db_budget = Budget(
        hub_id=budget.hub_id,
        user_id=budget.user_id,
        category_id=budget.category_id,
        allocated_amount=budget.allocated_amount,
        spent_amount=budget.spent_amount,
        warning_percentage=budget.warning_percentage,
        is_active=True
    )
    if now is not None:
        db_budget.created_at = now
    db.add(db_budget)
    db.commit()
    db.refresh(db_budget)

    logger.info("Created budget %s for hub %s", db_budget.id, db_budget.hub_id)
    return db_budget

def get_budgets(db: Session, hub_id: str, include_inactive: bool = False) -> List[Budget]:
    """Get all budgets for a hub"""
    query = db.query(Budget).filter(Budget.hub_id == hub_id)
    if not include_inactive:
        query = query.filter(Budget.is_active == True)  # noqa: E712
    return query.order_by(Budget.created_at).all()

def update_budget(db: Session, budget_id: str, budget_update: BudgetUpdate) -> Budget:
    """
    Update an existing budget.

    Allocation changes apply going forward: instances already materialized
    keep the allocation they were created with.
    """
    budget = db.query(Budget).filter(Budget.id == budget_id).first()
    if not budget:
        raise HTTPException(status_code=404, detail="Budget not found")

    for key, value in budget_update.model_dump(exclude_unset=True).items():
        setattr(budget, key, value)

    db.commit()
    db.refresh(budget)
    return budget

def deactivate_budget(db: Session, budget_id: str) -> Budget:
    """
    Stop a budget from materializing in later months.

    Instances already created are kept; the budget no longer appears in
    monthly listings.
    """
    budget = db.query(Budget).filter(Budget.id == budget_id).first()
    if not budget:
        raise HTTPException(status_code=404, detail="Budget not found")

    if budget.is_active:
        budget.is_active = False
        db.commit()
        db.refresh(budget)
        logger.info("Deactivated budget %s", budget_id)
    return budget

def calculate_spent(db: Session, hub_id: str, category_id: Optional[str], month: int, year: int) -> float:
    """Sum of expense transactions booked in a category during one month"""
    if not category_id:
        return 0.0

    start, end = month_bounds(month, year)
    total = db.query(func.coalesce(func.sum(Transaction.amount), 0.0)).filter(
        Transaction.hub_id == hub_id,
        Transaction.category_id == category_id,
        Transaction.type == TransactionType.EXPENSE,
        Transaction.created_at >= start,
        Transaction.created_at < end
    ).scalar()
    return float(total or 0.0)

def _visible_budgets(db: Session, hub_id: str, month: int, year: int) -> List[Budget]:
    """Active budgets created on or before the target month; later ones are ghosts for that period"""
    target = month_index(month, year)
    return [
        budget for budget in get_budgets(db, hub_id)
        if month_index(budget.created_at.month, budget.created_at.year) <= target
    ]

def _existing_instance_budget_ids(db: Session, budget_ids: List[str], month: int, year: int) -> Set[str]:
    if not budget_ids:
        return set()
    rows = db.query(BudgetInstance.budget_id).filter(
        BudgetInstance.budget_id.in_(budget_ids),
        BudgetInstance.month == month,
        BudgetInstance.year == year
    ).all()
    return {row[0] for row in rows}

def check_budget_instances_exist(db: Session, hub_id: str, month: int, year: int) -> bool:
    """True when every visible active budget already has an instance for the period"""
    budgets = _visible_budgets(db, hub_id, month, year)
    existing = _existing_instance_budget_ids(db, [b.id for b in budgets], month, year)
    return all(b.id in existing for b in budgets)

def _carry_over_for(db: Session, budget: Budget, month: int, year: int) -> float:
    prev_month, prev_year = previous_period(month, year)
    prev_instance = db.query(BudgetInstance).filter(
        BudgetInstance.budget_id == budget.id,
        BudgetInstance.month == prev_month,
        BudgetInstance.year == prev_year
    ).first()
    if not prev_instance:
        return 0.0

    return calculate_carry_over(
        prev_instance.allocated_amount,
        prev_instance.carried_over_amount,
        budget.spent_amount,
        calculate_spent(db, budget.hub_id, budget.category_id, prev_month, prev_year)
    )

def ensure_budget_instances(db: Session, hub_id: str, month: int, year: int) -> int:
    """
    Lazily materialize the budget instances of a hub for one month.

    Idempotent: budgets that already have an instance for the period are left
    alone, and a uniqueness violation from a concurrent caller is treated as
    already materialized. A budget that fails for any other reason is logged
    and skipped so the remaining budgets are still materialized.

    Args:
        db: Database session
        hub_id: Hub whose budgets to materialize
        month: Target month (1-12)
        year: Target year

    Returns:
        Number of instances created by this call
    """
    budgets = _visible_budgets(db, hub_id, month, year)
    existing = _existing_instance_budget_ids(db, [b.id for b in budgets], month, year)
    missing = [b for b in budgets if b.id not in existing]
    if not missing:
        return 0

    carry_over_enabled = get_carry_over_enabled(db, hub_id)
    logger.info(
        "Materializing %d budget instances for hub %s at %02d/%d (carry-over %s)",
        len(missing), hub_id, month, year, "enabled" if carry_over_enabled else "disabled"
    )

    # Plain values; commits and rollbacks below expire the ORM instances
    pending = [(b.id, b.allocated_amount, b) for b in missing]

    created = 0
    for budget_id, allocated_amount, budget in pending:
        try:
            carried_over = _carry_over_for(db, budget, month, year) if carry_over_enabled else 0.0
            db.add(BudgetInstance(
                budget_id=budget_id,
                month=month,
                year=year,
                allocated_amount=allocated_amount,
                carried_over_amount=carried_over
            ))
            db.commit()
            created += 1
        except IntegrityError:
            db.rollback()
            logger.info("Budget %s already materialized for %02d/%d", budget_id, month, year)
        except Exception:
            db.rollback()
            logger.exception("Failed to materialize budget %s for %02d/%d", budget_id, month, year)

    return created

def get_budgets_by_month(db: Session, hub_id: str, month: int, year: int) -> List[Dict[str, Any]]:
    """Budgets of a hub as seen in one month, materializing the period first"""
    ensure_budget_instances(db, hub_id, month, year)

    rows = db.query(BudgetInstance, Budget, TransactionCategory.name).join(
        Budget, BudgetInstance.budget_id == Budget.id
    ).outerjoin(
        TransactionCategory, Budget.category_id == TransactionCategory.id
    ).filter(
        Budget.hub_id == hub_id,
        Budget.is_active == True,  # noqa: E712
        BudgetInstance.month == month,
        BudgetInstance.year == year
    ).order_by(Budget.created_at).all()

    results = []
    for instance, budget, category_name in rows:
        calculated_spent = calculate_spent(db, hub_id, budget.category_id, month, year)
        total_spent = budget.spent_amount + calculated_spent
        available = effective_budget(instance.allocated_amount, instance.carried_over_amount)
        if available > 0:
            percent_used = (total_spent / available) * 100
        else:
            percent_used = 100.0 if total_spent > 0 else 0.0

        results.append({
            "budget_id": budget.id,
            "instance_id": instance.id,
            "category_id": budget.category_id,
            "category_name": category_name,
            "month": month,
            "year": year,
            "allocated_amount": instance.allocated_amount,
            "carried_over_amount": instance.carried_over_amount,
            "spent_amount": budget.spent_amount,
            "calculated_spent_amount": calculated_spent,
            "available": available,
            "remaining": round(available - total_spent, 2),
            "percent_used": round(percent_used, 2),
            "warning_percentage": budget.warning_percentage,
            "warning_reached": percent_used >= budget.warning_percentage
        })

    return results
