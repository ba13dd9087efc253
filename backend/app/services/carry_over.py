from typing import Tuple

def calculate_carry_over(prev_allocated: float, prev_carried_over: float,
                         prev_manual_spent: float, prev_calculated_spent: float) -> float:
    """
    Surplus (positive) or deficit (negative) rolled from one budget period into the next.

    Deficits are not clamped to zero; they shrink the following period's
    effective budget.
    """
    carry_over = (prev_allocated or 0) + (prev_carried_over or 0) - (
        (prev_manual_spent or 0) + (prev_calculated_spent or 0)
    )
    return round(carry_over, 2)

def effective_budget(allocated: float, carried_over: float) -> float:
    """Amount available to spend in a period"""
    return round((allocated or 0) + (carried_over or 0), 2)

def previous_period(month: int, year: int) -> Tuple[int, int]:
    """(month, year) immediately before the given period; January rolls back to December"""
    if month == 1:
        return 12, year - 1
    return month - 1, year

def month_index(month: int, year: int) -> int:
    """Monotonic index for comparing (month, year) periods"""
    return year * 12 + (month - 1)
