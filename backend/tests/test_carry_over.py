import pytest

from backend.app.services.carry_over import (
    calculate_carry_over, effective_budget, previous_period, month_index
)

def test_overspend_carries_a_deficit():
    """500 allocated, 600 spent: the next month starts 100 short"""
    carry_over = calculate_carry_over(
        prev_allocated=500, prev_carried_over=0, prev_manual_spent=0, prev_calculated_spent=600
    )
    assert carry_over == -100
    assert effective_budget(500, carry_over) == 400

def test_underspend_carries_a_surplus():
    assert calculate_carry_over(500, 0, 50, 200) == 250

def test_previous_carry_over_compounds():
    assert calculate_carry_over(500, -100, 0, 450) == -50
    assert calculate_carry_over(300, 250, 0, 0) == 550

def test_deficit_is_not_clamped():
    assert calculate_carry_over(0, 0, 0, 1000) == -1000

def test_none_values_count_as_zero():
    assert calculate_carry_over(200, None, None, 50) == 150

def test_result_is_rounded_to_cents():
    assert calculate_carry_over(100.1, 0.2, 0, 0) == 100.3

@pytest.mark.parametrize("month, year, expected", [
    (1, 2026, (12, 2025)),
    (3, 2026, (2, 2026)),
    (12, 2026, (11, 2026)),
])
def test_previous_period(month, year, expected):
    assert previous_period(month, year) == expected

def test_month_index_orders_across_years():
    assert month_index(12, 2025) < month_index(1, 2026)
    assert month_index(1, 2026) + 1 == month_index(2, 2026)
