"""
Tests for budget normalization.
"""
import pytest
from app.models.trip import BudgetTier, Trip, normalize_budget

CANONICAL = [tier.value for tier in BudgetTier]

SAMPLES = CANONICAL + [
    "Low", "low", "LOW", " mid ", "Mid", "HiGh",
    "", "   ", "luxury", "$1,000-$2,500", "under $500", "medium", "Above $10,000 ",
    None, 1500,
]


@pytest.mark.parametrize("value, expected", [
    ("Under $500", "Under $500"),
    ("$500 - $1,000", "$500 - $1,000"),
    (" $5,000 - $10,000  ", "$5,000 - $10,000"),
    ("Low", "Under $500"),
    ("mid", "$1,000 - $2,500"),
    ("HIGH", "$5,000 - $10,000"),
    ("cheap", "$1,000 - $2,500"),
    ("", "$1,000 - $2,500"),
    (None, "$1,000 - $2,500"),
])
def test_normalize_budget(value, expected):
    assert normalize_budget(value) == expected


@pytest.mark.parametrize("value", SAMPLES)
def test_normalize_budget_is_total_and_idempotent(value):
    once = normalize_budget(value)
    assert once in CANONICAL
    assert normalize_budget(once) == once


def test_model_normalizes_on_every_assignment():
    trip = Trip(budget="low")
    assert trip.budget == "Under $500"
    trip.budget = "something else"
    assert trip.budget == "$1,000 - $2,500"
