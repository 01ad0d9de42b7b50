"""Tests for roster validation rules."""

from __future__ import annotations

import pytest

from lab_allocator.domain.constraints import (
    parse_department_tokens,
    validate_cluster,
    validate_group,
    validate_lab,
)
from lab_allocator.domain.models import DepartmentCluster, Lab, StudentGroup


YEARS = ("1", "2", "3")


def valid_group(**overrides) -> StudentGroup:
    """Return a valid baseline StudentGroup, optionally overriding fields."""
    defaults = {
        "group_id": 1,
        "year": "1",
        "departments": "CSE, IT",
        "section": "A",
        "headcount": 30,
    }
    defaults.update(overrides)
    return StudentGroup(**defaults)


# --- Labs ---

def test_valid_lab_passes() -> None:
    validate_lab(Lab(lab_id=1, name="Lab 1", capacity=30), max_capacity=30)


@pytest.mark.parametrize("capacity", [0, -5])
def test_non_positive_lab_capacity_raises(capacity: int) -> None:
    with pytest.raises(ValueError):
        validate_lab(Lab(lab_id=1, name="Lab 1", capacity=capacity))


def test_blank_lab_name_raises() -> None:
    with pytest.raises(ValueError):
        validate_lab(Lab(lab_id=1, name="   ", capacity=30))


def test_lab_capacity_above_ceiling_raises() -> None:
    with pytest.raises(ValueError):
        validate_lab(Lab(lab_id=1, name="Lab 1", capacity=31), max_capacity=30)


# --- Student groups ---

def test_valid_group_passes() -> None:
    validate_group(valid_group(), YEARS)


def test_unknown_year_raises() -> None:
    with pytest.raises(ValueError):
        validate_group(valid_group(year="4"), YEARS)


def test_blank_departments_raises() -> None:
    with pytest.raises(ValueError):
        validate_group(valid_group(departments=" "), YEARS)


def test_blank_section_raises() -> None:
    with pytest.raises(ValueError):
        validate_group(valid_group(section=""), YEARS)


def test_zero_headcount_raises() -> None:
    with pytest.raises(ValueError):
        validate_group(valid_group(headcount=0), YEARS)


def test_headcount_above_ceiling_raises() -> None:
    with pytest.raises(ValueError):
        validate_group(valid_group(headcount=120), YEARS, max_headcount=100)


# --- Department clusters ---

def test_cluster_without_tokens_raises() -> None:
    with pytest.raises(ValueError):
        validate_cluster(DepartmentCluster(cluster_id=1, name="Eng", departments=()))


def test_cluster_with_blank_token_raises() -> None:
    with pytest.raises(ValueError):
        validate_cluster(DepartmentCluster(cluster_id=1, name="Eng", departments=("CSE", " ")))


def test_parse_department_tokens_trims_and_drops_blanks() -> None:
    assert parse_department_tokens(" CSE, IT ,,AIDS ") == ("CSE", "IT", "AIDS")
    assert parse_department_tokens(" , ") == ()


def test_cluster_token_with_separator_raises() -> None:
    with pytest.raises(ValueError):
        validate_cluster(DepartmentCluster(cluster_id=1, name="Eng", departments=("CSE, IT",)))
