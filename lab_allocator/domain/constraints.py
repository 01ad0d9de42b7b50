"""Domain-level validation rules for roster entries."""

from __future__ import annotations

from typing import Iterable

from lab_allocator.domain.models import DepartmentCluster, Lab, StudentGroup


DEPARTMENT_SEPARATOR = ","


def parse_department_tokens(text: str) -> tuple[str, ...]:
    """Split a comma separated department list, trimming blanks away."""
    return tuple(
        token.strip() for token in text.split(DEPARTMENT_SEPARATOR) if token.strip()
    )


def validate_lab(lab: Lab, max_capacity: int | None = None) -> None:
    if not lab.name.strip():
        raise ValueError("lab name must be non-empty")
    if lab.capacity <= 0:
        raise ValueError("lab capacity must be > 0")
    if max_capacity is not None and lab.capacity > max_capacity:
        raise ValueError(f"lab capacity must be <= {max_capacity}")


def validate_group(
    group: StudentGroup,
    academic_years: Iterable[str],
    max_headcount: int | None = None,
) -> None:
    years = tuple(academic_years)
    if group.year not in years:
        raise ValueError(f"year must be one of {', '.join(years)}")
    if not group.departments.strip():
        raise ValueError("departments must be non-empty")
    if not group.section.strip():
        raise ValueError("section must be non-empty")
    if group.headcount <= 0:
        raise ValueError("headcount must be > 0")
    if max_headcount is not None and group.headcount > max_headcount:
        raise ValueError(f"headcount must be <= {max_headcount}")


def validate_cluster(cluster: DepartmentCluster) -> None:
    if not cluster.name.strip():
        raise ValueError("cluster name must be non-empty")
    if not cluster.departments:
        raise ValueError("cluster must list at least one department")
    if any(not token.strip() for token in cluster.departments):
        raise ValueError("cluster departments must be non-empty strings")
    if any(DEPARTMENT_SEPARATOR in token for token in cluster.departments):
        raise ValueError(
            f"cluster departments must not contain '{DEPARTMENT_SEPARATOR}'; "
            "list each department as its own token"
        )
