"""Roster management: labs, student groups and department clusters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

import pandas as pd

from lab_allocator.domain.constraints import (
    parse_department_tokens,
    validate_cluster,
    validate_group,
    validate_lab,
)
from lab_allocator.domain.models import DepartmentCluster, Lab, StudentGroup
from lab_allocator.repository.roster_repository import RosterRepository
from lab_allocator.utils.config import Settings, get_settings
from lab_allocator.utils.logger import get_logger


logger = get_logger(__name__)


class RosterValidationError(Exception):
    """Raised when a roster entry fails domain validation."""


class RosterItemNotFoundError(Exception):
    """Raised when removing a roster entry that does not exist."""


@dataclass(frozen=True)
class RosterSummary:
    total_labs: int
    total_capacity: int
    total_groups: int
    total_students: int
    students_by_year: dict[str, int]


def summarize_roster(
    labs: Sequence[Lab],
    groups: Sequence[StudentGroup],
    academic_years: Iterable[str],
) -> RosterSummary:
    """Totals shown before an allocation run.

    Every configured year gets a row, zero when it has no groups; years outside
    the configured set are appended in first-seen order.
    """
    frame = pd.DataFrame(
        [(group.year, group.headcount) for group in groups],
        columns=["year", "headcount"],
    )
    by_year = frame.groupby("year", sort=False)["headcount"].sum()

    students_by_year = {year: 0 for year in academic_years}
    for year, headcount in by_year.items():
        students_by_year[str(year)] = int(headcount)

    return RosterSummary(
        total_labs=len(labs),
        total_capacity=sum(lab.capacity for lab in labs),
        total_groups=len(groups),
        total_students=sum(group.headcount for group in groups),
        students_by_year=students_by_year,
    )


class RosterService:
    """Validates roster edits before they reach the repository."""

    def __init__(
        self,
        repository: Optional[RosterRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or RosterRepository(self._settings)

    def add_lab(self, *, name: str, capacity: int) -> Lab:
        name = name.strip()
        try:
            validate_lab(
                Lab(lab_id=0, name=name, capacity=capacity),
                max_capacity=self._settings.max_lab_capacity,
            )
        except ValueError as exc:
            raise RosterValidationError(str(exc)) from exc
        lab = self._repository.add_lab(name, capacity)
        logger.info("Lab added | lab_id=%s | capacity=%s", lab.lab_id, lab.capacity)
        return lab

    def add_group(
        self,
        *,
        year: str,
        departments: str,
        section: str,
        headcount: int,
    ) -> StudentGroup:
        candidate = StudentGroup(
            group_id=0,
            year=year.strip(),
            departments=departments.strip(),
            section=section.strip(),
            headcount=headcount,
        )
        try:
            validate_group(
                candidate,
                academic_years=self._settings.academic_years,
                max_headcount=self._settings.max_group_headcount,
            )
        except ValueError as exc:
            raise RosterValidationError(str(exc)) from exc
        group = self._repository.add_group(
            candidate.year,
            candidate.departments,
            candidate.section,
            candidate.headcount,
        )
        logger.info(
            "Student group added | group_id=%s | year=%s | headcount=%s",
            group.group_id,
            group.year,
            group.headcount,
        )
        return group

    def add_cluster(
        self,
        *,
        name: str,
        departments: Union[str, list[str], tuple[str, ...]],
    ) -> DepartmentCluster:
        if isinstance(departments, str):
            tokens = parse_department_tokens(departments)
        else:
            tokens = tuple(token.strip() for token in departments if token.strip())
        candidate = DepartmentCluster(cluster_id=0, name=name.strip(), departments=tokens)
        try:
            validate_cluster(candidate)
        except ValueError as exc:
            raise RosterValidationError(str(exc)) from exc
        cluster = self._repository.add_cluster(candidate.name, candidate.departments)
        logger.info(
            "Department cluster added | cluster_id=%s | tokens=%s",
            cluster.cluster_id,
            list(cluster.departments),
        )
        return cluster

    def list_labs(self) -> list[Lab]:
        return self._repository.list_labs()

    def list_groups(self) -> list[StudentGroup]:
        return self._repository.list_groups()

    def list_clusters(self) -> list[DepartmentCluster]:
        return self._repository.list_clusters()

    def remove_lab(self, lab_id: int) -> None:
        if not self._repository.remove_lab(lab_id):
            raise RosterItemNotFoundError(f"Lab {lab_id} not found")

    def remove_group(self, group_id: int) -> None:
        if not self._repository.remove_group(group_id):
            raise RosterItemNotFoundError(f"Student group {group_id} not found")

    def remove_cluster(self, cluster_id: int) -> None:
        if not self._repository.remove_cluster(cluster_id):
            raise RosterItemNotFoundError(f"Department cluster {cluster_id} not found")

    def summary(self) -> RosterSummary:
        return summarize_roster(
            self._repository.list_labs(),
            self._repository.list_groups(),
            self._settings.academic_years,
        )

    def clear_all(self) -> None:
        self._repository.clear_all()
