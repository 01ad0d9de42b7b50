"""Domain models for lab rosters and session allocation output."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Lab:
    lab_id: int
    name: str
    capacity: int


@dataclass(frozen=True)
class StudentGroup:
    group_id: int
    year: str
    departments: str
    section: str
    headcount: int


@dataclass(frozen=True)
class DepartmentCluster:
    cluster_id: int
    name: str
    departments: tuple[str, ...]


@dataclass(frozen=True)
class PlacedGroup:
    group_id: int
    departments: str
    section: str
    headcount: int


@dataclass(frozen=True)
class AllocationRecord:
    """One lab opened for one (year, cluster) bucket in one session."""

    lab_id: int
    lab_name: str
    year: str
    cluster: str
    groups: tuple[PlacedGroup, ...]

    @property
    def total_headcount(self) -> int:
        return sum(group.headcount for group in self.groups)


class AllocationStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"


@dataclass(frozen=True)
class AllocationResult:
    sessions: tuple[tuple[AllocationRecord, ...], ...]
    unallocated: tuple[StudentGroup, ...]

    @property
    def session_count(self) -> int:
        return len(self.sessions)

    @property
    def allocated_count(self) -> int:
        return sum(
            len(record.groups) for session in self.sessions for record in session
        )

    @property
    def is_complete(self) -> bool:
        return not self.unallocated

    @property
    def status(self) -> AllocationStatus:
        if self.unallocated:
            return AllocationStatus.PARTIAL
        return AllocationStatus.SUCCESS

    def session_of(self, group_id: int) -> Optional[int]:
        """Return the 1-based session a group was placed in, if any."""
        for index, session in enumerate(self.sessions, start=1):
            for record in session:
                if any(group.group_id == group_id for group in record.groups):
                    return index
        return None
