"""Greedy multi-session lab allocation engine.

Groups are bucketed by academic year and then by department cluster. Each
bucket is packed into labs one session at a time; a lab serves at most one
bucket per session. Groups that cannot be seated are retried in the next
session until everyone is placed or a session places nobody.

The engine never mutates the caller's records. All per-run state is local to
``compute_allocation`` so concurrent runs over the same rosters are safe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence

from lab_allocator.domain.models import (
    AllocationRecord,
    AllocationResult,
    DepartmentCluster,
    Lab,
    PlacedGroup,
    StudentGroup,
)
from lab_allocator.utils.logger import get_logger


logger = get_logger(__name__)


class AllocationInputError(ValueError):
    """Raised when rosters handed to the engine are unusable."""


class NothingToAllocateError(AllocationInputError):
    """Raised when either the lab roster or the group roster is empty."""


class DriverState(str, Enum):
    RUNNING = "running"
    DONE = "done"


@dataclass
class _OpenLab:
    lab: Lab
    remaining: int
    placed: list[StudentGroup] = field(default_factory=list)

    def to_record(self, year: str, cluster: str) -> AllocationRecord:
        return AllocationRecord(
            lab_id=self.lab.lab_id,
            lab_name=self.lab.name,
            year=year,
            cluster=cluster,
            groups=tuple(
                PlacedGroup(
                    group_id=group.group_id,
                    departments=group.departments,
                    section=group.section,
                    headcount=group.headcount,
                )
                for group in self.placed
            ),
        )


@dataclass(frozen=True)
class BucketOutcome:
    records: tuple[AllocationRecord, ...]
    placed: tuple[StudentGroup, ...]


def resolve_department_cluster(
    departments: str,
    clusters: Sequence[DepartmentCluster],
) -> str:
    """Return the first cluster whose token occurs inside ``departments``.

    Matching is plain substring containment, so token ``"CS"`` claims
    ``"CSE, IT"``. Unmatched designators form their own cluster keyed by the
    raw text.
    """
    for cluster in clusters:
        if any(token in departments for token in cluster.departments):
            return cluster.name
    return departments


def group_by_year_and_cluster(
    groups: Iterable[StudentGroup],
    clusters: Sequence[DepartmentCluster],
) -> dict[str, dict[str, list[StudentGroup]]]:
    """Partition groups by year, then by resolved cluster, in first-seen order."""
    by_year: dict[str, list[StudentGroup]] = {}
    for group in groups:
        by_year.setdefault(group.year, []).append(group)

    partition: dict[str, dict[str, list[StudentGroup]]] = {}
    for year, year_groups in by_year.items():
        buckets: dict[str, list[StudentGroup]] = {}
        for group in year_groups:
            cluster_name = resolve_department_cluster(group.departments, clusters)
            buckets.setdefault(cluster_name, []).append(group)
        partition[year] = buckets
    return partition


def pack_bucket(
    *,
    year: str,
    cluster: str,
    bucket: Sequence[StudentGroup],
    labs_by_capacity: Sequence[Lab],
    opened_this_session: set[int],
) -> BucketOutcome:
    """Seat one bucket's groups for the current session.

    ``labs_by_capacity`` must be ordered by descending capacity, so the lab
    picked for a group is the largest unopened lab that can hold it.
    ``opened_this_session`` is updated in place with every lab opened here.
    """
    candidates = [
        lab for lab in labs_by_capacity if lab.lab_id not in opened_this_session
    ]
    if not candidates:
        logger.debug(
            "No labs left this session | year=%s | cluster=%s | deferred=%s",
            year,
            cluster,
            len(bucket),
        )
        return BucketOutcome(records=(), placed=())

    opened: list[_OpenLab] = []
    current: Optional[_OpenLab] = None
    placed: list[StudentGroup] = []

    for group in bucket:
        if current is None or current.remaining < group.headcount:
            suitable = next(
                (lab for lab in candidates if lab.capacity >= group.headcount),
                None,
            )
            if suitable is None:
                logger.debug(
                    "Group deferred | group_id=%s | headcount=%s | year=%s | cluster=%s",
                    group.group_id,
                    group.headcount,
                    year,
                    cluster,
                )
                continue
            candidates.remove(suitable)
            opened_this_session.add(suitable.lab_id)
            current = _OpenLab(lab=suitable, remaining=suitable.capacity)
            opened.append(current)
            logger.debug(
                "Lab opened | lab_id=%s | capacity=%s | year=%s | cluster=%s",
                suitable.lab_id,
                suitable.capacity,
                year,
                cluster,
            )

        if current.remaining >= group.headcount:
            current.placed.append(group)
            current.remaining -= group.headcount
            placed.append(group)

    return BucketOutcome(
        records=tuple(open_lab.to_record(year, cluster) for open_lab in opened),
        placed=tuple(placed),
    )


def _check_unique_ids(labs: Sequence[Lab], groups: Sequence[StudentGroup]) -> None:
    lab_ids = [lab.lab_id for lab in labs]
    if len(set(lab_ids)) != len(lab_ids):
        raise AllocationInputError("lab ids must be unique")
    group_ids = [group.group_id for group in groups]
    if len(set(group_ids)) != len(group_ids):
        raise AllocationInputError("group ids must be unique")


def compute_allocation(
    labs: Sequence[Lab],
    groups: Sequence[StudentGroup],
    clusters: Sequence[DepartmentCluster] = (),
) -> AllocationResult:
    """Allocate every group to a lab across as many sessions as needed.

    Labs are tried largest first and groups largest first; both sorts are
    stable so ties keep the caller's order. The loop stops when all groups
    are seated or when a session seats nobody, in which case the remaining
    groups are reported as unallocated.
    """
    if not labs or not groups:
        raise NothingToAllocateError(
            "Please add at least one lab and one student group"
        )
    _check_unique_ids(labs, groups)

    labs_by_capacity = sorted(labs, key=lambda lab: lab.capacity, reverse=True)
    pool = sorted(groups, key=lambda group: group.headcount, reverse=True)
    sessions: list[tuple[AllocationRecord, ...]] = []
    state = DriverState.RUNNING

    while state is DriverState.RUNNING:
        session_number = len(sessions) + 1
        session_records: list[AllocationRecord] = []
        opened_this_session: set[int] = set()
        placed_ids: set[int] = set()

        partition = group_by_year_and_cluster(pool, clusters)
        for year, buckets in partition.items():
            for cluster_name, bucket in buckets.items():
                outcome = pack_bucket(
                    year=year,
                    cluster=cluster_name,
                    bucket=bucket,
                    labs_by_capacity=labs_by_capacity,
                    opened_this_session=opened_this_session,
                )
                session_records.extend(outcome.records)
                placed_ids.update(group.group_id for group in outcome.placed)

        if session_records:
            sessions.append(tuple(session_records))
            logger.info(
                "Session completed | session=%s | labs_used=%s | groups_placed=%s",
                session_number,
                len(session_records),
                len(placed_ids),
            )

        pool = [group for group in pool if group.group_id not in placed_ids]
        if not pool:
            state = DriverState.DONE
        elif not placed_ids:
            logger.warning(
                "Allocation stalled | session=%s | unallocated=%s",
                session_number,
                len(pool),
            )
            state = DriverState.DONE

    return AllocationResult(sessions=tuple(sessions), unallocated=tuple(pool))


def ordinal_session_label(session_number: int) -> str:
    """Human label for a 1-based session number ("First", "Second", "4th")."""
    words = {1: "First", 2: "Second", 3: "Third"}
    if session_number in words:
        return words[session_number]
    if 10 <= session_number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(session_number % 10, "th")
    return f"{session_number}{suffix}"
