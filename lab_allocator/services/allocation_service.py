"""Allocation orchestration over stored or caller-supplied rosters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from lab_allocator.domain.constraints import (
    validate_cluster,
    validate_group,
    validate_lab,
)
from lab_allocator.domain.models import (
    AllocationResult,
    AllocationStatus,
    DepartmentCluster,
    Lab,
    StudentGroup,
)
from lab_allocator.repository.roster_repository import RosterRepository
from lab_allocator.services.allocation_engine import (
    AllocationInputError,
    compute_allocation,
)
from lab_allocator.utils.config import Settings, get_settings
from lab_allocator.utils.logger import get_logger, log_duration


logger = get_logger(__name__)

SUCCESS_MESSAGE = "All groups have been successfully allocated"


@dataclass(frozen=True)
class AllocationOutcome:
    result: AllocationResult
    status: AllocationStatus
    message: str


class LabAllocationService:
    """Runs the session allocation engine and reports its outcome."""

    def __init__(
        self,
        repository: Optional[RosterRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or RosterRepository(self._settings)

    def allocate(
        self,
        *,
        labs: Optional[Sequence[Lab]] = None,
        groups: Optional[Sequence[StudentGroup]] = None,
        clusters: Optional[Sequence[DepartmentCluster]] = None,
    ) -> AllocationOutcome:
        """Allocate groups to labs; omitted rosters are loaded from storage.

        Inline rosters pass the same validation as stored roster entries;
        failures raise ``AllocationInputError``. Raises
        ``NothingToAllocateError`` when either roster is empty.
        """
        self._validate_inline(labs=labs, groups=groups, clusters=clusters)
        resolved_labs = list(labs) if labs is not None else self._repository.list_labs()
        resolved_groups = (
            list(groups) if groups is not None else self._repository.list_groups()
        )
        resolved_clusters = (
            list(clusters) if clusters is not None else self._repository.list_clusters()
        )

        with log_duration(
            logger,
            "Allocation run",
            labs=len(resolved_labs),
            groups=len(resolved_groups),
            clusters=len(resolved_clusters),
        ):
            result = compute_allocation(resolved_labs, resolved_groups, resolved_clusters)

        if result.unallocated:
            message = (
                f"Warning: {len(result.unallocated)} groups could not be "
                "allocated in any session"
            )
            logger.warning(
                "Allocation partial | sessions=%s | allocated=%s | unallocated_ids=%s",
                result.session_count,
                result.allocated_count,
                [group.group_id for group in result.unallocated],
            )
        else:
            message = SUCCESS_MESSAGE
            logger.info(
                "Allocation completed | sessions=%s | allocated=%s",
                result.session_count,
                result.allocated_count,
            )
        return AllocationOutcome(result=result, status=result.status, message=message)

    def _validate_inline(
        self,
        *,
        labs: Optional[Sequence[Lab]],
        groups: Optional[Sequence[StudentGroup]],
        clusters: Optional[Sequence[DepartmentCluster]],
    ) -> None:
        try:
            for lab in labs or ():
                validate_lab(lab, max_capacity=self._settings.max_lab_capacity)
            for group in groups or ():
                validate_group(
                    group,
                    academic_years=self._settings.academic_years,
                    max_headcount=self._settings.max_group_headcount,
                )
            for cluster in clusters or ():
                validate_cluster(cluster)
        except ValueError as exc:
            raise AllocationInputError(str(exc)) from exc
