"""HTTP controller layer for session allocation runs."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from lab_allocator.controllers.dependencies import get_allocation_service, require_admin
from lab_allocator.domain.constraints import parse_department_tokens
from lab_allocator.domain.models import (
    AllocationRecord,
    DepartmentCluster,
    Lab,
    StudentGroup,
)
from lab_allocator.services.allocation_engine import (
    AllocationInputError,
    NothingToAllocateError,
    ordinal_session_label,
)
from lab_allocator.services.allocation_service import LabAllocationService
from lab_allocator.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["allocation"])


class LabInput(BaseModel):
    id: int
    name: str = Field(min_length=1)
    capacity: int = Field(gt=0)


class GroupInput(BaseModel):
    id: int
    year: str = Field(min_length=1)
    departments: str = Field(min_length=1)
    section: str = Field(min_length=1)
    headcount: int = Field(gt=0)


class ClusterInput(BaseModel):
    id: int = 0
    name: str = Field(min_length=1)
    departments: str | list[str]


class AllocateRequest(BaseModel):
    """Inline rosters; any collection left out is read from storage."""

    labs: list[LabInput] | None = None
    groups: list[GroupInput] | None = None
    clusters: list[ClusterInput] | None = None


class PlacedGroupResponse(BaseModel):
    id: int
    departments: str
    section: str
    headcount: int


class AllocationRecordResponse(BaseModel):
    lab_id: int
    lab_name: str
    year: str
    cluster: str
    groups: list[PlacedGroupResponse]
    total_headcount: int = Field(ge=0)


class SessionResponse(BaseModel):
    session_number: int = Field(ge=1)
    label: str
    allocations: list[AllocationRecordResponse]


class UnallocatedGroupResponse(BaseModel):
    id: int
    year: str
    departments: str
    section: str
    headcount: int


class AllocateResponse(BaseModel):
    status: str
    message: str
    sessions: list[SessionResponse]
    unallocated_groups: list[UnallocatedGroupResponse]


def _to_record_response(record: AllocationRecord) -> AllocationRecordResponse:
    return AllocationRecordResponse(
        lab_id=record.lab_id,
        lab_name=record.lab_name,
        year=record.year,
        cluster=record.cluster,
        groups=[
            PlacedGroupResponse(
                id=group.group_id,
                departments=group.departments,
                section=group.section,
                headcount=group.headcount,
            )
            for group in record.groups
        ],
        total_headcount=record.total_headcount,
    )


def _to_clusters(items: list[ClusterInput]) -> list[DepartmentCluster]:
    clusters: list[DepartmentCluster] = []
    for item in items:
        if isinstance(item.departments, str):
            tokens = parse_department_tokens(item.departments)
        else:
            tokens = tuple(token.strip() for token in item.departments if token.strip())
        clusters.append(
            DepartmentCluster(cluster_id=item.id, name=item.name, departments=tokens)
        )
    return clusters


@router.post(
    "/allocate",
    response_model=AllocateResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def allocate(
    payload: AllocateRequest,
    service: LabAllocationService = Depends(get_allocation_service),
) -> AllocateResponse:
    """Compute the full session allocation from scratch."""
    labs = (
        [Lab(lab_id=item.id, name=item.name, capacity=item.capacity) for item in payload.labs]
        if payload.labs is not None
        else None
    )
    groups = (
        [
            StudentGroup(
                group_id=item.id,
                year=item.year,
                departments=item.departments,
                section=item.section,
                headcount=item.headcount,
            )
            for item in payload.groups
        ]
        if payload.groups is not None
        else None
    )
    clusters = _to_clusters(payload.clusters) if payload.clusters is not None else None

    try:
        outcome = service.allocate(labs=labs, groups=groups, clusters=clusters)
    except NothingToAllocateError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except AllocationInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected allocation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute allocation",
        ) from exc

    result = outcome.result
    return AllocateResponse(
        status=outcome.status.value,
        message=outcome.message,
        sessions=[
            SessionResponse(
                session_number=index,
                label=ordinal_session_label(index),
                allocations=[_to_record_response(record) for record in session],
            )
            for index, session in enumerate(result.sessions, start=1)
        ],
        unallocated_groups=[
            UnallocatedGroupResponse(
                id=group.group_id,
                year=group.year,
                departments=group.departments,
                section=group.section,
                headcount=group.headcount,
            )
            for group in result.unallocated
        ],
    )
