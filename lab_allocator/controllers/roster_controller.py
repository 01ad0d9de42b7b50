"""Controller layer for login and roster management endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from lab_allocator.controllers.dependencies import (
    get_auth_service,
    get_roster_service,
    require_admin,
)
from lab_allocator.domain.models import DepartmentCluster, Lab, StudentGroup
from lab_allocator.services.auth_service import (
    AdminTokenNotConfiguredError,
    AuthService,
    EmailDomainNotAllowedError,
    InvalidAdminTokenError,
)
from lab_allocator.services.roster_service import (
    RosterItemNotFoundError,
    RosterService,
    RosterValidationError,
)
from lab_allocator.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["roster"])


class LoginRequest(BaseModel):
    email: str = Field(min_length=3)
    admin_token: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LabCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    capacity: int = Field(gt=0)


class LabResponse(BaseModel):
    id: int
    name: str
    capacity: int

    @classmethod
    def from_domain(cls, lab: Lab) -> "LabResponse":
        return cls(id=lab.lab_id, name=lab.name, capacity=lab.capacity)


class GroupCreateRequest(BaseModel):
    year: str = Field(min_length=1)
    departments: str = Field(min_length=1)
    section: str = Field(min_length=1)
    headcount: int = Field(gt=0)


class GroupResponse(BaseModel):
    id: int
    year: str
    departments: str
    section: str
    headcount: int

    @classmethod
    def from_domain(cls, group: StudentGroup) -> "GroupResponse":
        return cls(
            id=group.group_id,
            year=group.year,
            departments=group.departments,
            section=group.section,
            headcount=group.headcount,
        )


class ClusterCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    departments: str | list[str]

    @field_validator("departments")
    @classmethod
    def validate_departments(cls, value: str | list[str]) -> str | list[str]:
        if isinstance(value, str) and not value.strip():
            raise ValueError("departments must be non-empty")
        if isinstance(value, list) and not value:
            raise ValueError("departments must contain at least one token")
        return value


class ClusterResponse(BaseModel):
    id: int
    name: str
    departments: list[str]

    @classmethod
    def from_domain(cls, cluster: DepartmentCluster) -> "ClusterResponse":
        return cls(id=cluster.cluster_id, name=cluster.name, departments=list(cluster.departments))


class RosterSummaryResponse(BaseModel):
    total_labs: int = Field(ge=0)
    total_capacity: int = Field(ge=0)
    total_groups: int = Field(ge=0)
    total_students: int = Field(ge=0)
    students_by_year: dict[str, int]


class RosterResponse(BaseModel):
    labs: list[LabResponse]
    groups: list[GroupResponse]
    clusters: list[ClusterResponse]
    summary: RosterSummaryResponse


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _not_found(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        token = auth_service.login(payload.email, payload.admin_token)
    except AdminTokenNotConfiguredError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except (EmailDomainNotAllowedError, InvalidAdminTokenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    return LoginResponse(access_token=token)


@router.get("/roster", response_model=RosterResponse)
async def get_roster(service: RosterService = Depends(get_roster_service)) -> RosterResponse:
    return RosterResponse(
        labs=[LabResponse.from_domain(lab) for lab in service.list_labs()],
        groups=[GroupResponse.from_domain(group) for group in service.list_groups()],
        clusters=[ClusterResponse.from_domain(item) for item in service.list_clusters()],
        summary=RosterSummaryResponse(**asdict(service.summary())),
    )


@router.delete(
    "/roster",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def clear_roster(service: RosterService = Depends(get_roster_service)) -> None:
    service.clear_all()


@router.get("/labs", response_model=list[LabResponse])
async def list_labs(service: RosterService = Depends(get_roster_service)) -> list[LabResponse]:
    return [LabResponse.from_domain(lab) for lab in service.list_labs()]


@router.post(
    "/labs",
    response_model=LabResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def add_lab(
    payload: LabCreateRequest,
    service: RosterService = Depends(get_roster_service),
) -> LabResponse:
    try:
        lab = service.add_lab(name=payload.name, capacity=payload.capacity)
    except RosterValidationError as exc:
        raise _bad_request(exc) from exc
    return LabResponse.from_domain(lab)


@router.delete(
    "/labs/{lab_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def remove_lab(lab_id: int, service: RosterService = Depends(get_roster_service)) -> None:
    try:
        service.remove_lab(lab_id)
    except RosterItemNotFoundError as exc:
        raise _not_found(exc) from exc


@router.get("/groups", response_model=list[GroupResponse])
async def list_groups(
    service: RosterService = Depends(get_roster_service),
) -> list[GroupResponse]:
    return [GroupResponse.from_domain(group) for group in service.list_groups()]


@router.post(
    "/groups",
    response_model=GroupResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def add_group(
    payload: GroupCreateRequest,
    service: RosterService = Depends(get_roster_service),
) -> GroupResponse:
    try:
        group = service.add_group(
            year=payload.year,
            departments=payload.departments,
            section=payload.section,
            headcount=payload.headcount,
        )
    except RosterValidationError as exc:
        raise _bad_request(exc) from exc
    return GroupResponse.from_domain(group)


@router.delete(
    "/groups/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def remove_group(
    group_id: int,
    service: RosterService = Depends(get_roster_service),
) -> None:
    try:
        service.remove_group(group_id)
    except RosterItemNotFoundError as exc:
        raise _not_found(exc) from exc


@router.get("/clusters", response_model=list[ClusterResponse])
async def list_clusters(
    service: RosterService = Depends(get_roster_service),
) -> list[ClusterResponse]:
    return [ClusterResponse.from_domain(item) for item in service.list_clusters()]


@router.post(
    "/clusters",
    response_model=ClusterResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def add_cluster(
    payload: ClusterCreateRequest,
    service: RosterService = Depends(get_roster_service),
) -> ClusterResponse:
    try:
        cluster = service.add_cluster(name=payload.name, departments=payload.departments)
    except RosterValidationError as exc:
        raise _bad_request(exc) from exc
    return ClusterResponse.from_domain(cluster)


@router.delete(
    "/clusters/{cluster_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def remove_cluster(
    cluster_id: int,
    service: RosterService = Depends(get_roster_service),
) -> None:
    try:
        service.remove_cluster(cluster_id)
    except RosterItemNotFoundError as exc:
        raise _not_found(exc) from exc
