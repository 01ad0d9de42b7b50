"""Tests for the multi-session lab allocation engine."""

from __future__ import annotations

import random
from collections import Counter

import pytest

from lab_allocator.domain.models import (
    AllocationStatus,
    DepartmentCluster,
    Lab,
    StudentGroup,
)
from lab_allocator.services.allocation_engine import (
    AllocationInputError,
    NothingToAllocateError,
    compute_allocation,
    group_by_year_and_cluster,
    ordinal_session_label,
    pack_bucket,
    resolve_department_cluster,
)


def lab(lab_id: int, capacity: int) -> Lab:
    return Lab(lab_id=lab_id, name=f"Lab {lab_id}", capacity=capacity)


def group(
    group_id: int,
    headcount: int,
    year: str = "1",
    departments: str = "CSE",
    section: str = "A",
) -> StudentGroup:
    return StudentGroup(
        group_id=group_id,
        year=year,
        departments=departments,
        section=section,
        headcount=headcount,
    )


def cluster(name: str, *tokens: str) -> DepartmentCluster:
    return DepartmentCluster(cluster_id=0, name=name, departments=tokens)


def placed_ids(record) -> list[int]:
    return [item.group_id for item in record.groups]


# --- Department resolution ---

def test_cluster_token_matches_as_substring() -> None:
    assert resolve_department_cluster("CSE, IT", [cluster("Eng", "CS")]) == "Eng"


def test_first_configured_cluster_wins() -> None:
    clusters = [cluster("Infra", "IT"), cluster("Computing", "CSE")]
    assert resolve_department_cluster("CSE, IT", clusters) == "Infra"


def test_short_token_false_positive_is_kept() -> None:
    # "CE" is a substring of "ECE"
    clusters = [cluster("Civil", "CE")]
    assert resolve_department_cluster("ECE", clusters) == "Civil"


def test_unmatched_designator_is_its_own_cluster() -> None:
    clusters = [cluster("Eng", "CSE")]
    assert resolve_department_cluster("MECH", clusters) == "MECH"
    assert resolve_department_cluster("MECH", []) == "MECH"


# --- Grouping stage ---

def test_grouping_preserves_first_seen_order() -> None:
    groups = [
        group(1, 40, year="2", departments="MECH"),
        group(2, 35, year="1", departments="IT"),
        group(3, 30, year="2", departments="CSE"),
        group(4, 20, year="1", departments="CSE"),
        group(5, 10, year="2", departments="MECH"),
    ]
    partition = group_by_year_and_cluster(groups, [cluster("Computing", "CSE", "IT")])

    assert list(partition) == ["2", "1"]
    assert list(partition["2"]) == ["MECH", "Computing"]
    assert [g.group_id for g in partition["2"]["MECH"]] == [1, 5]
    assert [g.group_id for g in partition["1"]["Computing"]] == [2, 4]


# --- Room packer ---

def test_packer_opens_largest_sufficient_lab() -> None:
    labs = [lab(1, 50), lab(2, 40), lab(3, 20)]
    opened: set[int] = set()
    outcome = pack_bucket(
        year="1",
        cluster="CSE",
        bucket=[group(1, 15)],
        labs_by_capacity=labs,
        opened_this_session=opened,
    )

    assert [record.lab_id for record in outcome.records] == [1]
    assert opened == {1}


def test_packer_skips_bucket_when_every_lab_is_open() -> None:
    opened = {1}
    outcome = pack_bucket(
        year="1",
        cluster="CSE",
        bucket=[group(1, 10)],
        labs_by_capacity=[lab(1, 50)],
        opened_this_session=opened,
    )

    assert outcome.records == ()
    assert outcome.placed == ()


def test_packer_opens_next_lab_when_current_is_full() -> None:
    opened: set[int] = set()
    outcome = pack_bucket(
        year="1",
        cluster="CSE",
        bucket=[group(1, 30), group(2, 25), group(3, 20)],
        labs_by_capacity=[lab(1, 50), lab(2, 30)],
        opened_this_session=opened,
    )

    assert [(r.lab_id, placed_ids(r)) for r in outcome.records] == [(1, [1]), (2, [2])]
    assert [g.group_id for g in outcome.placed] == [1, 2]
    assert opened == {1, 2}


def test_packer_keeps_current_lab_after_a_deferred_group() -> None:
    outcome = pack_bucket(
        year="1",
        cluster="CSE",
        bucket=[group(1, 30), group(2, 25), group(3, 5)],
        labs_by_capacity=[lab(1, 35), lab(2, 20)],
        opened_this_session=set(),
    )

    assert len(outcome.records) == 1
    assert placed_ids(outcome.records[0]) == [1, 3]
    assert outcome.records[0].total_headcount == 35


# --- Session driver scenarios ---

def test_exact_fit_uses_one_session() -> None:
    result = compute_allocation([lab(1, 30)], [group(1, 30)])

    assert result.session_count == 1
    assert len(result.sessions[0]) == 1
    record = result.sessions[0][0]
    assert record.lab_id == 1
    assert record.total_headcount == 30
    assert result.unallocated == ()
    assert result.status is AllocationStatus.SUCCESS


def test_overflow_moves_to_second_session() -> None:
    result = compute_allocation([lab(1, 30)], [group(1, 30), group(2, 30)])

    assert result.session_count == 2
    assert [placed_ids(r) for r in result.sessions[0]] == [[1]]
    assert [placed_ids(r) for r in result.sessions[1]] == [[2]]
    assert result.session_of(1) == 1
    assert result.session_of(2) == 2
    assert result.is_complete


def test_unsatisfiable_demand_stalls() -> None:
    big = group(1, 50)
    result = compute_allocation([lab(1, 10)], [big])

    assert result.sessions == ()
    assert result.unallocated == (big,)
    assert result.status is AllocationStatus.PARTIAL
    assert result.session_of(1) is None


def test_lab_is_not_shared_between_buckets_in_a_session() -> None:
    groups = [group(1, 10, year="1"), group(2, 10, year="2")]
    result = compute_allocation([lab(1, 100)], groups)

    assert result.session_count == 2
    assert result.sessions[0][0].year == "1"
    assert result.sessions[1][0].year == "2"


def test_clusters_keep_departments_together() -> None:
    groups = [
        group(1, 20, departments="CSE"),
        group(2, 20, departments="IT"),
        group(3, 20, departments="ECE"),
    ]
    clusters = [cluster("Computing", "CSE", "IT")]
    result = compute_allocation([lab(1, 60), lab(2, 30)], groups, clusters)

    assert result.session_count == 1
    records = {record.cluster: placed_ids(record) for record in result.sessions[0]}
    assert records == {"Computing": [1, 2], "ECE": [3]}


def test_deferred_groups_are_placed_later_and_stalls_report_rest() -> None:
    groups = [group(1, 30), group(2, 10), group(3, 50)]
    result = compute_allocation([lab(1, 40)], groups)

    assert [placed_ids(r) for r in result.sessions[0]] == [[1, 2]]
    assert [g.group_id for g in result.unallocated] == [3]


def test_ties_keep_caller_order() -> None:
    labs = [lab(1, 20), lab(2, 20)]
    groups = [group(7, 20), group(3, 20)]
    result = compute_allocation(labs, groups)

    assert result.session_count == 1
    assert [(r.lab_id, placed_ids(r)) for r in result.sessions[0]] == [(1, [7]), (2, [3])]


def test_inputs_are_not_mutated_and_runs_are_repeatable() -> None:
    labs = [lab(1, 30), lab(2, 60)]
    groups = [group(1, 10), group(2, 40, year="2"), group(3, 25)]
    labs_before = list(labs)
    groups_before = list(groups)

    first = compute_allocation(labs, groups)
    second = compute_allocation(labs, groups)

    assert first == second
    assert labs == labs_before
    assert groups == groups_before


def test_empty_rosters_are_rejected() -> None:
    with pytest.raises(NothingToAllocateError):
        compute_allocation([], [group(1, 10)])
    with pytest.raises(NothingToAllocateError):
        compute_allocation([lab(1, 10)], [])


def test_duplicate_ids_are_rejected() -> None:
    with pytest.raises(AllocationInputError):
        compute_allocation([lab(1, 10), lab(1, 20)], [group(1, 5)])
    with pytest.raises(AllocationInputError):
        compute_allocation([lab(1, 10)], [group(1, 5), group(1, 6)])


# --- Invariants over generated rosters ---

def _random_roster(seed: int):
    rng = random.Random(seed)
    labs = [lab(i, rng.randint(10, 60)) for i in range(1, rng.randint(2, 6))]
    departments = ["CSE", "IT", "ECE", "EEE", "MECH", "CSE, AIDS"]
    groups = [
        group(
            i,
            rng.randint(5, 70),
            year=rng.choice(["1", "2", "3"]),
            departments=rng.choice(departments),
            section=rng.choice("ABC"),
        )
        for i in range(1, rng.randint(5, 25))
    ]
    clusters = [cluster("Computing", "CSE", "IT"), cluster("Electrical", "EE")]
    return labs, groups, clusters


@pytest.mark.parametrize("seed", [1, 7, 42, 2024])
def test_allocation_invariants_hold(seed: int) -> None:
    labs, groups, clusters = _random_roster(seed)
    capacity = {item.lab_id: item.capacity for item in labs}

    result = compute_allocation(labs, groups, clusters)

    seen: list[int] = []
    for session in result.sessions:
        lab_ids = [record.lab_id for record in session]
        assert len(lab_ids) == len(set(lab_ids))
        for record in session:
            assert record.groups
            assert record.total_headcount <= capacity[record.lab_id]
            seen.extend(placed_ids(record))
    seen.extend(item.group_id for item in result.unallocated)

    assert Counter(seen) == Counter(item.group_id for item in groups)
    assert result.session_count <= len(groups)
    assert result == compute_allocation(labs, groups, clusters)


def test_ordinal_session_labels() -> None:
    assert [ordinal_session_label(n) for n in (1, 2, 3, 4, 11, 21, 22, 113)] == [
        "First",
        "Second",
        "Third",
        "4th",
        "11th",
        "21st",
        "22nd",
        "113th",
    ]
