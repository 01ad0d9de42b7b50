#!/usr/bin/env python3
"""Validate local lab allocator environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from lab_allocator.domain.models import AllocationStatus
from lab_allocator.repository.roster_repository import RosterRepository
from lab_allocator.services.allocation_service import LabAllocationService
from lab_allocator.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="lab-allocator-env-")

    # CHECK 1 - Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2 - Required packages importable
    package_names = [
        "fastapi",
        "uvicorn",
        "pydantic",
        "pandas",
        "requests",
        "streamlit",
        "httpx",
        "pytest",
    ]
    import_errors: list[str] = []
    for module_name in package_names:
        try:
            importlib.import_module(module_name)
        except Exception as exc:  # pragma: no cover - runtime guard
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "lab_allocator_validation.db",
        )
        repository = RosterRepository(validation_settings)

        # CHECK 3 - Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4 - Demo roster seeding
        try:
            repository.seed_demo_roster_if_empty()
            lab_count = len(repository.list_labs())
            group_count = len(repository.list_groups())
            if lab_count == 0 or group_count == 0:
                raise RuntimeError("demo roster is empty after seeding")
            ok, line = _print_result(
                "Demo roster seeding",
                True,
                f": {lab_count} labs, {group_count} groups",
            )
        except Exception as exc:
            ok, line = _print_result("Demo roster seeding", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5 - Allocation run over the demo roster
        try:
            service = LabAllocationService(repository=repository, settings=validation_settings)
            outcome = service.allocate()
            if outcome.status is not AllocationStatus.SUCCESS:
                raise RuntimeError(outcome.message)
            ok, line = _print_result(
                "Allocation run",
                True,
                f": {outcome.result.session_count} sessions",
            )
        except Exception as exc:
            ok, line = _print_result("Allocation run", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Lab Allocator Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
