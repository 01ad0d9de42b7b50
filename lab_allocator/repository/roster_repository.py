"""Repository layer responsible for all roster database access."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import List, Optional

from lab_allocator.domain.constraints import DEPARTMENT_SEPARATOR, parse_department_tokens
from lab_allocator.domain.models import DepartmentCluster, Lab, StudentGroup
from lab_allocator.utils.config import Settings, get_settings
from lab_allocator.utils.logger import get_logger


logger = get_logger(__name__)

DEMO_LABS = [
    ("Computer Lab 1", 60),
    ("Computer Lab 2", 40),
    ("Networks Lab", 30),
]

DEMO_CLUSTERS = [
    ("Computing", "CSE, IT, AIDS"),
    ("Electronics", "ECE, EEE"),
]

DEMO_GROUPS = [
    ("1", "CSE", "A", 30),
    ("1", "IT", "A", 25),
    ("1", "ECE", "B", 35),
    ("2", "CSE, AIDS", "A", 40),
    ("2", "MECH", "A", 20),
]


class RosterRepository:
    """Encapsulates SQLite access so allocation logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create roster tables before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Labs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        capacity INTEGER NOT NULL CHECK (capacity > 0),
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS StudentGroups (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        year TEXT NOT NULL,
                        departments TEXT NOT NULL,
                        section TEXT NOT NULL,
                        headcount INTEGER NOT NULL CHECK (headcount > 0),
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS DepartmentClusters (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        departments TEXT NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_demo_roster_if_empty(self) -> bool:
        """Insert a small demo roster when no labs exist yet."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) AS count FROM Labs;")
                if int(cursor.fetchone()["count"]) > 0:
                    logger.info("Roster already present; skipping demo seed")
                    return False

                cursor.executemany(
                    "INSERT INTO Labs (name, capacity) VALUES (?, ?);",
                    DEMO_LABS,
                )
                cursor.executemany(
                    "INSERT INTO DepartmentClusters (name, departments) VALUES (?, ?);",
                    DEMO_CLUSTERS,
                )
                cursor.executemany(
                    """
                    INSERT INTO StudentGroups (year, departments, section, headcount)
                    VALUES (?, ?, ?, ?);
                    """,
                    DEMO_GROUPS,
                )
                conn.commit()
            logger.info(
                "Demo roster seeded | labs=%s | clusters=%s | groups=%s",
                len(DEMO_LABS),
                len(DEMO_CLUSTERS),
                len(DEMO_GROUPS),
            )
            return True
        except sqlite3.Error as exc:
            raise RuntimeError(f"Demo roster seeding failed: {exc}") from exc

    # --- Labs ---

    def add_lab(self, name: str, capacity: int) -> Lab:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO Labs (name, capacity) VALUES (?, ?);",
                (name, capacity),
            )
            conn.commit()
            return Lab(lab_id=int(cursor.lastrowid), name=name, capacity=capacity)

    def list_labs(self) -> List[Lab]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT id, name, capacity FROM Labs ORDER BY id ASC;")
            return [
                Lab(
                    lab_id=int(row["id"]),
                    name=str(row["name"]),
                    capacity=int(row["capacity"]),
                )
                for row in cursor.fetchall()
            ]

    def remove_lab(self, lab_id: int) -> bool:
        return self._delete("Labs", lab_id)

    # --- Student groups ---

    def add_group(
        self,
        year: str,
        departments: str,
        section: str,
        headcount: int,
    ) -> StudentGroup:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO StudentGroups (year, departments, section, headcount)
                VALUES (?, ?, ?, ?);
                """,
                (year, departments, section, headcount),
            )
            conn.commit()
            return StudentGroup(
                group_id=int(cursor.lastrowid),
                year=year,
                departments=departments,
                section=section,
                headcount=headcount,
            )

    def list_groups(self) -> List[StudentGroup]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, year, departments, section, headcount
                FROM StudentGroups
                ORDER BY id ASC;
                """
            )
            return [
                StudentGroup(
                    group_id=int(row["id"]),
                    year=str(row["year"]),
                    departments=str(row["departments"]),
                    section=str(row["section"]),
                    headcount=int(row["headcount"]),
                )
                for row in cursor.fetchall()
            ]

    def remove_group(self, group_id: int) -> bool:
        return self._delete("StudentGroups", group_id)

    # --- Department clusters ---

    def add_cluster(self, name: str, departments: tuple[str, ...]) -> DepartmentCluster:
        stored = f"{DEPARTMENT_SEPARATOR} ".join(departments)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO DepartmentClusters (name, departments) VALUES (?, ?);",
                (name, stored),
            )
            conn.commit()
            return DepartmentCluster(
                cluster_id=int(cursor.lastrowid),
                name=name,
                departments=tuple(departments),
            )

    def list_clusters(self) -> List[DepartmentCluster]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, name, departments FROM DepartmentClusters ORDER BY id ASC;"
            )
            return [
                DepartmentCluster(
                    cluster_id=int(row["id"]),
                    name=str(row["name"]),
                    departments=parse_department_tokens(str(row["departments"])),
                )
                for row in cursor.fetchall()
            ]

    def remove_cluster(self, cluster_id: int) -> bool:
        return self._delete("DepartmentClusters", cluster_id)

    def clear_all(self) -> None:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM Labs;")
            cursor.execute("DELETE FROM StudentGroups;")
            cursor.execute("DELETE FROM DepartmentClusters;")
            conn.commit()
        logger.info("Roster cleared")

    def _delete(self, table: str, row_id: int) -> bool:
        # table names come from the fixed set above, never from callers
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(f"DELETE FROM {table} WHERE id = ?;", (row_id,))
            conn.commit()
            return cursor.rowcount > 0
