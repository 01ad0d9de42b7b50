"""Streamlit dashboard for managing lab rosters and running allocations."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import pandas as pd
import requests
import streamlit as st

# ==========================================
# Configuration & Constants
# ==========================================
API_BASE_URL = os.getenv("LAB_ALLOCATOR_API_URL", "http://127.0.0.1:8000")
YEAR_OPTIONS = {"1": "1st Year", "2": "2nd Year", "3": "3rd Year"}

st.set_page_config(
    page_title="Lab Allocation",
    page_icon="🧪",
    layout="wide",
)


# ==========================================
# API Helper Functions
# ==========================================
def _auth_headers() -> Dict[str, str]:
    token = st.session_state.get("access_token")
    return {"Authorization": f"Bearer {token}"} if token else {}


def _request(method: str, path: str, **kwargs: Any) -> Optional[requests.Response]:
    try:
        response = requests.request(
            method,
            f"{API_BASE_URL}{path}",
            headers=_auth_headers(),
            timeout=10,
            **kwargs,
        )
    except requests.exceptions.RequestException as e:
        st.error(f"Backend connection failed: {e}")
        return None
    if response.status_code >= 400:
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        st.error(f"{detail}")
        return None
    return response


def fetch_roster() -> Dict[str, Any]:
    response = _request("GET", "/roster")
    if response is None:
        return {"labs": [], "groups": [], "clusters": []}
    return response.json()


def run_allocation() -> Optional[Dict[str, Any]]:
    response = _request("POST", "/allocate", json={})
    return response.json() if response is not None else None


# ==========================================
# UI Page Functions
# ==========================================
def render_login() -> None:
    with st.sidebar.expander("Admin login"):
        email = st.text_input("Email")
        token = st.text_input("Admin token", type="password")
        if st.button("Login"):
            response = _request("POST", "/login", json={"email": email, "admin_token": token})
            if response is not None:
                st.session_state["access_token"] = response.json()["access_token"]
                st.success("Logged in")


def render_labs_tab(labs: List[Dict[str, Any]]) -> None:
    with st.form("add_lab", clear_on_submit=True):
        name = st.text_input("Lab Name", placeholder="e.g., Computer Lab 1")
        capacity = st.number_input("Capacity (Seats)", min_value=1, value=30)
        if st.form_submit_button("Add Lab"):
            if _request("POST", "/labs", json={"name": name, "capacity": int(capacity)}):
                st.success("Lab added successfully")
                st.rerun()

    if not labs:
        st.info("No labs added yet. Please add labs using the form above.")
        return
    st.dataframe(pd.DataFrame(labs), use_container_width=True, hide_index=True)
    lab_id = st.selectbox(
        "Remove lab",
        [lab["id"] for lab in labs],
        format_func=lambda value: next(lab["name"] for lab in labs if lab["id"] == value),
    )
    if st.button("Remove Lab"):
        if _request("DELETE", f"/labs/{lab_id}"):
            st.rerun()


def render_clusters_tab(clusters: List[Dict[str, Any]]) -> None:
    st.subheader("Manage Department Groups")
    with st.form("add_cluster", clear_on_submit=True):
        name = st.text_input("Group Name", placeholder="e.g., Engineering Group")
        departments = st.text_input(
            "Departments (comma separated)", placeholder="e.g., CSE, IT, AIDS"
        )
        if st.form_submit_button("Add Department Group"):
            if _request("POST", "/clusters", json={"name": name, "departments": departments}):
                st.success("Department group added successfully")
                st.rerun()

    if not clusters:
        st.info("No department groups added yet. Please add groups using the form above.")
        return
    frame = pd.DataFrame(clusters)
    frame["departments"] = frame["departments"].apply(", ".join)
    st.dataframe(frame, use_container_width=True, hide_index=True)
    cluster_id = st.selectbox("Remove department group", [item["id"] for item in clusters])
    if st.button("Remove Department Group"):
        if _request("DELETE", f"/clusters/{cluster_id}"):
            st.rerun()


def render_groups_tab(groups: List[Dict[str, Any]]) -> None:
    with st.form("add_group", clear_on_submit=True):
        col1, col2, col3, col4 = st.columns(4)
        with col1:
            year = st.selectbox(
                "Year", list(YEAR_OPTIONS), format_func=YEAR_OPTIONS.__getitem__
            )
        with col2:
            departments = st.text_input(
                "Departments (comma separated)", placeholder="e.g., CSE, IT, AIDS"
            )
        with col3:
            section = st.text_input("Section", placeholder="e.g., A")
        with col4:
            headcount = st.number_input("Student Count", min_value=1, value=30)
        if st.form_submit_button("Add Student Group"):
            payload = {
                "year": year,
                "departments": departments,
                "section": section,
                "headcount": int(headcount),
            }
            if _request("POST", "/groups", json=payload):
                st.success("Student group added successfully")
                st.rerun()

    if not groups:
        st.info("No student groups added yet.")
        return
    st.dataframe(pd.DataFrame(groups), use_container_width=True, hide_index=True)
    group_id = st.selectbox("Remove student group", [group["id"] for group in groups])
    if st.button("Remove Student Group"):
        if _request("DELETE", f"/groups/{group_id}"):
            st.rerun()


def render_roster_summary(summary: Optional[Dict[str, Any]]) -> None:
    if not summary:
        return
    st.subheader("Allocation Summary")
    labs_col, groups_col = st.columns(2)
    with labs_col:
        st.metric("Total Labs", summary["total_labs"])
        st.metric("Total Capacity", f"{summary['total_capacity']} seats")
    with groups_col:
        st.metric("Total Groups", summary["total_groups"])
        st.metric("Total Students", summary["total_students"])
    by_year = pd.DataFrame(
        [
            {"Year": YEAR_OPTIONS.get(year, f"Year {year}"), "Students": count}
            for year, count in summary["students_by_year"].items()
        ]
    )
    st.dataframe(by_year, use_container_width=True, hide_index=True)


def render_allocate_tab(summary: Optional[Dict[str, Any]]) -> None:
    render_roster_summary(summary)
    if st.button("Allocate Students", type="primary"):
        with st.spinner("Packing groups into labs..."):
            result = run_allocation()
        if result is None:
            return
        if result["status"] == "success":
            st.success(result["message"])
        else:
            st.warning(result["message"])

        for session in result["sessions"]:
            st.markdown(f"### {session['label']} Session Allocation")
            for allocation in session["allocations"]:
                with st.container(border=True):
                    st.markdown(
                        f"**{allocation['lab_name']}** - Year {allocation['year']} - "
                        f"{allocation['cluster']}"
                    )
                    rows = pd.DataFrame(allocation["groups"])
                    st.dataframe(rows, use_container_width=True, hide_index=True)
                    st.caption(f"Total Students: {allocation['total_headcount']}")

        if result["unallocated_groups"]:
            st.markdown("### Unallocated Groups")
            st.dataframe(
                pd.DataFrame(result["unallocated_groups"]),
                use_container_width=True,
                hide_index=True,
            )


# ==========================================
# Main App Router
# ==========================================
def main() -> None:
    st.title("Lab Allocation System")
    render_login()

    if st.sidebar.button("Clear All Data"):
        if _request("DELETE", "/roster"):
            st.sidebar.success("All data cleared")

    roster = fetch_roster()
    labs_tab, clusters_tab, groups_tab, allocate_tab = st.tabs(
        ["Labs", "Department Groups", "Student Groups", "Allocate"]
    )
    with labs_tab:
        render_labs_tab(roster["labs"])
    with clusters_tab:
        render_clusters_tab(roster["clusters"])
    with groups_tab:
        render_groups_tab(roster["groups"])
    with allocate_tab:
        render_allocate_tab(roster.get("summary"))


if __name__ == "__main__":
    main()
