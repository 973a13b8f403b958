# leavedesk/dashboard.py
"""Pure helpers behind the employee and HR dashboards (rows are API JSON dicts)."""
from datetime import date
from typing import Any, Dict, Iterable, List

from .schemas import LEAVE_STATUSES

STATUS_FILTERS = ("all",) + LEAVE_STATUSES


def summarize(requests: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    counts = {"total": 0}
    counts.update({status: 0 for status in LEAVE_STATUSES})
    for request in requests:
        counts["total"] += 1
        if request.get("status") in counts:
            counts[request["status"]] += 1
    return counts


def filter_requests(requests: Iterable[Dict[str, Any]], status: str = "all", department: str = "all") -> List[Dict[str, Any]]:
    return [
        r for r in requests
        if (status == "all" or r.get("status") == status)
        and (department == "all" or r.get("department") == department)
    ]


def departments(requests: Iterable[Dict[str, Any]]) -> List[str]:
    return sorted({r["department"] for r in requests if r.get("department")})


def leave_days(request: Dict[str, Any]) -> int:
    """Inclusive day count; 0 when toDate precedes fromDate."""
    start = date.fromisoformat(request["fromDate"])
    end = date.fromisoformat(request["toDate"])
    return max((end - start).days + 1, 0)


def to_rows(requests: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # flat rows for table display
    return [
        {
            "ID": r["id"],
            "Employee": r.get("employeeName"),
            "Department": r.get("department"),
            "Type": r.get("leaveType"),
            "From": r.get("fromDate"),
            "To": r.get("toDate"),
            "Days": leave_days(r),
            "Status": r.get("status"),
            "Submitted": (r.get("submittedAt") or "")[:10],
        }
        for r in requests
    ]
