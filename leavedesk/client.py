# leavedesk/client.py
"""
HTTP client for the Leave Desk API, used by the Streamlit dashboard.

Every call returns the decoded JSON body. Non-2xx answers raise ApiError
with the server-provided message; an unreachable backend raises ApiError
with status_code 0. Nothing is retried.
"""
from datetime import date
from typing import Any, Dict, List, Optional, Union

import requests

from .config import settings
from .identity import CLAIMS_HEADER, EMAIL_HEADER, USER_ID_HEADER

DateLike = Union[date, str]


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details


def _error_message(res) -> str:
    try:
        body = res.json()
    except ValueError:
        return res.text or f"HTTP {res.status_code}"
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        return detail.get("message") or str(detail)
    if detail:
        return str(detail)
    return f"HTTP {res.status_code}"


def _iso(value: DateLike) -> str:
    return value.isoformat() if isinstance(value, date) else str(value)


class LeaveDeskClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
        claims: Optional[Dict[str, str]] = None,
        session=None,
        timeout: float = 8,
    ):
        self.base_url = (base_url or settings.API_URL + settings.API_PREFIX).rstrip("/")
        self.user_id = user_id
        self.email = email
        self.claims = claims or {}
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {}
        if self.user_id:
            headers[USER_ID_HEADER] = self.user_id
        if self.email:
            headers[EMAIL_HEADER] = self.email
        if self.claims:
            headers[CLAIMS_HEADER] = ",".join(f"{k}={v}" for k, v in self.claims.items())
        return headers

    def _request(self, method: str, path: str, json: Optional[dict] = None):
        url = f"{self.base_url}{path}"
        try:
            res = self.session.request(method, url, json=json, headers=self._headers(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ApiError(0, f"Backend not reachable: {e}") from e
        if res.status_code >= 400:
            try:
                details = res.json()
            except ValueError:
                details = None
            raise ApiError(res.status_code, _error_message(res), details)
        if res.status_code == 204 or not res.content:
            return None
        return res.json()

    # -----------------------------
    # Session / users
    # -----------------------------
    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/")

    def profile(self) -> Dict[str, Any]:
        return self._request("GET", "/user/profile")

    def get_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/users/{user_id}")

    def create_user(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/users", json=payload)

    def setup(self) -> Dict[str, Any]:
        return self._request("POST", "/setup")

    # -----------------------------
    # Leave requests
    # -----------------------------
    def all_requests(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/leave-requests/all")

    def my_requests(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/leave-requests/my-requests")

    def get_request(self, request_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/leave-requests/{request_id}")

    def submit_request(
        self,
        leave_type: str,
        from_date: DateLike,
        to_date: DateLike,
        reason: str,
        user: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Submit a request for `user` (default: the caller's profile snapshot)."""
        user = user or self.profile()
        payload = {
            "userId": user["id"],
            "employeeId": user.get("employeeId") or "",
            "employeeName": user["name"],
            "department": user["department"],
            "leaveType": leave_type,
            "fromDate": _iso(from_date),
            "toDate": _iso(to_date),
            "reason": reason,
        }
        return self._request("POST", "/leave-requests", json=payload)

    def update_request(self, request_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/leave-requests/{request_id}", json=payload)

    def approve(self, request_id: str, approved_by: str, expected_status: Optional[str] = None) -> Dict[str, Any]:
        payload = {"status": "approved", "approvedBy": approved_by}
        if expected_status:
            payload["expectedStatus"] = expected_status
        return self.update_request(request_id, payload)

    def reject(self, request_id: str, reason: str, expected_status: Optional[str] = None) -> Dict[str, Any]:
        payload = {"status": "rejected", "rejectionReason": reason}
        if expected_status:
            payload["expectedStatus"] = expected_status
        return self.update_request(request_id, payload)

    def delete_request(self, request_id: str) -> None:
        self._request("DELETE", f"/leave-requests/{request_id}")
