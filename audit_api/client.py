"""
Audit Trail API — Python client

Thin requests-based client for the REST API. Each method unwraps the
response envelope ({"user": ...}, {"audits": [...]}) and returns the
record(s) as plain dicts with camelCase keys.

Usage:

    from audit_api.client import AuditTrailClient

    api = AuditTrailClient("http://localhost:8000")

    user = api.register_user(username="alice", email="a@x.com", role="USER",
                             organization="Org1")
    api.log_audit(userId=user["id"], action="CREATE", resourceType="CREDENTIAL")

    for entry in api.query_audits_by_user(user["id"]):
        print(entry["timestamp"], entry["action"])

    report = api.generate_report("SOC2", start_date=1735689600000, end_date=1738368000000)

Requirements: requests
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 30


# ── Exceptions ────────────────────────────────────────────────────────────


class AuditTrailClientError(Exception):
    """Raised for any non-2xx response. Carries the server's error message."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


# ── Client ────────────────────────────────────────────────────────────────


class AuditTrailClient:
    """
    Client for the Audit Trail API.

    Args:
        base_url: API base URL. Defaults to http://localhost:8000.
        timeout: Request timeout in seconds. Defaults to 30.
        session: Optional requests.Session (or compatible) to send requests with.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        kwargs.setdefault("timeout", self.timeout)
        resp = self._session.request(method, url, **kwargs)
        try:
            body = resp.json()
        except ValueError:
            body = resp.text
        if resp.status_code >= 400:
            message = body.get("error") if isinstance(body, dict) else None
            raise AuditTrailClientError(
                message or f"Error: {resp.status_code}",
                status_code=resp.status_code,
                body=body,
            )
        return body

    # ── Users ─────────────────────────────────────────────────────────

    def register_user(
        self,
        username: str,
        email: str,
        role: str,
        organization: str = "",
        permissions: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "username": username,
            "email": email,
            "role": role,
            "organization": organization,
        }
        if permissions is not None:
            payload["permissions"] = permissions
        return self._request("POST", "/api/users", json=payload)["user"]

    def get_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/users/{quote(user_id, safe='')}")["user"]

    def update_user_role(self, user_id: str, role: str) -> Dict[str, Any]:
        path = f"/api/users/{quote(user_id, safe='')}/role"
        return self._request("PUT", path, json={"role": role})["user"]

    def deactivate_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/api/users/{quote(user_id, safe='')}")["user"]

    # ── Audit ─────────────────────────────────────────────────────────

    def log_audit(self, **fields: Any) -> Dict[str, Any]:
        """
        Append an audit entry.

        Keyword arguments are sent as-is (camelCase): userId, action,
        userRole, resourceType, resourceId, status, complianceTag, ...
        """
        return self._request("POST", "/api/audit", json=fields)["audit"]

    def get_audit(self, audit_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/audit/{quote(audit_id, safe='')}")["audit"]

    def get_all_audits(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/audit")["audits"]

    def query_audits_by_user(self, user_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/audit/user/{quote(user_id, safe='')}")["audits"]

    def query_audits_by_action(self, action: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/audit/action/{quote(action, safe='')}")["audits"]

    def query_audits_by_date_range(self, start: int, end: int) -> List[Dict[str, Any]]:
        data = self._request("GET", "/api/audit/daterange", params={"start": start, "end": end})
        return data["audits"]

    def audit_stats(self, start: int, end: int) -> Dict[str, Any]:
        return self._request("GET", "/api/audit/stats", params={"start": start, "end": end})["stats"]

    def init_ledger(self) -> List[Dict[str, Any]]:
        """Seed the ledger with sample audit entries; returns them."""
        return self._request("POST", "/api/audit/init")["audits"]

    # ── Reports ───────────────────────────────────────────────────────

    def generate_report(
        self,
        report_type: str,
        start_date: int,
        end_date: int,
        *,
        generated_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "reportType": report_type,
            "startDate": start_date,
            "endDate": end_date,
        }
        if generated_by:
            payload["generatedBy"] = generated_by
        return self._request("POST", "/api/reports", json=payload)["report"]

    def get_report(self, report_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/reports/{quote(report_id, safe='')}")["report"]

    def get_all_reports(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/reports")["reports"]
