"""
Fabric ledger: forwards every operation to the audit-trail chaincode.

Each operation becomes a chaincode function name plus positional string
arguments. Writes are submitted, then the record is read back with an
evaluate call so the API returns the same shapes as the local ledger.

The chaincode does not generate ids, so they are generated here.
Report counts are computed here from QueryAuditsByDateRange (unless
aggregation is off, in which case both counts are zero and there is no
summary) and the finished report is written with CreateComplianceReport.
"""

import json
import logging
import time
import uuid
from typing import Any

from audit_api.backends.base import LedgerBackend
from audit_api.errors import NotFoundError, UpstreamError
from audit_api.ledger.gateway import LedgerGateway
from audit_api.repositories import summarize

logger = logging.getLogger(__name__)

# Keys InitLedger writes its sample entries under
SAMPLE_AUDIT_IDS = ("audit-001", "audit-002")


def _decode(result: Any) -> Any:
    """Chaincode results arrive either as JSON values or JSON-encoded strings."""
    if isinstance(result, (bytes, bytearray)):
        result = result.decode("utf-8")
    if isinstance(result, str):
        try:
            return json.loads(result)
        except ValueError:
            return result
    return result


def _as_bool(result: Any) -> bool:
    value = _decode(result)
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def _json_arg(value: Any) -> str:
    """Opaque values (oldValue, metadata, ...) travel as JSON strings."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value)


class FabricLedger(LedgerBackend):
    name = "fabric"

    def __init__(self, gateway: LedgerGateway, aggregate_reports: bool = True):
        self.gateway = gateway
        self.aggregate_reports = aggregate_reports

    async def _evaluate(self, function: str, *args: Any, label: str | None = None) -> Any:
        try:
            return _decode(await self.gateway.evaluate_transaction(function, *args))
        except UpstreamError as e:
            # The chaincode reports missing keys as "... does not exist"
            if label and "does not exist" in e.message:
                raise NotFoundError(f"{label} not found") from e
            raise

    async def _submit(self, function: str, *args: Any, label: str | None = None) -> Any:
        try:
            return _decode(await self.gateway.submit_transaction(function, *args))
        except UpstreamError as e:
            if label and "does not exist" in e.message:
                raise NotFoundError(f"{label} not found") from e
            raise

    async def _list(self, function: str, *args: Any) -> list[dict]:
        result = await self._evaluate(function, *args)
        # Go marshals an empty slice as null
        return result or []

    # -- users --------------------------------------------------------------

    async def create_user(self, fields: dict) -> dict:
        user_id = str(uuid.uuid4())
        await self._submit(
            "RegisterUser",
            user_id,
            fields.get("username"),
            fields.get("email"),
            fields.get("role"),
            fields.get("organization"),
            fields.get("createdBy"),
        )
        logger.info("Registered user id=%s on ledger", user_id)
        return await self.get_user(user_id)

    async def get_user(self, user_id: str) -> dict:
        return await self._evaluate("GetUser", user_id, label="User")

    async def update_user_role(self, user_id: str, role: str) -> dict:
        await self._submit("UpdateUserRole", user_id, role, label="User")
        logger.info("Updated role of user id=%s to %s on ledger", user_id, role)
        return await self.get_user(user_id)

    async def deactivate_user(self, user_id: str) -> dict:
        await self._submit("DeactivateUser", user_id, label="User")
        logger.info("Deactivated user id=%s on ledger", user_id)
        return await self.get_user(user_id)

    async def user_exists(self, user_id: str) -> bool:
        return _as_bool(await self.gateway.evaluate_transaction("UserExists", user_id))

    # -- audits -------------------------------------------------------------

    async def log_audit(self, fields: dict) -> dict:
        audit_id = str(uuid.uuid4())
        await self._submit(
            "LogAudit",
            audit_id,
            fields.get("userId"),
            fields.get("userRole"),
            fields.get("action"),
            fields.get("resourceType"),
            fields.get("resourceId"),
            _json_arg(fields.get("oldValue")),
            _json_arg(fields.get("newValue")),
            fields.get("status") or "SUCCESS",
            fields.get("ipAddress"),
            fields.get("sessionId"),
            _json_arg(fields.get("metadata")) or "{}",
            fields.get("complianceTag"),
        )
        logger.info("Logged audit id=%s on ledger", audit_id)
        return await self.get_audit(audit_id)

    async def get_audit(self, audit_id: str) -> dict:
        return await self._evaluate("GetAudit", audit_id, label="Audit")

    async def audit_exists(self, audit_id: str) -> bool:
        return _as_bool(await self.gateway.evaluate_transaction("AuditExists", audit_id))

    async def query_audits(
        self,
        user_id: str | None = None,
        action: str | None = None,
        start: int | None = None,
        end: int | None = None,
    ) -> list[dict]:
        if user_id is not None:
            return await self._list("QueryAuditsByUser", user_id)
        if action is not None:
            return await self._list("QueryAuditsByAction", action)
        if start is not None and end is not None:
            return await self._list("QueryAuditsByDateRange", start, end)
        return await self._list("GetAllAudits")

    async def audit_stats(self, start: int, end: int) -> dict:
        return summarize(await self.query_audits(start=start, end=end), start, end)

    async def init_ledger(self) -> list[dict]:
        await self._submit("InitLedger")
        logger.info("Initialized ledger with sample audit entries")
        return [await self.get_audit(audit_id) for audit_id in SAMPLE_AUDIT_IDS]

    # -- reports ------------------------------------------------------------

    async def generate_report(
        self,
        report_type: str,
        start_date: int,
        end_date: int,
        generated_by: str | None = None,
    ) -> dict:
        total, anomalies, summary = 0, 0, ""
        if self.aggregate_reports:
            window = await self.query_audits(start=start_date, end=end_date)
            stats = summarize(window, start_date, end_date)
            total = stats["totalEntries"]
            anomalies = sum(1 for a in window if a.get("status") != "SUCCESS")
            summary = json.dumps(stats)

        report_id = str(uuid.uuid4())
        await self._submit(
            "CreateComplianceReport",
            report_id,
            report_type,
            start_date,
            end_date,
            generated_by,
            int(time.time() * 1000),
            total,
            anomalies,
            summary,
        )
        logger.info("Created %s report id=%s on ledger", report_type, report_id)
        return await self.get_report(report_id)

    async def get_report(self, report_id: str) -> dict:
        report = await self._evaluate("GetComplianceReport", report_id, label="Report")
        return _with_summary(report)

    async def list_reports(self) -> list[dict]:
        return [_with_summary(r) for r in await self._list("GetAllComplianceReports")]

    async def close(self) -> None:
        await self.gateway.close()


def _with_summary(report: dict) -> dict:
    """The chaincode stores summary as a JSON string; expand it."""
    summary = report.get("summary")
    if isinstance(summary, str):
        report = {**report, "summary": _decode(summary) if summary else None}
    return report
