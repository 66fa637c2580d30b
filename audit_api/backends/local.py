"""
Local ledger: the flat-file mock.

Wraps the repositories and the report generator. File I/O is blocking,
so every call runs in a worker thread to keep the event loop free.
"""

import asyncio
import logging
import os

from audit_api.backends.base import LedgerBackend
from audit_api.reports import ReportGenerator
from audit_api.repositories import AuditRepository, ReportRepository, UserRepository
from audit_api.store import FlatFileStore

logger = logging.getLogger(__name__)

# Sample entries written by init_ledger, for demos and manual testing
SAMPLE_AUDITS = (
    {
        "userId": "user-alice",
        "userRole": "ADMIN",
        "action": "CREATE",
        "resourceType": "CREDENTIAL",
        "resourceId": "cred-001",
        "newValue": {"type": "DIPLOMA", "status": "ACTIVE"},
        "status": "SUCCESS",
        "ipAddress": "192.168.1.100",
        "sessionId": "sess-001",
        "metadata": {"source": "web-portal"},
        "complianceTag": "SOC2",
    },
    {
        "userId": "user-bob",
        "userRole": "AUDITOR",
        "action": "QUERY",
        "resourceType": "CREDENTIAL",
        "resourceId": "cred-001",
        "status": "SUCCESS",
        "ipAddress": "192.168.1.101",
        "sessionId": "sess-002",
        "metadata": {"source": "api"},
        "complianceTag": "GDPR",
    },
)


class LocalLedger(LedgerBackend):
    name = "local"

    def __init__(self, data_dir: str | os.PathLike, aggregate_reports: bool = True):
        self.store = FlatFileStore(data_dir)
        self.users = UserRepository(self.store)
        self.audits = AuditRepository(self.store)
        self.reports = ReportRepository(self.store)
        self.generator = ReportGenerator(self.audits, self.reports, aggregate=aggregate_reports)
        logger.info("Local ledger at %s (report aggregation %s)",
                    self.store.data_dir, "on" if aggregate_reports else "off")

    async def create_user(self, fields: dict) -> dict:
        return await asyncio.to_thread(self.users.create, fields)

    async def get_user(self, user_id: str) -> dict:
        return await asyncio.to_thread(self.users.get_by_id, user_id)

    async def update_user_role(self, user_id: str, role: str) -> dict:
        return await asyncio.to_thread(self.users.update_role, user_id, role)

    async def deactivate_user(self, user_id: str) -> dict:
        return await asyncio.to_thread(self.users.deactivate, user_id)

    async def user_exists(self, user_id: str) -> bool:
        return await asyncio.to_thread(self.users.exists, user_id)

    async def log_audit(self, fields: dict) -> dict:
        return await asyncio.to_thread(self.audits.create, fields)

    async def get_audit(self, audit_id: str) -> dict:
        return await asyncio.to_thread(self.audits.get_by_id, audit_id)

    async def audit_exists(self, audit_id: str) -> bool:
        return await asyncio.to_thread(self.audits.exists, audit_id)

    async def query_audits(
        self,
        user_id: str | None = None,
        action: str | None = None,
        start: int | None = None,
        end: int | None = None,
    ) -> list[dict]:
        if user_id is not None:
            return await asyncio.to_thread(self.audits.by_user, user_id)
        if action is not None:
            return await asyncio.to_thread(self.audits.by_action, action)
        if start is not None and end is not None:
            return await asyncio.to_thread(self.audits.by_date_range, start, end)
        return await asyncio.to_thread(self.audits.all)

    async def audit_stats(self, start: int, end: int) -> dict:
        return await asyncio.to_thread(self.audits.stats, start, end)

    async def init_ledger(self) -> list[dict]:
        seeded = [
            await asyncio.to_thread(self.audits.create, dict(sample)) for sample in SAMPLE_AUDITS
        ]
        logger.info("Seeded %d sample audit entries", len(seeded))
        return seeded

    async def generate_report(
        self,
        report_type: str,
        start_date: int,
        end_date: int,
        generated_by: str | None = None,
    ) -> dict:
        return await asyncio.to_thread(
            self.generator.generate, report_type, start_date, end_date, generated_by
        )

    async def get_report(self, report_id: str) -> dict:
        return await asyncio.to_thread(self.reports.get_by_id, report_id)

    async def list_reports(self) -> list[dict]:
        return await asyncio.to_thread(self.reports.list_all)
