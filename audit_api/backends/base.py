"""
Ledger backend interface.

Routes only ever talk to a LedgerBackend. Two implementations:

    LocalLedger   flat JSON files on disk (mock ledger, the default)
    FabricLedger  Hyperledger Fabric chaincode behind a REST gateway

Every method takes and returns plain camelCase dicts, the same shape the
records have on disk and on the wire.
"""

from abc import ABC, abstractmethod


class LedgerBackend(ABC):
    name: str = ""

    # -- users --------------------------------------------------------------

    @abstractmethod
    async def create_user(self, fields: dict) -> dict: ...

    @abstractmethod
    async def get_user(self, user_id: str) -> dict: ...

    @abstractmethod
    async def update_user_role(self, user_id: str, role: str) -> dict: ...

    @abstractmethod
    async def deactivate_user(self, user_id: str) -> dict: ...

    @abstractmethod
    async def user_exists(self, user_id: str) -> bool: ...

    # -- audits -------------------------------------------------------------

    @abstractmethod
    async def log_audit(self, fields: dict) -> dict: ...

    @abstractmethod
    async def get_audit(self, audit_id: str) -> dict: ...

    @abstractmethod
    async def audit_exists(self, audit_id: str) -> bool: ...

    @abstractmethod
    async def query_audits(
        self,
        user_id: str | None = None,
        action: str | None = None,
        start: int | None = None,
        end: int | None = None,
    ) -> list[dict]:
        """All audits, or those matching the one filter given.

        start and end go together (inclusive window).
        """

    @abstractmethod
    async def audit_stats(self, start: int, end: int) -> dict: ...

    @abstractmethod
    async def init_ledger(self) -> list[dict]:
        """Seed the ledger with sample audit entries and return them."""

    # -- reports ------------------------------------------------------------

    @abstractmethod
    async def generate_report(
        self,
        report_type: str,
        start_date: int,
        end_date: int,
        generated_by: str | None = None,
    ) -> dict: ...

    @abstractmethod
    async def get_report(self, report_id: str) -> dict: ...

    @abstractmethod
    async def list_reports(self) -> list[dict]: ...

    # -- lifecycle ----------------------------------------------------------

    async def close(self) -> None:
        """Release connections. Nothing to do by default."""
