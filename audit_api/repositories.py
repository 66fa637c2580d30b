"""
Entity repositories over the flat-file store.

One repository per collection. Each operation is a single load -> compute
-> save cycle against the whole JSON array; queries are linear scans.
Records are plain dicts with camelCase keys, exactly as they sit on disk.

No foreign keys are checked: an audit entry's userId need not exist in
the users collection.
"""

import logging
import time
import uuid
from collections import Counter
from typing import Callable

from audit_api.errors import NotFoundError, ValidationError
from audit_api.store import FlatFileStore

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current time in milliseconds since epoch."""
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


class Repository:
    """Generic create / get / list over one named collection.

    Subclasses set `collection`, `label` and `required`, and may override `_defaults`
    to fill entity-specific fields on create. Records are append-only unless
    the repository derives from MutableRepository.
    """

    collection: str = ""
    label: str = "Record"
    required: tuple[str, ...] = ()

    def __init__(self, store: FlatFileStore, clock: Callable[[], int] = now_ms):
        self.store = store
        self.clock = clock

    def _defaults(self, fields: dict) -> dict:
        return {}

    def create(self, fields: dict) -> dict:
        """Append a new record built from `fields`, return it."""
        missing = [k for k in self.required if fields.get(k) in (None, "")]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        now = self.clock()
        with self.store.transaction(self.collection) as records:
            taken = {r.get("id") for r in records}
            record_id = new_id()
            while record_id in taken:
                record_id = new_id()

            record = {"id": record_id}
            record.update(self._defaults(fields))
            record.update({k: v for k, v in fields.items() if k != "id"})
            self._stamp_created(record, now)
            records.append(record)

        logger.info("Created %s id=%s", self.label.lower(), record_id)
        return record

    def _stamp_created(self, record: dict, now: int) -> None:
        record["createdAt"] = now

    def list_all(self) -> list[dict]:
        return self.store.load(self.collection)

    def find(self, predicate: Callable[[dict], bool]) -> list[dict]:
        return [r for r in self.store.load(self.collection) if predicate(r)]

    def get_by_id(self, record_id: str) -> dict:
        for record in self.store.load(self.collection):
            if record.get("id") == record_id:
                return record
        logger.debug("%s id=%s not found", self.label, record_id)
        raise NotFoundError(f"{self.label} not found")

    def exists(self, record_id: str) -> bool:
        return any(r.get("id") == record_id for r in self.store.load(self.collection))


class MutableRepository(Repository):
    """A collection whose records change after creation. They carry updatedAt."""

    def _stamp_created(self, record: dict, now: int) -> None:
        super()._stamp_created(record, now)
        record["updatedAt"] = now

    def update(self, record_id: str, patch: dict) -> dict:
        """Apply `patch` to the record in place and stamp updatedAt.

        Raises NotFoundError (and writes nothing) if the id is unknown.
        """
        with self.store.transaction(self.collection) as records:
            for record in records:
                if record.get("id") == record_id:
                    break
            else:
                raise NotFoundError(f"{self.label} not found")

            record.update({k: v for k, v in patch.items() if k != "id"})
            record["updatedAt"] = self.clock()

        logger.info("Updated %s id=%s fields=%s", self.label.lower(), record_id, sorted(patch))
        return record


class UserRepository(MutableRepository):
    collection = "users"
    label = "User"
    required = ("username", "email", "role")

    def _defaults(self, fields: dict) -> dict:
        return {"permissions": [], "active": True}

    def create(self, fields: dict) -> dict:
        # An explicit null means "no permissions", same as leaving it out
        if fields.get("permissions") is None:
            fields = {k: v for k, v in fields.items() if k != "permissions"}
        return super().create(fields)

    def update_role(self, user_id: str, role: str) -> dict:
        return self.update(user_id, {"role": role})

    def deactivate(self, user_id: str) -> dict:
        """Soft delete: the user stays in the collection with active=false."""
        return self.update(user_id, {"active": False})


class AuditRepository(Repository):
    """Append-only audit log plus the read-only query views."""

    collection = "audits"
    label = "Audit"
    required = ("userId", "action")

    def _defaults(self, fields: dict) -> dict:
        return {"status": "SUCCESS"}

    def _stamp_created(self, record: dict, now: int) -> None:
        record["timestamp"] = now

    # -----------------------------------------------------------------------
    # Query views. Results keep insertion order; callers sort if they need to.
    # -----------------------------------------------------------------------

    def all(self) -> list[dict]:
        return self.list_all()

    def by_user(self, user_id: str) -> list[dict]:
        return self.find(lambda a: a.get("userId") == user_id)

    def by_action(self, action: str) -> list[dict]:
        return self.find(lambda a: a.get("action") == action)

    def by_date_range(self, start: int, end: int) -> list[dict]:
        """Audits with start <= timestamp <= end. start > end matches nothing."""
        return self.find(
            lambda a: isinstance(a.get("timestamp"), (int, float)) and start <= a["timestamp"] <= end
        )

    def stats(self, start: int, end: int) -> dict:
        """Counts over the audits in [start, end], keyed like AuditStats."""
        return summarize(self.by_date_range(start, end), start, end)


def summarize(audits: list[dict], start: int, end: int) -> dict:
    """Build an AuditStats dict from audits already filtered to [start, end]."""
    total = len(audits)
    succeeded = sum(1 for a in audits if a.get("status") == "SUCCESS")

    return {
        "totalEntries": total,
        "entriesByAction": dict(Counter(str(a.get("action")) for a in audits)),
        "entriesByUser": dict(Counter(str(a.get("userId")) for a in audits)),
        "entriesByResource": dict(
            Counter(str(a.get("resourceType")) for a in audits if a.get("resourceType"))
        ),
        "successRate": round(succeeded / total, 4) if total else 0.0,
        "startDate": start,
        "endDate": end,
    }


class ReportRepository(Repository):
    collection = "reports"
    label = "Report"
    required = ("reportType", "startDate", "endDate")

    def _defaults(self, fields: dict) -> dict:
        return {"totalEntries": 0, "anomaliesFound": 0, "status": "COMPLETED"}

    def _stamp_created(self, record: dict, now: int) -> None:
        record["generatedAt"] = now
        # Status is fixed on creation, whatever the caller passed
        record["status"] = "COMPLETED"
