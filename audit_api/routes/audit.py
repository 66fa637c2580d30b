"""
/api/audit -- Compliance audit trail.

Audit entries are append-only: they can be logged and read, never changed
or deleted. The list views are plain filters over the whole log and come
back in insertion order; clients sort them however they like.
"""

from fastapi import APIRouter, Depends, Query

from audit_api.backends.base import LedgerBackend
from audit_api.dependencies import get_backend
from audit_api.models.schemas import (
    AuditEntry,
    AuditListResponse,
    AuditResponse,
    AuditStats,
    AuditStatsResponse,
    ErrorResponse,
    ExistsResponse,
    InitLedgerResponse,
    LogAuditRequest,
)

router = APIRouter(prefix="/api/audit", tags=["Audit"])


def _entries(records: list[dict]) -> AuditListResponse:
    return AuditListResponse(audits=[AuditEntry(**r) for r in records])


@router.post(
    "",
    response_model=AuditResponse,
    summary="Log an audit entry",
    description="Append an entry to the audit log. The id and timestamp are generated.",
)
async def log_audit(
    request: LogAuditRequest,
    backend: LedgerBackend = Depends(get_backend),
) -> AuditResponse:
    fields = request.to_record()
    record = await backend.log_audit(fields)
    return AuditResponse(audit=AuditEntry(**record))


@router.get("", response_model=AuditListResponse, summary="List all audit entries")
async def get_all_audits(backend: LedgerBackend = Depends(get_backend)) -> AuditListResponse:
    return _entries(await backend.query_audits())


# ---------------------------------------------------------------------------
# Fixed paths first: /{audit_id} below would otherwise swallow them.
# ---------------------------------------------------------------------------

@router.post(
    "/init",
    response_model=InitLedgerResponse,
    summary="Seed the ledger with sample entries",
    description=(
        "Writes a couple of sample audit entries for demos. On Fabric this runs "
        "the chaincode's InitLedger, which overwrites its fixed sample keys; "
        "locally every call appends a fresh set."
    ),
)
async def init_ledger(backend: LedgerBackend = Depends(get_backend)) -> InitLedgerResponse:
    seeded = await backend.init_ledger()
    return InitLedgerResponse(
        message="Ledger initialized with sample audit entries",
        audits=[AuditEntry(**r) for r in seeded],
    )


@router.get(
    "/daterange",
    response_model=AuditListResponse,
    summary="Audit entries in a time window",
    description=(
        "Entries with start <= timestamp <= end (ms since epoch). "
        "A window with start > end matches nothing."
    ),
)
async def get_audits_by_date_range(
    start: int = Query(description="Window start, ms since epoch."),
    end: int = Query(description="Window end, ms since epoch."),
    backend: LedgerBackend = Depends(get_backend),
) -> AuditListResponse:
    return _entries(await backend.query_audits(start=start, end=end))


@router.get(
    "/stats",
    response_model=AuditStatsResponse,
    summary="Audit statistics for a time window",
    description="Counts by action, user and resource type, plus the success rate.",
)
async def get_audit_stats(
    start: int = Query(description="Window start, ms since epoch."),
    end: int = Query(description="Window end, ms since epoch."),
    backend: LedgerBackend = Depends(get_backend),
) -> AuditStatsResponse:
    stats = await backend.audit_stats(start, end)
    return AuditStatsResponse(stats=AuditStats(**stats))


@router.get("/user/{user_id}", response_model=AuditListResponse, summary="Audit entries by user")
async def get_audits_by_user(user_id: str, backend: LedgerBackend = Depends(get_backend)) -> AuditListResponse:
    return _entries(await backend.query_audits(user_id=user_id))


@router.get("/action/{action}", response_model=AuditListResponse, summary="Audit entries by action")
async def get_audits_by_action(
    action: str,
    backend: LedgerBackend = Depends(get_backend),
) -> AuditListResponse:
    return _entries(await backend.query_audits(action=action))


@router.get(
    "/exists/{audit_id}",
    response_model=ExistsResponse,
    response_model_exclude_none=True,
    summary="Check whether an audit entry exists",
)
async def audit_exists(audit_id: str, backend: LedgerBackend = Depends(get_backend)) -> ExistsResponse:
    return ExistsResponse(audit_id=audit_id, exists=await backend.audit_exists(audit_id))


@router.get(
    "/{audit_id}",
    response_model=AuditResponse,
    responses={404: {"model": ErrorResponse, "description": "Audit not found"}},
    summary="Fetch one audit entry",
    description="These records are immutable -- they cannot be modified or deleted.",
)
async def get_audit(audit_id: str, backend: LedgerBackend = Depends(get_backend)) -> AuditResponse:
    record = await backend.get_audit(audit_id)
    return AuditResponse(audit=AuditEntry(**record))
