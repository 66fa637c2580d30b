"""
/api/reports -- Compliance reports.

POST generates a report for a reportType and a [startDate, endDate] window
and stores it. Stored reports are never recomputed.
"""

from fastapi import APIRouter, Depends

from audit_api.backends.base import LedgerBackend
from audit_api.dependencies import get_backend
from audit_api.models.schemas import (
    ErrorResponse,
    GenerateReportRequest,
    Report,
    ReportListResponse,
    ReportResponse,
)

router = APIRouter(prefix="/api/reports", tags=["Compliance"])


@router.post(
    "",
    response_model=ReportResponse,
    summary="Generate a compliance report",
    description=(
        "Counts the audit entries in the window (totalEntries) and those whose "
        "status is not SUCCESS (anomaliesFound). The report is stored as COMPLETED."
    ),
)
async def generate_report(
    request: GenerateReportRequest,
    backend: LedgerBackend = Depends(get_backend),
) -> ReportResponse:
    record = await backend.generate_report(
        request.report_type.value,
        request.start_date,
        request.end_date,
        generated_by=request.generated_by,
    )
    return ReportResponse(report=Report(**record))


@router.get("", response_model=ReportListResponse, summary="List reports")
async def get_all_reports(backend: LedgerBackend = Depends(get_backend)) -> ReportListResponse:
    return ReportListResponse(reports=[Report(**r) for r in await backend.list_reports()])


@router.get(
    "/{report_id}",
    response_model=ReportResponse,
    responses={404: {"model": ErrorResponse, "description": "Report not found"}},
    summary="Fetch a report",
)
async def get_report(report_id: str, backend: LedgerBackend = Depends(get_backend)) -> ReportResponse:
    record = await backend.get_report(report_id)
    return ReportResponse(report=Report(**record))
