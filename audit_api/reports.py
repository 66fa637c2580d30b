"""
Compliance report generation.

A report covers the audits whose timestamp falls in [start_date, end_date]:

    totalEntries    audits in the window
    anomaliesFound  audits in the window whose status is not SUCCESS
    summary         AuditStats for the window (by action, user, resource)

With aggregate=False the generator writes the report with both counts at
zero and no summary, which is how the first mock ledger behaved.
Reports are never recomputed after they are written.
"""

import logging

from audit_api.repositories import AuditRepository, ReportRepository, summarize

logger = logging.getLogger(__name__)


class ReportGenerator:
    def __init__(self, audits: AuditRepository, reports: ReportRepository, aggregate: bool = True):
        self.audits = audits
        self.reports = reports
        self.aggregate = aggregate

    def generate(
        self,
        report_type: str,
        start_date: int,
        end_date: int,
        generated_by: str | None = None,
    ) -> dict:
        fields = {
            "reportType": report_type,
            "startDate": start_date,
            "endDate": end_date,
            "generatedBy": generated_by,
        }

        if self.aggregate:
            window = self.audits.by_date_range(start_date, end_date)
            stats = summarize(window, start_date, end_date)
            anomalies = sum(1 for a in window if a.get("status") != "SUCCESS")
            fields.update(
                totalEntries=stats["totalEntries"],
                anomaliesFound=anomalies,
                summary=stats,
            )

        report = self.reports.create(fields)
        logger.info(
            "Generated %s report id=%s window=[%d, %d] entries=%d anomalies=%d",
            report_type, report["id"], start_date, end_date,
            report["totalEntries"], report["anomaliesFound"],
        )
        return report
