"""
Tests for compliance report generation.
"""

from audit_api.reports import ReportGenerator


def _log(audits, **fields):
    base = {"userId": "u1", "action": "CREATE"}
    base.update(fields)
    return audits.create(base)


class TestReportGenerator:
    def test_empty_window_gives_zero_counts(self, audits, reports):
        report = ReportGenerator(audits, reports).generate("SOC2", 0, 1000)

        assert report["status"] == "COMPLETED"
        assert report["totalEntries"] == 0
        assert report["anomaliesFound"] == 0
        assert report["reportType"] == "SOC2"

    def test_counts_entries_and_anomalies_in_window(self, audits, reports):
        inside = [
            _log(audits, status="SUCCESS"),
            _log(audits, status="FAILURE"),
            _log(audits, status="SUCCESS"),
        ]
        _log(audits, status="FAILURE")  # after the window

        start, end = inside[0]["timestamp"], inside[-1]["timestamp"]
        report = ReportGenerator(audits, reports).generate("HIPAA", start, end, generated_by="u9")

        assert report["totalEntries"] == 3
        assert report["anomaliesFound"] == 1
        assert report["generatedBy"] == "u9"
        assert report["summary"]["entriesByUser"] == {"u1": 3}

    def test_stub_mode_keeps_zero_counts(self, audits, reports):
        _log(audits, status="FAILURE")
        report = ReportGenerator(audits, reports, aggregate=False).generate("GDPR", 0, 10**15)

        assert report["totalEntries"] == 0
        assert report["anomaliesFound"] == 0
        assert "summary" not in report

    def test_report_is_persisted_and_not_recomputed(self, audits, reports):
        generator = ReportGenerator(audits, reports)
        report = generator.generate("SOC2", 0, 10**15)

        _log(audits)
        assert reports.get_by_id(report["id"])["totalEntries"] == 0
        assert reports.list_all() == [report]
