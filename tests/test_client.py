"""
Tests for the Python client.

The client takes any requests-compatible session; FastAPI's TestClient is
one, so the client runs against the real app without a server.
"""

import pytest

from audit_api.client import AuditTrailClient, AuditTrailClientError


@pytest.fixture
def api(client) -> AuditTrailClient:
    return AuditTrailClient("http://testserver", session=client)


class TestAuditTrailClient:
    def test_user_lifecycle(self, api):
        user = api.register_user("alice", "a@x.com", "USER", organization="Org1")
        assert user["permissions"] == []

        assert api.get_user(user["id"]) == user
        assert api.update_user_role(user["id"], "ADMIN")["role"] == "ADMIN"
        assert api.deactivate_user(user["id"])["active"] is False

    def test_audit_queries(self, api):
        entry = api.log_audit(userId="u1", action="CREATE", complianceTag="GDPR")
        api.log_audit(userId="u2", action="QUERY")

        assert api.get_audit(entry["id"]) == entry
        assert len(api.get_all_audits()) == 2
        assert api.query_audits_by_user("u1") == [entry]
        assert [a["userId"] for a in api.query_audits_by_action("QUERY")] == ["u2"]
        assert api.query_audits_by_date_range(entry["timestamp"], entry["timestamp"])[0] == entry
        assert api.audit_stats(0, 10**15)["totalEntries"] == 2

    def test_init_ledger(self, api):
        seeded = api.init_ledger()
        assert len(seeded) == 2
        assert api.get_all_audits() == seeded

    def test_reports(self, api):
        report = api.generate_report("SOC2", 0, 1, generated_by="auditor-1")

        assert report["generatedBy"] == "auditor-1"
        assert api.get_report(report["id"]) == report
        assert api.get_all_reports() == [report]

    def test_server_error_message_is_raised(self, api):
        with pytest.raises(AuditTrailClientError, match="User not found") as exc_info:
            api.get_user("missing")
        assert exc_info.value.status_code == 404
        assert exc_info.value.body == {"error": "User not found"}

    def test_ids_are_escaped_in_paths(self, client):
        sent = []

        class RecordingSession:
            def request(self, method, url, **kwargs):
                sent.append(url)
                return client.request(method, url, **kwargs)

        api = AuditTrailClient("http://testserver", session=RecordingSession())
        for call in (api.get_user, api.deactivate_user, api.get_audit, api.get_report):
            with pytest.raises(AuditTrailClientError):
                call("a b/c?d")
        with pytest.raises(AuditTrailClientError):
            api.update_user_role("a b/c?d", "ADMIN")

        assert all("a%20b%2Fc%3Fd" in url for url in sent)
        assert not any("?" in url for url in sent)
