"""
Tests for the Fabric gateway client and the Fabric ledger backend.

The chaincode is replaced by tests.fakes.FakeChaincode behind an
httpx.MockTransport, so these exercise the real HTTP client code.
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from audit_api.backends.fabric import FabricLedger
from audit_api.config import Settings
from audit_api.errors import NotFoundError, UpstreamError
from audit_api.ledger.gateway import LedgerGateway
from audit_api.main import create_app
from tests.fakes import FakeChaincode


@pytest.fixture
def chaincode() -> FakeChaincode:
    return FakeChaincode()


@pytest.fixture
def gateway(chaincode) -> LedgerGateway:
    return LedgerGateway(
        "http://gateway.test",
        channel="audit-channel",
        chaincode="audit-trail",
        transport=chaincode.transport(),
    )


@pytest.fixture
def ledger(gateway) -> FabricLedger:
    return FabricLedger(gateway)


class TestLedgerGateway:
    @pytest.mark.asyncio
    async def test_posts_function_and_string_args(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = request.read()
            return httpx.Response(200, json={"result": {"ok": True}})

        gw = LedgerGateway("http://gw", "ch", "cc", transport=httpx.MockTransport(handler))
        result = await gw.submit_transaction("LogAudit", "a1", 42, None)
        await gw.close()

        assert result == {"ok": True}
        assert seen["path"] == "/api/v1/channels/ch/chaincodes/cc/submit"
        assert json.loads(seen["body"]) == {"function": "LogAudit", "args": ["a1", "42", ""]}

    @pytest.mark.asyncio
    async def test_upstream_message_is_echoed(self, chaincode, gateway):
        chaincode.fail_with = (500, {"error": "endorsement failure"})
        with pytest.raises(UpstreamError, match="endorsement failure"):
            await gateway.evaluate_transaction("GetAllAudits")

    @pytest.mark.asyncio
    async def test_connection_error_is_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        gw = LedgerGateway("http://gw", "ch", "cc", transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamError, match="unreachable"):
            await gw.evaluate_transaction("GetAllAudits")


class TestFabricLedger:
    @pytest.mark.asyncio
    async def test_create_and_get_user(self, ledger, chaincode):
        user = await ledger.create_user(
            {"username": "alice", "email": "a@x.com", "role": "USER", "organization": "Org1"}
        )

        assert user["username"] == "alice"
        assert user["active"] is True
        assert chaincode.calls[0][:2] == ("submit", "RegisterUser")
        assert await ledger.get_user(user["id"]) == user

    @pytest.mark.asyncio
    async def test_missing_user_is_not_found(self, ledger):
        with pytest.raises(NotFoundError, match="User not found"):
            await ledger.get_user("ghost")
        with pytest.raises(NotFoundError):
            await ledger.update_user_role("ghost", "ADMIN")

    @pytest.mark.asyncio
    async def test_role_update_and_deactivate(self, ledger):
        user = await ledger.create_user({"username": "bob", "email": "b", "role": "USER"})

        assert (await ledger.update_user_role(user["id"], "AUDITOR"))["role"] == "AUDITOR"
        assert (await ledger.deactivate_user(user["id"]))["active"] is False
        assert await ledger.user_exists(user["id"]) is True
        assert await ledger.user_exists("ghost") is False

    @pytest.mark.asyncio
    async def test_log_audit_sends_thirteen_args(self, ledger, chaincode):
        entry = await ledger.log_audit(
            {"userId": "u1", "userRole": "ADMIN", "action": "CREATE", "newValue": {"a": 1}}
        )

        kind, fn, args = chaincode.calls[0]
        assert (kind, fn) == ("submit", "LogAudit")
        assert len(args) == 13
        assert args[7] == '{"a": 1}'
        assert args[8] == "SUCCESS"
        assert args[11] == "{}"
        assert entry["userId"] == "u1"
        assert await ledger.audit_exists(entry["id"]) is True

    @pytest.mark.asyncio
    async def test_queries_map_to_chaincode_functions(self, ledger, chaincode):
        first = await ledger.log_audit({"userId": "u1", "action": "CREATE"})
        second = await ledger.log_audit({"userId": "u2", "action": "REVOKE"})

        assert await ledger.query_audits() == [first, second]
        assert await ledger.query_audits(user_id="u2") == [second]
        assert await ledger.query_audits(action="CREATE") == [first]
        assert await ledger.query_audits(start=first["timestamp"], end=first["timestamp"]) == [first]

        functions = [fn for _, fn, _ in chaincode.calls if fn.startswith(("Query", "GetAll"))]
        assert functions == [
            "GetAllAudits",
            "QueryAuditsByUser",
            "QueryAuditsByAction",
            "QueryAuditsByDateRange",
        ]

    @pytest.mark.asyncio
    async def test_empty_query_is_empty_list(self, ledger):
        assert await ledger.query_audits(user_id="nobody") == []

    @pytest.mark.asyncio
    async def test_generate_report(self, ledger):
        await ledger.log_audit({"userId": "u1", "action": "CREATE"})
        await ledger.log_audit({"userId": "u1", "action": "DELETE", "status": "FAILURE"})

        report = await ledger.generate_report("HIPAA", 0, 10**15, generated_by="u1")

        assert report["status"] == "COMPLETED"
        assert report["totalEntries"] == 2
        assert report["anomaliesFound"] == 1
        assert report["summary"]["entriesByAction"] == {"CREATE": 1, "DELETE": 1}
        assert await ledger.list_reports() == [report]

    @pytest.mark.asyncio
    async def test_report_without_aggregation_is_zero_filled(self, gateway, chaincode):
        ledger = FabricLedger(gateway, aggregate_reports=False)
        await ledger.log_audit({"userId": "u1", "action": "DELETE", "status": "FAILURE"})

        report = await ledger.generate_report("SOC2", 0, 10**15)

        assert report["totalEntries"] == 0
        assert report["anomaliesFound"] == 0
        assert report["summary"] is None
        assert "QueryAuditsByDateRange" not in [fn for _, fn, _ in chaincode.calls]

    @pytest.mark.asyncio
    async def test_init_ledger_seeds_sample_entries(self, ledger, chaincode):
        seeded = await ledger.init_ledger()

        assert chaincode.calls[0][:2] == ("submit", "InitLedger")
        assert [a["id"] for a in seeded] == ["audit-001", "audit-002"]
        assert await ledger.query_audits() == seeded

    @pytest.mark.asyncio
    async def test_missing_report_is_not_found(self, ledger):
        with pytest.raises(NotFoundError, match="Report not found"):
            await ledger.get_report("ghost")


@pytest.fixture
def patched_chaincode(chaincode, monkeypatch):
    """Route every LedgerGateway the app builds to the fake chaincode."""
    original_init = LedgerGateway.__init__

    def init_with_fake(self, *args, **kwargs):
        kwargs["transport"] = chaincode.transport()
        original_init(self, *args, **kwargs)

    monkeypatch.setattr(LedgerGateway, "__init__", init_with_fake)
    return chaincode


class TestFabricBackendOverHttp:
    def test_routes_work_against_the_fabric_backend(self, patched_chaincode):
        """The same HTTP surface, served from the chaincode instead of files."""
        chaincode = patched_chaincode

        with TestClient(create_app(Settings(backend="fabric"))) as client:
            assert client.get("/api/health").json()["backend"] == "fabric"

            user = client.post(
                "/api/users", json={"username": "alice", "email": "a@x.com", "role": "USER"}
            ).json()["user"]
            entry = client.post(
                "/api/audit", json={"userId": user["id"], "action": "CREATE"}
            ).json()["audit"]

            assert entry["txId"] == chaincode.audits[entry["id"]]["txId"]
            assert client.get(f"/api/audit/user/{user['id']}").json() == {"audits": [entry]}

            missing = client.get("/api/audit/ghost")
            assert missing.status_code == 404
            assert missing.json() == {"error": "Audit not found"}

            chaincode.fail_with = (503, {"message": "peer unavailable"})
            failed = client.get("/api/audit")
            assert failed.status_code == 500
            assert failed.json() == {"error": "peer unavailable"}

    def test_aggregation_setting_reaches_the_fabric_backend(self, patched_chaincode):
        settings = Settings(backend="fabric", report_aggregation=False)

        with TestClient(create_app(settings)) as client:
            client.post("/api/audit", json={"userId": "u1", "action": "DELETE", "status": "FAILURE"})
            report = client.post(
                "/api/reports", json={"reportType": "SOC2", "startDate": 0, "endDate": 10**15}
            ).json()["report"]

        assert report["totalEntries"] == 0
        assert report["anomaliesFound"] == 0

    def test_init_route_runs_init_ledger(self, patched_chaincode):
        with TestClient(create_app(Settings(backend="fabric"))) as client:
            resp = client.post("/api/audit/init")

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Ledger initialized with sample audit entries"
        assert [a["userId"] for a in body["audits"]] == ["user-alice", "user-bob"]
        assert all(a["txId"] for a in body["audits"])
