"""Tests for environment-driven settings and backend selection."""

from pathlib import Path

import pytest

from audit_api.backends.fabric import FabricLedger
from audit_api.backends.local import LocalLedger
from audit_api.config import Settings
from audit_api.dependencies import build_backend


class TestSettingsFromEnv:
    def test_defaults(self, monkeypatch):
        for name in (
            "AUDIT_BACKEND",
            "AUDIT_DATA_DIR",
            "AUDIT_REPORT_AGGREGATION",
            "AUDIT_CORS_ORIGINS",
            "FABRIC_GATEWAY_URL",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()
        assert settings.backend == "local"
        assert settings.data_dir == Path("./data")
        assert settings.report_aggregation is True
        assert settings.cors_origins == ["*"]

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("AUDIT_BACKEND", "FABRIC")
        monkeypatch.setenv("AUDIT_REPORT_AGGREGATION", "false")
        monkeypatch.setenv("AUDIT_CORS_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("FABRIC_TIMEOUT", "5")

        settings = Settings.from_env()
        assert settings.backend == "fabric"
        assert settings.report_aggregation is False
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
        assert settings.fabric_timeout == 5.0

    def test_unknown_backend_is_rejected(self, monkeypatch):
        monkeypatch.setenv("AUDIT_BACKEND", "postgres")
        with pytest.raises(ValueError):
            Settings.from_env()


class TestBuildBackend:
    def test_local(self, tmp_path):
        backend = build_backend(Settings(data_dir=tmp_path))
        assert isinstance(backend, LocalLedger)
        assert backend.store.data_dir == tmp_path

    @pytest.mark.asyncio
    async def test_fabric(self):
        backend = build_backend(Settings(backend="fabric", fabric_channel="ch1"))
        assert isinstance(backend, FabricLedger)
        assert backend.gateway.channel == "ch1"
        await backend.close()

    @pytest.mark.asyncio
    async def test_report_aggregation_reaches_both_backends(self, tmp_path):
        local = build_backend(Settings(data_dir=tmp_path, report_aggregation=False))
        fabric = build_backend(Settings(backend="fabric", report_aggregation=False))

        assert local.generator.aggregate is False
        assert fabric.aggregate_reports is False
        await fabric.close()
