"""
Runtime configuration, read from environment variables.

    AUDIT_BACKEND=local        flat-file mock ledger (default)
    AUDIT_BACKEND=fabric       Hyperledger Fabric gateway

Settings.from_env() is called once by create_app(); tests build Settings
directly instead of touching os.environ.
"""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

VERSION = "0.1.0"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Application settings. Field defaults match the environment defaults."""

    backend: Literal["local", "fabric"] = "local"
    data_dir: Path = Path("./data")
    report_aggregation: bool = Field(
        default=True,
        description="Count audits in the report window. False keeps counts at zero.",
    )

    fabric_gateway_url: str = "http://localhost:8080"
    fabric_channel: str = "audit-channel"
    fabric_chaincode: str = "audit-trail"
    fabric_timeout: float = 30.0

    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("AUDIT_CORS_ORIGINS", "*")
        return cls(
            backend=os.getenv("AUDIT_BACKEND", "local").lower(),
            data_dir=Path(os.getenv("AUDIT_DATA_DIR", "./data")),
            report_aggregation=_env_bool("AUDIT_REPORT_AGGREGATION", True),
            fabric_gateway_url=os.getenv("FABRIC_GATEWAY_URL", "http://localhost:8080"),
            fabric_channel=os.getenv("FABRIC_CHANNEL", "audit-channel"),
            fabric_chaincode=os.getenv("FABRIC_CHAINCODE", "audit-trail"),
            fabric_timeout=float(os.getenv("FABRIC_TIMEOUT", "30")),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("AUDIT_LOG_LEVEL", "INFO").upper(),
        )
