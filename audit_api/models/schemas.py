"""
Audit Trail API — Pydantic Data Models

Every record and every request/response body is defined here. On the wire
and on disk the keys are camelCase (userId, createdAt, ...) to stay
compatible with the existing JSON collection files and the web client;
in Python the attributes are snake_case. The alias generator maps between
the two, and populate_by_name lets callers use either.

The Field() descriptions and examples show up in the docs at /docs.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        """Dump as a plain dict with camelCase keys, ready to persist."""
        return self.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------------
# Enums -- Constrained choices
# ---------------------------------------------------------------------------

class Role(str, Enum):
    """User roles. Stored as given; no permission model is enforced."""

    USER = "USER"
    AUDITOR = "AUDITOR"
    ADMIN = "ADMIN"


class AuditAction(str, Enum):
    """What an audited user did to a resource."""

    CREATE = "CREATE"
    QUERY = "QUERY"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    VERIFY = "VERIFY"
    REVOKE = "REVOKE"
    ISSUE = "ISSUE"


class ReportType(str, Enum):
    """Compliance frameworks a report can be generated for."""

    SOC2 = "SOC2"
    HIPAA = "HIPAA"
    GDPR = "GDPR"


class ReportStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


# ---------------------------------------------------------------------------
# Records -- what lives in each collection
# ---------------------------------------------------------------------------

class User(CamelModel):
    """A registered user. Mutable: role, active and updated_at change in place."""

    id: str = Field(description="Generated unique identifier.", examples=["5f0c..."])
    username: str = Field(examples=["alice"])
    email: str = Field(examples=["alice@example.com"])
    role: Role = Field(examples=["USER"])
    organization: str = Field(default="", examples=["Org1"])
    permissions: list[str] = Field(
        default=[],
        description="Granular permissions, in the order they were given.",
    )
    active: bool = Field(default=True, description="False once the user is deactivated.")
    created_at: int = Field(description="Creation time, ms since epoch.")
    updated_at: int | None = Field(default=None, description="Last update time, ms since epoch.")
    created_by: str | None = Field(default=None, description="Who registered this user.")


class AuditEntry(CamelModel):
    """A single audit log entry. Immutable once written."""

    id: str
    timestamp: int = Field(description="Creation time, ms since epoch.")
    user_id: str = Field(examples=["u1"])
    user_role: str | None = Field(default=None, examples=["ADMIN"])
    action: AuditAction = Field(examples=["CREATE"])
    resource_type: str | None = Field(default=None, examples=["CREDENTIAL"])
    resource_id: str | None = Field(default=None, examples=["cred-001"])
    status: str = Field(default="SUCCESS", examples=["SUCCESS"])
    compliance_tag: str | None = Field(
        default=None,
        description="Free-text regulatory label (HIPAA, GDPR, SOC2, ...).",
        examples=["SOC2"],
    )
    old_value: Any = None
    new_value: Any = None
    ip_address: str | None = None
    session_id: str | None = None
    metadata: Any = None
    tx_id: str | None = Field(
        default=None,
        description="Fabric transaction id that wrote the entry. Absent on the local ledger.",
    )


class AuditStats(CamelModel):
    """Counts over the audits in a date window."""

    total_entries: int = 0
    entries_by_action: dict[str, int] = {}
    entries_by_user: dict[str, int] = {}
    entries_by_resource: dict[str, int] = {}
    success_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    start_date: int
    end_date: int


class Report(CamelModel):
    """A generated compliance report. Immutable once written."""

    id: str
    report_type: ReportType
    start_date: int
    end_date: int
    generated_at: int
    generated_by: str | None = None
    total_entries: int = 0
    anomalies_found: int = 0
    status: ReportStatus = ReportStatus.COMPLETED
    summary: AuditStats | None = None


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class CreateUserRequest(CamelModel):
    """Register a new user. id, active and timestamps are generated."""

    username: str = Field(min_length=1, examples=["alice"])
    email: str = Field(min_length=1, examples=["a@x.com"])
    role: Role = Field(examples=["USER"])
    organization: str = Field(default="", examples=["Org1"])
    permissions: list[str] | None = Field(
        default=None,
        description="Defaults to an empty list.",
    )
    created_by: str | None = None


class UpdateRoleRequest(CamelModel):
    role: Role = Field(examples=["AUDITOR"])


class LogAuditRequest(CamelModel):
    """Append an audit entry. id and timestamp are generated."""

    user_id: str = Field(min_length=1, examples=["u1"])
    user_role: str | None = Field(default=None, examples=["USER"])
    action: AuditAction = Field(examples=["CREATE"])
    resource_type: str | None = Field(default=None, examples=["CREDENTIAL"])
    resource_id: str | None = Field(default=None, examples=["cred-001"])
    status: str = Field(default="SUCCESS", examples=["SUCCESS"])
    compliance_tag: str | None = Field(default=None, examples=["SOC2"])
    old_value: Any = None
    new_value: Any = None
    ip_address: str | None = None
    session_id: str | None = None
    metadata: Any = None


class GenerateReportRequest(CamelModel):
    report_type: ReportType = Field(examples=["SOC2"])
    start_date: int = Field(description="Window start, ms since epoch.", examples=[1735689600000])
    end_date: int = Field(description="Window end, ms since epoch.", examples=[1738368000000])
    generated_by: str | None = None


# ---------------------------------------------------------------------------
# Response envelopes -- {user}, {audits}, {report}, ...
# ---------------------------------------------------------------------------

class UserResponse(CamelModel):
    user: User


class ExistsResponse(CamelModel):
    exists: bool
    user_id: str | None = None
    audit_id: str | None = None


class AuditResponse(CamelModel):
    audit: AuditEntry


class AuditListResponse(CamelModel):
    audits: list[AuditEntry]


class InitLedgerResponse(CamelModel):
    message: str = Field(examples=["Ledger initialized with sample audit entries"])
    audits: list[AuditEntry]


class AuditStatsResponse(CamelModel):
    stats: AuditStats


class ReportResponse(CamelModel):
    report: Report


class ReportListResponse(CamelModel):
    reports: list[Report]


class ErrorResponse(BaseModel):
    error: str = Field(examples=["User not found"])
