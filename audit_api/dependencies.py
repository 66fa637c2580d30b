"""
Backend construction and injection.

build_backend() picks the ledger named by settings.backend. The app builds
one at startup, keeps it on app.state.backend and closes it at shutdown;
route handlers receive it through the get_backend dependency.
"""

import logging

from fastapi import Request

from audit_api.backends.base import LedgerBackend
from audit_api.backends.fabric import FabricLedger
from audit_api.backends.local import LocalLedger
from audit_api.config import Settings
from audit_api.ledger.gateway import LedgerGateway

logger = logging.getLogger(__name__)


def build_backend(settings: Settings) -> LedgerBackend:
    if settings.backend == "fabric":
        logger.info(
            "Using Fabric ledger at %s (channel=%s, chaincode=%s)",
            settings.fabric_gateway_url, settings.fabric_channel, settings.fabric_chaincode,
        )
        gateway = LedgerGateway(
            settings.fabric_gateway_url,
            channel=settings.fabric_channel,
            chaincode=settings.fabric_chaincode,
            timeout=settings.fabric_timeout,
        )
        return FabricLedger(gateway, aggregate_reports=settings.report_aggregation)

    return LocalLedger(settings.data_dir, aggregate_reports=settings.report_aggregation)


def get_backend(request: Request) -> LedgerBackend:
    return request.app.state.backend
