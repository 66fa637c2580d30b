"""
Hyperledger Fabric gateway client.

Talks to a Fabric REST gateway that fronts the audit-trail chaincode:

    POST {base_url}/api/v1/channels/{channel}/chaincodes/{chaincode}/submit
    POST {base_url}/api/v1/channels/{channel}/chaincodes/{chaincode}/evaluate

    body:     {"function": "LogAudit", "args": ["...", "..."]}
    response: {"result": <chaincode return value, JSON>}

submit_transaction() writes to the ledger (ordered + committed),
evaluate_transaction() is a read against a single peer. Chaincode
arguments are always strings.

One LedgerGateway is built at startup and closed at shutdown; it owns
its httpx.AsyncClient.
"""

import logging
from typing import Any

import httpx

from audit_api.errors import UpstreamError

logger = logging.getLogger(__name__)


class LedgerGateway:
    def __init__(
        self,
        base_url: str,
        channel: str,
        chaincode: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.channel = channel
        self.chaincode = chaincode
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    @property
    def _prefix(self) -> str:
        return f"/api/v1/channels/{self.channel}/chaincodes/{self.chaincode}"

    async def submit_transaction(self, function: str, *args: Any) -> Any:
        return await self._call("submit", function, args)

    async def evaluate_transaction(self, function: str, *args: Any) -> Any:
        return await self._call("evaluate", function, args)

    async def close(self) -> None:
        await self._client.aclose()

    async def _call(self, kind: str, function: str, args: tuple) -> Any:
        payload = {"function": function, "args": ["" if a is None else str(a) for a in args]}
        logger.debug("%s %s(%s)", kind, function, ", ".join(payload["args"]))

        try:
            resp = await self._client.post(f"{self._prefix}/{kind}", json=payload)
        except httpx.HTTPError as e:
            logger.error("Ledger gateway unreachable during %s: %s", function, e)
            raise UpstreamError(f"Ledger gateway unreachable: {e}") from e

        if resp.is_error:
            message = _error_message(resp)
            logger.warning("%s %s failed (%d): %s", kind, function, resp.status_code, message)
            raise UpstreamError(message)

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(f"Ledger gateway returned invalid JSON for {function}") from e

        return data.get("result") if isinstance(data, dict) else data


def _error_message(resp: httpx.Response) -> str:
    """Pull the upstream error text out of a failed gateway response."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text or f"Ledger gateway returned {resp.status_code}"
    if isinstance(data, dict):
        for key in ("error", "message", "detail"):
            if data.get(key):
                return str(data[key])
    return f"Ledger gateway returned {resp.status_code}"
