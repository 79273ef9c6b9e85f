"""Canton JSON API v2 client over httpx.

Only the read calls the service needs are implemented. Transport errors are
retried with exponential backoff; non-2xx responses raise LedgerError.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.parse import quote

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .base import CC_DECIMALS, ActiveContract, LedgerClient, LedgerError, LedgerHealth

logger = logging.getLogger(__name__)

AMULET_TEMPLATE_ID = "#splice-amulet:Splice.Amulet:Amulet"
BACKR_PACKAGE = "#backr"


def to_canton_template_id(template_id: str) -> str:
    """Qualify a bare Module:Entity template id with the backr package."""
    if template_id.startswith("#") or len(template_id.split(":")) == 3:
        return template_id
    return f"{BACKR_PACKAGE}:{template_id}"


def cc_to_base_units(amount: str | int | float) -> int:
    """Convert a decimal CC amount ("12.5") to integer base units."""
    try:
        return int(Decimal(str(amount)).scaleb(CC_DECIMALS))
    except InvalidOperation as e:
        raise LedgerError(f"Invalid CC amount: {amount!r}") from e


class HttpLedgerClient(LedgerClient):
    """Async client for a Canton participant's JSON API."""

    def __init__(
        self,
        base_url: str,
        *,
        auth_token: str | None = None,
        timeout: float = 10.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._auth_token = auth_token
        self._timeout = timeout
        self._max_retries = max_retries
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self._auth_token:
                headers["Authorization"] = f"Bearer {self._auth_token}"
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, retrying transport failures."""
        client = await self._get_client()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_retries),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    return await client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"Ledger {method} {path} failed after {self._max_retries} attempts: {e}")
            raise LedgerError(f"Ledger unreachable: {e}") from e
        raise LedgerError(f"Ledger {method} {path} was not attempted")

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        logger.error(f"Ledger {action} failed: {response.status_code} {response.text}")
        raise LedgerError(f"Failed to {action}: {response.status_code} {response.text}")

    async def check_health(self) -> LedgerHealth:
        try:
            response = await self._request("GET", "/v2/state/ledger-end")
        except LedgerError as e:
            return LedgerHealth(connected=False, error=str(e))

        if response.is_success:
            data = response.json()
            return LedgerHealth(
                connected=True,
                offset=str(data.get("offset", data.get("ledgerEnd", ""))),
                participant_id=data.get("participantId"),
            )
        if response.status_code == 401:
            return LedgerHealth(connected=True, error="Authentication required")
        return LedgerHealth(
            connected=False,
            error=f"HTTP {response.status_code}: {response.reason_phrase}",
        )

    async def get_ledger_offset(self) -> str:
        response = await self._request("GET", "/v2/state/ledger-end")
        self._raise_for_status(response, "get ledger offset")
        data = response.json()
        return str(data.get("offset", data.get("ledgerEnd", "")))

    async def validate_party_id(self, party_id: str) -> bool:
        if not party_id:
            return False

        response = await self._request("GET", f"/v2/parties/{quote(party_id, safe='')}")
        if response.status_code == 404:
            return False
        self._raise_for_status(response, "look up party")
        return bool(response.json().get("partyDetails"))

    async def query_contracts(self, template_id: str, party_id: str) -> list[ActiveContract]:
        offset = await self.get_ledger_offset()
        body = {
            "verbose": True,
            "activeAtOffset": offset,
            "filter": {
                "filtersByParty": {
                    party_id: {
                        "cumulative": [
                            {
                                "identifierFilter": {
                                    "TemplateFilter": {
                                        "value": {
                                            "templateId": to_canton_template_id(template_id),
                                            "includeCreatedEventBlob": False,
                                        }
                                    }
                                }
                            }
                        ]
                    }
                }
            },
        }

        response = await self._request("POST", "/v2/state/active-contracts", json=body)
        self._raise_for_status(response, "query contracts")

        data = response.json()
        contracts = []
        if isinstance(data, list):
            for item in data:
                event = (
                    (item or {}).get("contractEntry", {})
                    .get("JsActiveContract", {})
                    .get("createdEvent")
                )
                if event:
                    contracts.append(
                        ActiveContract(
                            contract_id=event["contractId"],
                            template_id=event.get("templateId", ""),
                            payload=event.get("createArgument") or event.get("payload") or {},
                        )
                    )

        logger.debug(f"Found {len(contracts)} {template_id} contracts for {party_id}")
        return contracts

    async def get_party_balance(self, party_id: str) -> int:
        """Sum of the party's Amulet holdings, in base units."""
        holdings = await self.query_contracts(AMULET_TEMPLATE_ID, party_id)
        total = 0
        for contract in holdings:
            amount = contract.payload.get("amount", {})
            total += cc_to_base_units(amount.get("initialAmount", "0"))
        return total
