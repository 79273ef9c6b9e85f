"""Mock ledger client returning canned values.

Used until the service is connected to a Canton participant, and in tests.
"""
from __future__ import annotations

import logging

from .base import CC_DECIMALS, ActiveContract, LedgerClient, LedgerHealth

logger = logging.getLogger(__name__)

DEFAULT_BALANCE = 1_000_000 * 10 ** CC_DECIMALS  # 1M CC


class MockLedgerClient(LedgerClient):
    """In-memory ledger stand-in.

    Any non-empty party id is valid; unknown parties hold DEFAULT_BALANCE.
    """

    def __init__(self, balances: dict[str, int] | None = None):
        self._balances = dict(balances or {})
        self._offset = 0

    def set_balance(self, party_id: str, amount: int) -> None:
        self._balances[party_id] = amount

    async def check_health(self) -> LedgerHealth:
        return LedgerHealth(connected=True, offset=await self.get_ledger_offset(), participant_id="mock-participant")

    async def get_ledger_offset(self) -> str:
        return str(self._offset)

    async def validate_party_id(self, party_id: str) -> bool:
        return len(party_id) > 0

    async def get_party_balance(self, party_id: str) -> int:
        return self._balances.get(party_id, DEFAULT_BALANCE)

    async def query_contracts(self, template_id: str, party_id: str) -> list[ActiveContract]:
        logger.debug(f"Mock query for {template_id} as {party_id}")
        return []
