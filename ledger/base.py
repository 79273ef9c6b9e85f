"""Ledger client interface.

Route handlers receive a LedgerClient through dependency injection; which
implementation they get is decided by LEDGER_MODE at startup.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

# Canton Coin amounts are integers in 10-decimal base units
CC_DECIMALS = 10


class LedgerError(Exception):
    """Raised when a ledger call fails."""
    pass


@dataclass
class LedgerHealth:
    """Ledger connectivity status."""
    connected: bool
    offset: str | None = None
    participant_id: str | None = None
    error: str | None = None


@dataclass
class ActiveContract:
    """Active contract as returned by the ledger."""
    contract_id: str
    template_id: str
    payload: dict[str, Any] = field(default_factory=dict)


class LedgerClient(ABC):
    """Operations the service needs from a Canton participant."""

    @abstractmethod
    async def check_health(self) -> LedgerHealth:
        """Report connectivity. Never raises."""

    @abstractmethod
    async def get_ledger_offset(self) -> str:
        """Current ledger end offset."""

    @abstractmethod
    async def validate_party_id(self, party_id: str) -> bool:
        """Whether the party is known to the participant."""

    @abstractmethod
    async def get_party_balance(self, party_id: str) -> int:
        """Balance in CC base units."""

    @abstractmethod
    async def query_contracts(self, template_id: str, party_id: str) -> list[ActiveContract]:
        """Active contracts of a template visible to a party."""

    async def aclose(self) -> None:
        """Release network resources."""
        return None
