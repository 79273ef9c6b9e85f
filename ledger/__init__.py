"""Ledger integration: interface, mock and Canton JSON API client."""
from __future__ import annotations

import logging

from backr.config import LedgerMode, LedgerSettings

from .base import ActiveContract, LedgerClient, LedgerError, LedgerHealth
from .client import HttpLedgerClient
from .mock import MockLedgerClient

logger = logging.getLogger(__name__)

__all__ = [
    "ActiveContract",
    "HttpLedgerClient",
    "LedgerClient",
    "LedgerError",
    "LedgerHealth",
    "MockLedgerClient",
    "create_ledger_client",
]


def create_ledger_client(config: LedgerSettings) -> LedgerClient:
    """Build the ledger client selected by LEDGER_MODE."""
    if config.mode == LedgerMode.HTTP:
        logger.info(f"Using Canton JSON API at {config.participant_url}")
        return HttpLedgerClient(
            config.participant_url,
            auth_token=config.auth_token,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

    logger.info("Using mock ledger client")
    return MockLedgerClient()
