"""
Mock DNS provider for testing and dry runs.

This module provides a mock DNS provider that stores delegations in memory.
Failures can be injected to exercise the retry and error paths.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .base_provider import DNSProvider
from ..exceptions import ProviderConflictError, ProviderTransientError
from ..utils.validators import sanitize_fqdn

logger = logging.getLogger(__name__)


class MockDNSProvider(DNSProvider):
    """In-memory DNS provider."""

    def __init__(self, config: Dict = None):
        """Initialize mock provider, optionally seeded with delegations."""
        config = config or {}
        self.records: Dict[str, List[str]] = {
            sanitize_fqdn(domain): list(nameservers)
            for domain, nameservers in (config.get("records") or {}).items()
        }
        self.calls: List[tuple] = []
        self._failures: List[Tuple[Exception, bool]] = []
        logger.info("Mock DNS provider initialized")

    def fail_next(
        self, count: int = 1, error: Optional[Exception] = None, after_apply: bool = False
    ):
        """
        Make the next ``count`` calls raise ``error`` (transient by default).

        With ``after_apply`` the call changes state before failing, like a
        request whose response was lost.
        """
        for _ in range(count):
            failure = error or ProviderTransientError("Mock: simulated outage")
            self._failures.append((failure, after_apply))

    def _before(self, name: str, *args):
        self.calls.append((name,) + args)
        if self._failures and not self._failures[0][1]:
            raise self._failures.pop(0)[0]

    def _after(self):
        if self._failures and self._failures[0][1]:
            raise self._failures.pop(0)[0]

    def get_nameservers(self, domain: str) -> Optional[List[str]]:
        """Get the delegated nameservers of a domain."""
        self._before("get", domain)
        nameservers = self.records.get(sanitize_fqdn(domain))
        logger.info(f"Mock: Looked up {domain} -> {nameservers}")
        return list(nameservers) if nameservers is not None else None

    def create_nameservers(self, domain: str, nameservers: List[str]) -> bool:
        """Create the NS delegation for a domain."""
        self._before("create", domain, list(nameservers))
        key = sanitize_fqdn(domain)
        if key in self.records:
            raise ProviderConflictError(f"Mock: Record for {domain} already exists", 409)
        self.records[key] = list(nameservers)
        logger.info(f"Mock: Created delegation {domain} -> {', '.join(nameservers)}")
        self._after()
        return True

    def update_nameservers(self, domain: str, nameservers: List[str]) -> bool:
        """Replace the NS delegation of a domain."""
        self._before("update", domain, list(nameservers))
        self.records[sanitize_fqdn(domain)] = list(nameservers)
        logger.info(f"Mock: Updated delegation {domain} -> {', '.join(nameservers)}")
        self._after()
        return True

    def delete_nameservers(self, domain: str) -> bool:
        """Delete the NS delegation of a domain."""
        self._before("delete", domain)
        key = sanitize_fqdn(domain)
        if key not in self.records:
            raise ValueError(f"Record {domain} not found for deletion")
        del self.records[key]
        logger.info(f"Mock: Deleted delegation {domain}")
        self._after()
        return True

    def mutations(self) -> List[tuple]:
        """Return the recorded mutation attempts."""
        return [call for call in self.calls if call[0] != "get"]
