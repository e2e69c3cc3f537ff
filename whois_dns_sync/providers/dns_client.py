"""
DNS Client - Retrying interface over the configured DNS provider

This module selects the provider from configuration and wraps every provider
call in a bounded retry loop. Only transient errors are retried; once the
attempts are exhausted the error escalates to ProviderFatalError.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, TypeVar

from .base_provider import DNSProvider
from .mock_provider import MockDNSProvider
from .powerdns_provider import PowerDNSAdminProvider
from ..exceptions import ProviderFatalError, ProviderTransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry policy for provider calls."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0

    @classmethod
    def from_config(cls, config: Optional[Dict]) -> "RetryPolicy":
        config = config or {}
        return cls(
            max_attempts=max(1, int(config.get("max_attempts", cls.max_attempts))),
            base_delay=max(0.0, float(config.get("base_delay", cls.base_delay))),
            max_delay=max(0.0, float(config.get("max_delay", cls.max_delay))),
        )

    def delay(self, attempt: int) -> float:
        """Backoff before the attempt following ``attempt`` (1-based)."""
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)


class DNSClient:
    """Provider facade with bounded retries."""

    def __init__(
        self,
        config: Dict,
        provider: Optional[DNSProvider] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize DNS client with configuration."""
        self.config = config
        self.provider = provider or self._get_provider()
        self.retry_policy = retry_policy or RetryPolicy.from_config(
            (config.get("sync") or {}).get("retry")
        )
        self._sleep = sleep

    def _get_provider(self) -> DNSProvider:
        """Get DNS provider based on configuration."""
        provider_name = self.config.get("default_provider", "powerdns_admin")
        provider_config = self.config.get("dns_providers", {}).get(provider_name, {}) or {}

        if provider_name == "powerdns_admin":
            return PowerDNSAdminProvider(provider_config)
        elif provider_name == "mock":
            return MockDNSProvider(provider_config)
        else:
            raise ProviderFatalError(f"Unknown DNS provider '{provider_name}'")

    def _with_retry(self, description: str, call: Callable[[int], T]) -> T:
        """Run ``call(attempt)`` until it succeeds or the policy is exhausted."""
        attempts = self.retry_policy.max_attempts
        for attempt in range(1, attempts + 1):
            try:
                return call(attempt)
            except ProviderTransientError as e:
                if attempt == attempts:
                    logger.error(f"{description} failed after {attempts} attempts: {e}")
                    raise ProviderFatalError(
                        f"{description} failed after {attempts} attempts: {e}",
                        e.status_code,
                    ) from e
                delay = self.retry_policy.delay(attempt)
                logger.warning(
                    f"{description} failed (attempt {attempt}/{attempts}): {e}; "
                    f"retrying in {delay:.1f}s"
                )
                self._sleep(delay)

        raise ProviderFatalError(f"{description} was not attempted")

    def get_nameservers(self, domain: str) -> Optional[List[str]]:
        """Look up the current delegation of a domain."""
        return self._with_retry(
            f"Lookup of {domain}", lambda attempt: self.provider.get_nameservers(domain)
        )

    def create_nameservers(self, domain: str, nameservers: List[str]) -> bool:
        """Create the delegation of a domain."""

        def attempt_create(attempt: int) -> bool:
            # A lost response may have applied the create already.
            if attempt > 1:
                current = self.provider.get_nameservers(domain)
                if current is not None:
                    return self.provider.update_nameservers(domain, nameservers)
            return self.provider.create_nameservers(domain, nameservers)

        return self._with_retry(f"Create of {domain}", attempt_create)

    def update_nameservers(self, domain: str, nameservers: List[str]) -> bool:
        """Replace the delegation of a domain."""
        return self._with_retry(
            f"Update of {domain}",
            lambda attempt: self.provider.update_nameservers(domain, nameservers),
        )

    def delete_nameservers(self, domain: str) -> bool:
        """Delete the delegation of a domain, re-checking absence before each retry."""

        def attempt_delete(attempt: int) -> bool:
            if attempt > 1 and self.provider.get_nameservers(domain) is None:
                logger.info(f"{domain} already absent, delete converged")
                return True
            return self.provider.delete_nameservers(domain)

        return self._with_retry(f"Delete of {domain}", attempt_delete)
