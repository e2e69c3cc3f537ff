"""
DNS provider implementations.

This package contains the PowerDNS Admin provider, an in-memory mock
provider and the retrying client used by the reconciler.
"""

from .base_provider import DNSProvider
from .dns_client import DNSClient, RetryPolicy
from .mock_provider import MockDNSProvider
from .powerdns_provider import PowerDNSAdminProvider

__all__ = ["DNSClient", "DNSProvider", "MockDNSProvider", "PowerDNSAdminProvider", "RetryPolicy"]
