"""
WHOIS DNS Sync - Registry driven DNS delegation management

Keeps the NS delegations in a PowerDNS Admin instance in line with the
WHOIS-style JSON records of a version-controlled domain registry.
"""

__version__ = "1.0.0"
__author__ = "WHOIS DNS Sync Team"
__description__ = "Sync WHOIS registry changes to PowerDNS Admin"

from .core.sync_engine import DNSSyncEngine
from .core.reconciler import Reconciler
from .providers.dns_client import DNSClient

__all__ = [
    "DNSSyncEngine",
    "Reconciler",
    "DNSClient",
]
