"""
Base DNS provider interface.

This module defines the abstract base class that all DNS providers must implement.
Providers manage the NS delegation of a domain inside its parent zone.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class DNSProvider(ABC):
    """Abstract base class for DNS providers."""

    @abstractmethod
    def get_nameservers(self, domain: str) -> Optional[List[str]]:
        """Get the delegated nameservers of a domain, None if there are none."""
        pass

    @abstractmethod
    def create_nameservers(self, domain: str, nameservers: List[str]) -> bool:
        """Create the NS delegation for a domain."""
        pass

    @abstractmethod
    def update_nameservers(self, domain: str, nameservers: List[str]) -> bool:
        """Replace the NS delegation of a domain."""
        pass

    @abstractmethod
    def delete_nameservers(self, domain: str) -> bool:
        """Delete the NS delegation of a domain."""
        pass
