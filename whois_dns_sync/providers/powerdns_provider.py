"""
PowerDNS Admin provider implementation.

PowerDNS Admin exposes the PowerDNS HTTP API under ``/api/v1`` and
authenticates with an ``X-API-Key`` header. A domain's delegation is the NS
rrset named after the domain inside its parent zone.
"""

import logging
from typing import Dict, List, Optional

import dns.name
import requests

from .base_provider import DNSProvider
from ..exceptions import (
    ProviderConflictError,
    ProviderFatalError,
    ProviderTransientError,
)
from ..utils.validators import sanitize_fqdn

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = {429, 500, 502, 503, 504}


def absolute_name(name: str) -> str:
    """Return a name in canonical absolute form, e.g. ``example.com.``."""
    return dns.name.from_text(sanitize_fqdn(name)).to_text()


class PowerDNSAdminProvider(DNSProvider):
    """DNS provider backed by the PowerDNS Admin API."""

    def __init__(self, config: Dict, session: Optional[requests.Session] = None):
        """Initialize the provider from its configuration section."""
        self.config = config
        self.api_url = (config.get("api_url") or "").rstrip("/")
        self.api_key = config.get("api_key") or ""
        self.server_id = config.get("server_id", "localhost")
        self.zone = config.get("zone") or None
        self.ttl = int(config.get("ttl", 3600))
        self.timeout = float(config.get("timeout", 10))

        if not self.api_url:
            raise ProviderFatalError("PowerDNS Admin API URL is not configured")
        if not self.api_key:
            raise ProviderFatalError("PowerDNS Admin API key is not configured")

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "X-API-Key": self.api_key,
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

        logger.info(f"PowerDNS Admin provider initialized for {self.api_url}")

    def zone_for(self, domain: str) -> str:
        """Return the absolute name of the zone holding the domain's delegation."""
        if self.zone:
            return absolute_name(self.zone)
        return dns.name.from_text(sanitize_fqdn(domain)).parent().to_text()

    def _zone_url(self, zone: str) -> str:
        return f"{self.api_url}/api/v1/servers/{self.server_id}/zones/{zone}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        """Send a request and map failures onto provider errors."""
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            raise ProviderTransientError(f"{method} {url} failed: {e}") from e
        except requests.exceptions.RequestException as e:
            raise ProviderFatalError(f"{method} {url} failed: {e}") from e

        if response.ok:
            return response

        detail = self._error_detail(response)
        message = f"{method} {url} returned {response.status_code}: {detail}"
        if response.status_code in TRANSIENT_STATUS_CODES:
            raise ProviderTransientError(message, response.status_code)
        if response.status_code == 409:
            raise ProviderConflictError(message, response.status_code)
        raise ProviderFatalError(message, response.status_code)

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text.strip() or response.reason or "no details"
        if isinstance(payload, dict):
            return str(payload.get("error") or payload.get("msg") or payload)
        return str(payload)

    def get_nameservers(self, domain: str) -> Optional[List[str]]:
        """Get the NS rrset of a domain from its parent zone."""
        zone = self.zone_for(domain)
        response = self._request("GET", self._zone_url(zone))
        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderFatalError(f"Zone {zone} answer is not valid JSON") from e

        name = absolute_name(domain)
        for rrset in payload.get("rrsets", []):
            if rrset.get("type") == "NS" and rrset.get("name", "").lower() == name.lower():
                nameservers = [
                    record["content"]
                    for record in rrset.get("records", [])
                    if not record.get("disabled")
                ]
                logger.debug(f"Found NS rrset for {name}: {nameservers}")
                return nameservers or None

        logger.debug(f"No NS rrset for {name} in zone {zone}")
        return None

    def _patch_rrset(self, domain: str, rrset: Dict) -> bool:
        zone = self.zone_for(domain)
        self._request("PATCH", self._zone_url(zone), json={"rrsets": [rrset]})
        return True

    def _replace(self, domain: str, nameservers: List[str]) -> bool:
        rrset = {
            "name": absolute_name(domain),
            "type": "NS",
            "ttl": self.ttl,
            "changetype": "REPLACE",
            "records": [
                {"content": absolute_name(ns), "disabled": False} for ns in nameservers
            ],
        }
        return self._patch_rrset(domain, rrset)

    def create_nameservers(self, domain: str, nameservers: List[str]) -> bool:
        """Create the NS delegation for a domain."""
        self._replace(domain, nameservers)
        logger.info(f"Created NS records for {domain}: {', '.join(nameservers)}")
        return True

    def update_nameservers(self, domain: str, nameservers: List[str]) -> bool:
        """Replace the NS delegation of a domain."""
        self._replace(domain, nameservers)
        logger.info(f"Updated NS records for {domain}: {', '.join(nameservers)}")
        return True

    def delete_nameservers(self, domain: str) -> bool:
        """Delete the NS delegation of a domain."""
        rrset = {"name": absolute_name(domain), "type": "NS", "changetype": "DELETE"}
        self._patch_rrset(domain, rrset)
        logger.info(f"Deleted NS records for {domain}")
        return True
