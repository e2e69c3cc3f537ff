#!/usr/bin/env python3
"""
Tests for the PowerDNS Admin provider.

The HTTP session is replaced with a mock so no network access is needed.
"""

import unittest
from unittest.mock import MagicMock

import requests

from whois_dns_sync.exceptions import (
    ProviderConflictError,
    ProviderFatalError,
    ProviderTransientError,
)
from whois_dns_sync.providers.dns_client import DNSClient, RetryPolicy
from whois_dns_sync.providers.powerdns_provider import PowerDNSAdminProvider, absolute_name

ZONE_URL = "https://pda.example.net/api/v1/servers/localhost/zones/no.kg."


def make_response(status_code=200, payload=None, text=""):
    """Build a stand-in for requests.Response."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = "Reason"
    response.text = text
    if payload is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = payload
    return response


def zone_payload(*rrsets):
    return {"name": "no.kg.", "kind": "Native", "rrsets": list(rrsets)}


def ns_rrset(name, *contents, disabled=()):
    return {
        "name": name,
        "type": "NS",
        "ttl": 3600,
        "records": [
            {"content": content, "disabled": content in disabled} for content in contents
        ],
    }


class TestPowerDNSAdminProvider(unittest.TestCase):
    """Test the PowerDNS Admin API calls."""

    def setUp(self):
        """Set up a provider with a mocked session."""
        self.session = MagicMock()
        self.session.headers = {}
        self.config = {
            "api_url": "https://pda.example.net/",
            "api_key": "secret-key",
            "zone": "no.kg",
            "ttl": 600,
            "timeout": 5,
        }
        self.provider = PowerDNSAdminProvider(self.config, session=self.session)

    def test_initialization(self):
        """Test API key header and URL normalization."""
        self.assertEqual(self.session.headers["X-API-Key"], "secret-key")
        self.assertEqual(self.provider.api_url, "https://pda.example.net")
        self.assertEqual(self.provider.ttl, 600)

    def test_missing_credentials(self):
        """Test that URL and key are required."""
        with self.assertRaises(ProviderFatalError):
            PowerDNSAdminProvider({"api_key": "k"}, session=self.session)
        with self.assertRaises(ProviderFatalError):
            PowerDNSAdminProvider({"api_url": "https://pda.example.net"}, session=self.session)

    def test_zone_resolution(self):
        """Test configured and derived zones."""
        self.assertEqual(self.provider.zone_for("example.no.kg"), "no.kg.")
        derived = PowerDNSAdminProvider(
            {"api_url": "https://pda.example.net", "api_key": "k"}, session=self.session
        )
        self.assertEqual(derived.zone_for("example.no.kg"), "no.kg.")
        self.assertEqual(absolute_name("NS1.Example.net."), "ns1.example.net.")

    def test_get_nameservers(self):
        """Test reading the NS rrset of a domain."""
        self.session.request.return_value = make_response(
            payload=zone_payload(
                {"name": "no.kg.", "type": "SOA", "records": []},
                ns_rrset("example.no.kg.", "ns1.example.net.", "ns2.example.net."),
            )
        )
        self.assertEqual(
            self.provider.get_nameservers("example.no.kg"),
            ["ns1.example.net.", "ns2.example.net."],
        )
        self.session.request.assert_called_once_with("GET", ZONE_URL, timeout=5.0)

    def test_get_nameservers_absent(self):
        """Test a domain without delegation."""
        self.session.request.return_value = make_response(
            payload=zone_payload(ns_rrset("other.no.kg.", "ns1.example.net."))
        )
        self.assertIsNone(self.provider.get_nameservers("example.no.kg"))

    def test_disabled_records_are_ignored(self):
        """Test that only enabled records count as existing."""
        self.session.request.return_value = make_response(
            payload=zone_payload(
                ns_rrset("example.no.kg.", "ns1.example.net.", disabled=("ns1.example.net.",))
            )
        )
        self.assertIsNone(self.provider.get_nameservers("example.no.kg"))

    def test_create_sends_replace(self):
        """Test the create rrset payload."""
        self.session.request.return_value = make_response(204)
        self.assertTrue(
            self.provider.create_nameservers("example.no.kg", ["ns1.example.net", "NS2.example.net."])
        )
        self.session.request.assert_called_once_with(
            "PATCH",
            ZONE_URL,
            timeout=5.0,
            json={
                "rrsets": [
                    {
                        "name": "example.no.kg.",
                        "type": "NS",
                        "ttl": 600,
                        "changetype": "REPLACE",
                        "records": [
                            {"content": "ns1.example.net.", "disabled": False},
                            {"content": "ns2.example.net.", "disabled": False},
                        ],
                    }
                ]
            },
        )

    def test_delete_sends_delete(self):
        """Test the delete rrset payload."""
        self.session.request.return_value = make_response(204)
        self.assertTrue(self.provider.delete_nameservers("example.no.kg"))
        _, kwargs = self.session.request.call_args
        self.assertEqual(
            kwargs["json"],
            {"rrsets": [{"name": "example.no.kg.", "type": "NS", "changetype": "DELETE"}]},
        )

    def test_error_mapping(self):
        """Test how HTTP failures map onto provider errors."""
        cases = [
            (make_response(503, text="Service Unavailable"), ProviderTransientError),
            (make_response(429, payload={"error": "Too many requests"}), ProviderTransientError),
            (make_response(409, payload={"error": "Conflict"}), ProviderConflictError),
            (make_response(404, payload={"error": "Zone not found"}), ProviderFatalError),
            (make_response(401, payload={"msg": "Invalid API key"}), ProviderFatalError),
        ]
        for response, error in cases:
            with self.subTest(status=response.status_code):
                self.session.request.return_value = response
                with self.assertRaises(error) as ctx:
                    self.provider.get_nameservers("example.no.kg")
                self.assertEqual(ctx.exception.status_code, response.status_code)

    def test_network_errors_are_transient(self):
        """Test timeouts and connection failures."""
        for exc in (requests.exceptions.Timeout("slow"), requests.exceptions.ConnectionError("down")):
            with self.subTest(exc=exc):
                self.session.request.side_effect = exc
                with self.assertRaises(ProviderTransientError):
                    self.provider.update_nameservers("example.no.kg", ["ns1.example.net"])

    def test_invalid_json_answer(self):
        """Test a zone answer that is not JSON."""
        self.session.request.return_value = make_response(200, text="<html>")
        with self.assertRaises(ProviderFatalError):
            self.provider.get_nameservers("example.no.kg")

    def test_client_retries_provider_outage(self):
        """Test the retrying client on top of the HTTP provider."""
        self.session.request.side_effect = [
            make_response(502, text="Bad Gateway"),
            make_response(payload=zone_payload()),
        ]
        client = DNSClient(
            {}, provider=self.provider, retry_policy=RetryPolicy(3, 0.0, 0.0), sleep=lambda s: None
        )
        self.assertIsNone(client.get_nameservers("example.no.kg"))
        self.assertEqual(self.session.request.call_count, 2)


if __name__ == "__main__":
    unittest.main()
