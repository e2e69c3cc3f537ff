"""
Behave environment configuration for WHOIS DNS Sync scenarios.

Each scenario gets a fresh registry checkout in a temporary directory and an
in-memory provider, so no PowerDNS Admin instance is needed.
"""

import logging
import tempfile
from pathlib import Path

from whois_dns_sync.providers.dns_client import RetryPolicy
from whois_dns_sync.providers.mock_provider import MockDNSProvider

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def before_all(context):
    """Set up shared test settings."""
    context.test_zone = "no.kg"
    context.retry_policy = RetryPolicy(max_attempts=3, base_delay=0.0, max_delay=0.0)
    logger.info("Test environment setup complete")


def before_scenario(context, scenario):
    """Set up each test scenario."""
    context.scenario_name = scenario.name
    context.tmp = tempfile.TemporaryDirectory()
    context.root = Path(context.tmp.name)
    (context.root / "whois").mkdir()
    context.result_file = context.root / "dns-sync-result.json"

    context.sync_config = {
        "default_provider": "mock",
        "dns_providers": {"mock": {"zone": context.test_zone}},
        "registry": {"root": str(context.root), "staging_dir": str(context.root / "staging")},
        "sync": {"add_policy": "strict", "result_file": str(context.result_file)},
    }
    context.provider = MockDNSProvider()
    context.files = []
    context.results = []

    logger.info(f"Starting scenario: {scenario.name}")


def after_scenario(context, scenario):
    """Clean up after each test scenario."""
    context.tmp.cleanup()
    logger.info(f"Completed scenario: {scenario.name}")
