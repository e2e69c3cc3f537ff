"""
Step definitions for WHOIS DNS Sync scenarios.
"""

import io
import json

from behave import given, then, when
from rich.console import Console

from whois_dns_sync.core.models import ChangedFile, ChangeSource, FileStatus, TriggerContext
from whois_dns_sync.core.reporter import ResultReporter
from whois_dns_sync.core.sync_engine import DNSSyncEngine
from whois_dns_sync.providers.dns_client import DNSClient


def build_engine(context) -> DNSSyncEngine:
    """Create an engine wired to the scenario's provider and registry."""
    client = DNSClient(
        context.sync_config,
        provider=context.provider,
        retry_policy=context.retry_policy,
        sleep=lambda seconds: None,
    )
    reporter = ResultReporter(context.result_file, console=Console(file=io.StringIO()))
    return DNSSyncEngine(context.sync_config, dns_client=client, reporter=reporter)


def _nameservers(text):
    return [ns.strip() for ns in text.split(",") if ns.strip()]


def _record(domain, nameservers):
    return {"domain": domain, "nameservers": _nameservers(nameservers)}


def _run(context, trigger):
    context.result = build_engine(context).run(trigger)
    context.results.append(context.result)


@given('the registry contains "{domain}" with nameservers "{nameservers}"')
def step_impl(context, domain, nameservers):
    """Write a registry file into the working tree."""
    path = context.root / "whois" / f"{domain}.json"
    path.write_text(json.dumps(_record(domain, nameservers), indent=2) + "\n")


@given('the registry contains a record for "{domain}" without nameservers')
def step_impl(context, domain):
    """Write a registry file that fails validation."""
    path = context.root / "whois" / f"{domain}.json"
    path.write_text(json.dumps({"domain": domain, "nameservers": []}) + "\n")


@given('the pull request changed "{filename}" with status "{status}"')
def step_impl(context, filename, status):
    """Add a changed file to the pull request."""
    context.files.append(ChangedFile(filename, FileStatus(status)))


@given('the pull request removed the record of "{domain}" with nameservers "{nameservers}"')
def step_impl(context, domain, nameservers):
    """Add a removed registry file whose content only exists in the patch."""
    lines = json.dumps(_record(domain, nameservers), indent=2).splitlines()
    patch = "\n".join([f"@@ -1,{len(lines)} +0,0 @@"] + [f"-{line}" for line in lines])
    context.files.append(ChangedFile(f"whois/{domain}.json", FileStatus.REMOVED, patch))


@given('the pull request removed "{filename}" without patch data')
def step_impl(context, filename):
    """Add a removed file whose patch was not provided."""
    context.files.append(ChangedFile(filename, FileStatus.REMOVED, None))


@given('the provider delegates "{domain}" to "{nameservers}"')
def step_impl(context, domain, nameservers):
    """Seed the provider."""
    context.provider.records[domain] = _nameservers(nameservers)


@given("the provider fails the next {count:d} calls")
def step_impl(context, count):
    """Inject transient provider failures."""
    context.provider.fail_next(count)


@when('the pull request "{title}" is synchronized')
def step_impl(context, title):
    """Run the sync for a merged pull request."""
    trigger = TriggerContext(
        source=ChangeSource.REVIEWED_CHANGE,
        title=title,
        files=tuple(context.files),
        triggered_by="contributor",
    )
    _run(context, trigger)


@when('the operator deletes "{domain}" manually')
def step_impl(context, domain):
    """Run a manual delete."""
    trigger = TriggerContext(
        source=ChangeSource.MANUAL, operation="delete", domain=domain, triggered_by="operator"
    )
    _run(context, trigger)


@when('the operator force syncs "{domain}"')
def step_impl(context, domain):
    """Run a manual sync with force sync enabled."""
    trigger = TriggerContext(
        source=ChangeSource.MANUAL, domain=domain, force_sync=True, triggered_by="operator"
    )
    _run(context, trigger)


@then("the sync result is successful")
def step_impl(context):
    """Check the last result."""
    assert context.result.success, context.result.error
    assert context.result.exit_code == 0


@then("every sync result is successful")
def step_impl(context):
    """Check all results of the scenario."""
    assert context.results
    assert all(result.success for result in context.results)


@then("the sync result failed with exit status {code:d}")
def step_impl(context, code):
    """Check a failed result and its exit status."""
    assert not context.result.success
    assert context.result.exit_code == code, context.result.exit_code
    artifact = json.loads(context.result_file.read_text())
    assert artifact["success"] is False
    assert artifact["error"]


@then('the provider delegates "{domain}" to "{nameservers}"')
def step_impl(context, domain, nameservers):
    """Check provider state."""
    assert context.provider.records.get(domain) == _nameservers(nameservers), (
        context.provider.records
    )


@then('the provider has no delegation for "{domain}"')
def step_impl(context, domain):
    """Check that the delegation is gone."""
    assert domain not in context.provider.records


@then("the provider was not called")
def step_impl(context):
    """Check that no provider call was made."""
    assert context.provider.calls == [], context.provider.calls


@then('the result artifact reports operation "{operation}" for "{domain}"')
def step_impl(context, operation, domain):
    """Check the result artifact."""
    artifact = json.loads(context.result_file.read_text())
    assert artifact["operation"] == operation
    assert artifact["domain"] == domain
    assert artifact["nameservers"]
