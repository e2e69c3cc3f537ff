"""
DNS Sync Engine - runs one registry change through the sync pipeline

Reader -> Classifier -> Recoverer (deletes only) -> Validator -> Reconciler
-> Reporter. Exactly one SyncResult is produced and written per invocation,
whatever stage fails.
"""

import json
import logging
from typing import Dict, Optional

from rich.console import Console

from ..exceptions import DNSSyncError, InputError
from ..parsers.patch import recover_deleted_content
from ..parsers.registry import RegistryReader, select_registry_files
from ..providers.dns_client import DNSClient
from ..utils.validators import validate_domain_record
from .classifier import classify_operation
from .models import (
    ChangeRequest,
    ChangeSource,
    DomainRecord,
    FileStatus,
    Operation,
    SyncResult,
    TriggerContext,
)
from .reconciler import AddPolicy, Reconciler
from .reporter import DEFAULT_RESULT_FILE, ResultReporter

console = Console()
logger = logging.getLogger(__name__)


class DNSSyncEngine:
    """Orchestrates a single sync invocation."""

    def __init__(
        self,
        config: Dict,
        dns_client: Optional[DNSClient] = None,
        reader: Optional[RegistryReader] = None,
        reporter: Optional[ResultReporter] = None,
    ):
        """Initialize the engine from configuration."""
        self.config = config
        sync_config = config.get("sync", {}) or {}
        self._dns_client = dns_client
        self.reader = reader or RegistryReader.from_config(config)
        self.reporter = reporter or ResultReporter(
            sync_config.get("result_file", DEFAULT_RESULT_FILE), console=console
        )
        policy = sync_config.get("add_policy") or AddPolicy.STRICT.value
        try:
            self.add_policy = AddPolicy(policy)
        except ValueError:
            choices = ", ".join(p.value for p in AddPolicy)
            raise InputError(f"Unknown add policy '{policy}' (expected one of: {choices})")
        self.registry_directory = self.reader.directory

    @property
    def dns_client(self) -> DNSClient:
        # Created lazily so input errors are reported without provider credentials.
        if self._dns_client is None:
            self._dns_client = DNSClient(self.config)
        return self._dns_client

    @property
    def zone(self) -> Optional[str]:
        provider_name = self.config.get("default_provider", "powerdns_admin")
        provider_config = self.config.get("dns_providers", {}).get(provider_name, {}) or {}
        return provider_config.get("zone") or None

    def run(self, context: TriggerContext) -> SyncResult:
        """
        Run the pipeline for one trigger and write the result artifact.

        Args:
            context: Trigger metadata captured at the boundary

        Returns:
            The SyncResult that was written
        """
        console.print(
            f"[blue]{context.summary} ({context.source.value})[/blue]"
        )
        operation = None
        domain = context.domain

        try:
            request = self.build_request(context)
            operation = request.operation
            record = self.validate(request)
            domain = record.domain
            result = self.sync(request, record)
        except DNSSyncError as e:
            result = self._failure(e, context, operation, domain)
        except Exception as e:
            logger.exception(f"Unexpected error during DNS sync: {e}")
            result = SyncResult.failed(f"Unexpected error: {e}", operation, domain)

        self.reporter.write(result)
        self.reporter.render(result)
        return result

    def _failure(
        self,
        error: DNSSyncError,
        context: TriggerContext,
        operation: Optional[Operation],
        domain: Optional[str],
    ) -> SyncResult:
        if error.force_sync_downgradable and context.allows_force_sync:
            logger.warning(f"Force sync enabled, skipping after error: {error}")
            console.print(f"[yellow]Skipped (force sync): {error}[/yellow]")
            return SyncResult.failed(str(error), operation, domain, skipped=True)

        logger.error(f"DNS sync failed: {error}")
        console.print(f"[red]DNS sync failed: {error}[/red]")
        return SyncResult.failed(str(error), operation, domain)

    def build_request(self, context: TriggerContext) -> ChangeRequest:
        """Resolve the registry file, classify the change and load its content."""
        if context.source is ChangeSource.MANUAL:
            return self._build_manual_request(context)
        return self._build_reviewed_request(context)

    def _build_reviewed_request(self, context: TriggerContext) -> ChangeRequest:
        files = select_registry_files(context.files, self.registry_directory)
        if not files:
            raise InputError("No WHOIS file information found in change")
        if len(files) > 1:
            names = ", ".join(f.filename for f in files)
            raise InputError(f"Expected exactly one WHOIS file per change, got: {names}")

        changed = files[0]
        operation = classify_operation(context.title, context.operation)
        logger.info(f"File: {changed.filename}, Status: {changed.status.value}")

        if operation is Operation.DELETE:
            if changed.status is not FileStatus.REMOVED:
                raise InputError(
                    f"Expected file status 'removed' for delete operation, "
                    f"but got '{changed.status.value}'"
                )
            content = recover_deleted_content(changed.patch, changed.filename).encode("utf-8")
        else:
            if changed.status is FileStatus.REMOVED:
                raise InputError(
                    f"File {changed.filename} was removed but the change is "
                    f"classified as '{operation.value}'"
                )
            content = self.reader.read(changed.filename)

        self.reader.stage(changed.filename, content)
        return ChangeRequest(
            operation=operation,
            source=context.source,
            raw_content=content,
            force_sync=False,
            filename=changed.filename,
            triggered_by=context.triggered_by,
        )

    def _build_manual_request(self, context: TriggerContext) -> ChangeRequest:
        operation = classify_operation(context.title, context.operation)
        path = self.reader.resolve_manual(context.domain, context.whois_file)

        if self.reader.exists(path):
            content = self.reader.read(path)
        elif operation is Operation.DELETE and context.domain and not context.whois_file:
            logger.warning(
                f"No WHOIS file found for domain {context.domain}, deleting by name"
            )
            content = json.dumps({"domain": context.domain}).encode("utf-8")
        else:
            raise InputError(f"WHOIS file not found: {path}")

        self.reader.stage(path, content)
        return ChangeRequest(
            operation=operation,
            source=context.source,
            raw_content=content,
            force_sync=context.force_sync,
            filename=path,
            triggered_by=context.triggered_by,
        )

    def validate(self, request: ChangeRequest) -> DomainRecord:
        """Validate the request content against the record schema."""
        record = validate_domain_record(request.raw_content, request.operation, self.zone)
        if request.filename and not request.filename.endswith(f"/{record.domain}.json"):
            logger.warning(
                f"File name {request.filename} does not match domain {record.domain}"
            )
        return record

    def sync(self, request: ChangeRequest, record: DomainRecord) -> SyncResult:
        """Reconcile the provider with a validated record."""
        console.print(
            f"[green]Syncing {record.domain} ({request.operation.value})...[/green]"
        )
        reconciler = Reconciler(self.dns_client, self.add_policy)
        outcome = reconciler.reconcile(request.operation, record)
        console.print(f"[green]{outcome.message}[/green]")
        return SyncResult.succeeded(request.operation, record, outcome.message)
