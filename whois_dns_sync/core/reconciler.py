"""
DNS Reconciler - drives provider state toward a registry record

This module decides which provider calls a (operation, record) pair needs,
based on the delegation that currently exists. The desired end state is
authoritative, so re-running the same request converges instead of failing.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..exceptions import DNSSyncError, ProviderConflictError
from .models import DomainRecord, Operation

logger = logging.getLogger(__name__)


class AddPolicy(str, Enum):
    """How ``add`` treats an existing delegation."""

    STRICT = "strict"
    UPSERT = "upsert"


class ReconcileState(str, Enum):
    PENDING = "pending"
    RESOLVING = "resolving"
    APPLYING = "applying"
    DONE = "done"
    FAILED = "failed"


class ReconcileAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    UNCHANGED = "unchanged"
    ALREADY_ABSENT = "already-absent"


ACTION_MESSAGES = {
    ReconcileAction.CREATED: "DNS records created for {domain}",
    ReconcileAction.UPDATED: "DNS records updated for {domain}",
    ReconcileAction.DELETED: "DNS records deleted for {domain}",
    ReconcileAction.UNCHANGED: "DNS records for {domain} are already up to date",
    ReconcileAction.ALREADY_ABSENT: "No DNS records found for {domain}, nothing to delete",
}


@dataclass
class ReconcileOutcome:
    """What the reconciler did for one record."""

    domain: str
    operation: Operation
    state: ReconcileState = ReconcileState.PENDING
    action: Optional[ReconcileAction] = None
    previous_nameservers: Optional[List[str]] = None
    transitions: List[ReconcileState] = field(
        default_factory=lambda: [ReconcileState.PENDING]
    )

    def move_to(self, state: ReconcileState):
        logger.debug(f"{self.domain}: {self.state.value} -> {state.value}")
        self.state = state
        self.transitions.append(state)

    @property
    def message(self) -> str:
        if self.action is None:
            return ""
        return ACTION_MESSAGES[self.action].format(domain=self.domain)


class Reconciler:
    """Computes and issues the minimal provider calls for a record."""

    def __init__(self, dns_client, add_policy: AddPolicy = AddPolicy.STRICT):
        """Initialize reconciler with a DNS client."""
        self.dns_client = dns_client
        self.add_policy = AddPolicy(add_policy)

    def reconcile(self, operation: Operation, record: DomainRecord) -> ReconcileOutcome:
        """
        Bring the provider in line with the record.

        Args:
            operation: Classified operation of the change
            record: Validated registry record

        Returns:
            ReconcileOutcome in state DONE

        Raises:
            DNSSyncError: Any provider error; the outcome is marked FAILED first
        """
        outcome = ReconcileOutcome(domain=record.domain, operation=operation)
        try:
            outcome.move_to(ReconcileState.RESOLVING)
            existing = self.dns_client.get_nameservers(record.domain)
            outcome.previous_nameservers = existing
            logger.info(f"Current nameservers for {record.domain}: {existing or 'none'}")

            outcome.move_to(ReconcileState.APPLYING)
            outcome.action = self._apply(operation, record, existing)
        except DNSSyncError:
            outcome.move_to(ReconcileState.FAILED)
            raise

        outcome.move_to(ReconcileState.DONE)
        logger.info(outcome.message)
        return outcome

    def _apply(
        self, operation: Operation, record: DomainRecord, existing: Optional[List[str]]
    ) -> ReconcileAction:
        if operation is Operation.DELETE:
            return self._delete(record, existing)

        if operation is Operation.ADD and existing is not None:
            if self.add_policy is AddPolicy.STRICT:
                raise ProviderConflictError(
                    f"DNS records for {record.domain} already exist "
                    f"({', '.join(existing)}); use an update to change them"
                )

        return self._upsert(record, existing)

    def _upsert(
        self, record: DomainRecord, existing: Optional[List[str]]
    ) -> ReconcileAction:
        nameservers = list(record.nameservers)
        if existing is None:
            self.dns_client.create_nameservers(record.domain, nameservers)
            return ReconcileAction.CREATED

        if record.same_nameservers(existing):
            return ReconcileAction.UNCHANGED

        self.dns_client.update_nameservers(record.domain, nameservers)
        return ReconcileAction.UPDATED

    def _delete(
        self, record: DomainRecord, existing: Optional[List[str]]
    ) -> ReconcileAction:
        if existing is None:
            return ReconcileAction.ALREADY_ABSENT

        self.dns_client.delete_nameservers(record.domain)
        return ReconcileAction.DELETED
