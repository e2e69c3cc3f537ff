"""
Data model shared by the sync pipeline.

A TriggerContext captures what the hosting mechanism told us, a ChangeRequest
is the unit of work built from it, a DomainRecord is the validated registry
entry and a SyncResult is the one artifact every invocation produces.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Operation(str, Enum):
    """Kind of change a registry update represents."""

    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    AUTO = "auto"


class ChangeSource(str, Enum):
    """What triggered the invocation."""

    REVIEWED_CHANGE = "reviewed-change"
    MANUAL = "manual"


class FileStatus(str, Enum):
    """Status of a file in the change metadata."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    RENAMED = "renamed"


@dataclass(frozen=True)
class ChangedFile:
    """One file entry of the change-review file list."""

    filename: str
    status: FileStatus
    patch: Optional[str] = None


@dataclass(frozen=True)
class TriggerContext:
    """Snapshot of the trigger metadata, taken once at the CLI boundary."""

    source: ChangeSource
    title: str = ""
    operation: Optional[str] = None
    files: Tuple[ChangedFile, ...] = ()
    domain: Optional[str] = None
    whois_file: Optional[str] = None
    force_sync: bool = False
    triggered_by: str = "unknown"

    @property
    def allows_force_sync(self) -> bool:
        return self.force_sync and self.source is ChangeSource.MANUAL

    @property
    def summary(self) -> str:
        """Human-readable label; never used to classify the change."""
        if self.title:
            return self.title
        if self.source is ChangeSource.MANUAL:
            return f"Manual DNS Sync - {self.triggered_by}"
        return f"Change by {self.triggered_by}"


@dataclass(frozen=True)
class ChangeRequest:
    """Unit of work handed to the validator and reconciler."""

    operation: Operation
    source: ChangeSource
    raw_content: bytes
    force_sync: bool = False
    filename: Optional[str] = None
    triggered_by: str = "unknown"

    def __post_init__(self):
        # Force sync is an operator override and never applies to reviewed changes.
        if self.source is not ChangeSource.MANUAL and self.force_sync:
            object.__setattr__(self, "force_sync", False)


@dataclass(frozen=True)
class DomainRecord:
    """A registry entry: typed core plus opaque passthrough fields."""

    domain: str
    nameservers: Tuple[str, ...] = ()
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DomainRecord":
        extra = {k: v for k, v in data.items() if k not in ("domain", "nameservers")}
        nameservers = data.get("nameservers") or ()
        return cls(
            domain=data["domain"],
            nameservers=tuple(nameservers),
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"domain": self.domain}
        if self.nameservers:
            data["nameservers"] = list(self.nameservers)
        data.update(self.extra)
        return data

    def same_nameservers(self, nameservers: Optional[List[str]]) -> bool:
        """Compare nameserver sets, ignoring order, case and trailing dots."""
        if nameservers is None:
            return False
        return _normalize_set(self.nameservers) == _normalize_set(nameservers)


def _normalize_set(nameservers) -> frozenset:
    return frozenset(ns.strip().rstrip(".").lower() for ns in nameservers)


def utc_timestamp() -> str:
    """Return the current instant as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one invocation, written to the result artifact."""

    success: bool
    operation: Optional[str] = None
    domain: Optional[str] = None
    nameservers: Optional[Tuple[str, ...]] = None
    message: Optional[str] = None
    error: Optional[str] = None
    timestamp: str = field(default_factory=utc_timestamp)
    skipped: bool = False

    @classmethod
    def succeeded(
        cls,
        operation: Operation,
        record: DomainRecord,
        message: str,
    ) -> "SyncResult":
        nameservers = None
        if operation is not Operation.DELETE and record.nameservers:
            nameservers = tuple(record.nameservers)
        return cls(
            success=True,
            operation=operation.value,
            domain=record.domain,
            nameservers=nameservers,
            message=message,
        )

    @classmethod
    def failed(
        cls,
        error: str,
        operation: Optional[Operation] = None,
        domain: Optional[str] = None,
        skipped: bool = False,
    ) -> "SyncResult":
        return cls(
            success=False,
            operation=operation.value if operation else None,
            domain=domain,
            error=error,
            skipped=skipped,
        )

    @property
    def exit_code(self) -> int:
        """Process exit status: only fatal failures are non-zero."""
        return 0 if self.success or self.skipped else 1

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success}
        if self.operation:
            data["operation"] = self.operation
        if self.domain:
            data["domain"] = self.domain
        if self.success:
            if self.nameservers:
                data["nameservers"] = list(self.nameservers)
            data["message"] = self.message or ""
        else:
            data["error"] = self.error or "Unknown error"
        data["timestamp"] = self.timestamp
        return data
