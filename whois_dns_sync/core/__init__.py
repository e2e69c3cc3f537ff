"""
Core sync functionality.

This package contains the data model, the change classifier, the reconciler
and the engine that runs them for one registry change.
"""

from .models import ChangeRequest, DomainRecord, Operation, SyncResult, TriggerContext
from .classifier import classify_operation
from .reconciler import AddPolicy, Reconciler
from .reporter import ResultReporter, read_result
from .sync_engine import DNSSyncEngine

__all__ = [
    "AddPolicy",
    "ChangeRequest",
    "DNSSyncEngine",
    "DomainRecord",
    "Operation",
    "Reconciler",
    "ResultReporter",
    "SyncResult",
    "TriggerContext",
    "classify_operation",
    "read_result",
]
