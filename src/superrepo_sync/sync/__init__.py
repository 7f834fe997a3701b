"""Sync module: decision table, per-repository sync, submodule walk and
reference reconciliation."""

from superrepo_sync.sync.decision import Action, decide
from superrepo_sync.sync.orchestrator import Orchestrator
from superrepo_sync.sync.reconciler import ReconcileResult, ReferenceReconciler
from superrepo_sync.sync.syncer import RepositorySyncer
from superrepo_sync.sync.walker import SubmoduleWalker

__all__ = [
    "Action",
    "decide",
    "Orchestrator",
    "ReconcileResult",
    "ReferenceReconciler",
    "RepositorySyncer",
    "SubmoduleWalker",
]
