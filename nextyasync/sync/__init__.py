"""Sync engine for nextya-sync - one-way reconciliation of remote trees."""

from .engine import SyncEngine, target_path_for
from .folders import ensure_path
from .reconciler import Reconciler, decode_entry_name, needs_sync
from .snapshot import build_snapshot
from .transfer import transfer_file

__all__ = [
    "SyncEngine",
    "Reconciler",
    "build_snapshot",
    "decode_entry_name",
    "ensure_path",
    "needs_sync",
    "target_path_for",
    "transfer_file",
]
