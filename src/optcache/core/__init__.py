"""Reconciliation of option rows against the object cache."""

from .reconciler import Reconciler
from .types import CompareReport, DiagnosticRecord, DiagnosticReport, Note, OptionRow, ReconcilerConfig, Verdict

__all__ = [
    "CompareReport",
    "DiagnosticRecord",
    "DiagnosticReport",
    "Note",
    "OptionRow",
    "Reconciler",
    "ReconcilerConfig",
    "Verdict",
]
