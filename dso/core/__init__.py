"""Core processing module for DSO."""

from dso.core.dataset import build_items, export_items, load_file, load_records, write_export
from dso.core.engine import CancellationToken, EnginePhase, PipelineEngine
from dso.core.state import ItemStatus, ItemStore, WorkItem
from dso.core.stats import RunStatistics, compute_statistics

__all__ = [
    "CancellationToken",
    "EnginePhase",
    "ItemStatus",
    "ItemStore",
    "PipelineEngine",
    "RunStatistics",
    "WorkItem",
    "build_items",
    "compute_statistics",
    "export_items",
    "load_file",
    "load_records",
    "write_export",
]
