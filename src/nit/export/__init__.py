"""Export subpackage: collect, render, serialize and deliver annotations."""
from __future__ import annotations

from nit.export.collector import ReportItem, collect_all, deleted_documents
from nit.export.delivery import (
    ClipboardSink,
    FileSink,
    PrimarySelectionSink,
    RegisterSink,
    StreamSink,
    build_sinks,
    deliver,
    sink_registry,
)
from nit.export.report import DELETED_MARKER, render_report
from nit.export.serializer import ReportSerializer

__all__ = [
    "ClipboardSink",
    "DELETED_MARKER",
    "FileSink",
    "PrimarySelectionSink",
    "RegisterSink",
    "ReportItem",
    "ReportSerializer",
    "StreamSink",
    "build_sinks",
    "collect_all",
    "deleted_documents",
    "deliver",
    "render_report",
    "sink_registry",
]
