"""Reporting utilities for backpropnet."""

from .artifacts import write_manifest
from .metrics import ConsoleSink, CsvSink, JsonlSink
from .plots import PlotAdapter
from .summary import write_summary

__all__ = [
    "write_manifest",
    "write_summary",
    "ConsoleSink",
    "CsvSink",
    "JsonlSink",
    "PlotAdapter",
]
