"""Reporting utilities for linear_networks."""

from .artifacts import write_manifest
from .metrics import CostHistory, CsvSink, JsonlSink
from .summary import write_summary

__all__ = ["write_manifest", "JsonlSink", "CsvSink", "CostHistory", "write_summary"]
