"""
Scan Graph Module

This module provides a LangGraph-based workflow for one dish scan.
The workflow consists of four stages:
1. Image normalization
2. Background upload dispatch
3. Best-effort location lookup
4. Dish identification and restaurant lookup
"""

from .scan_graph import run_scan_pipeline, build_scan_graph
from .state.scan_state import ScanState, ScanDependencies

__all__ = [
    "run_scan_pipeline",
    "build_scan_graph",
    "ScanState",
    "ScanDependencies",
]
