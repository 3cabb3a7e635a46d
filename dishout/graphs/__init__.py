"""
Graphs Module

LangGraph workflows used by the application. Each graph lives in its own
subdirectory.
"""

from .scan import run_scan_pipeline, build_scan_graph, ScanState, ScanDependencies

__all__ = [
    "run_scan_pipeline",
    "build_scan_graph",
    "ScanState",
    "ScanDependencies",
]
