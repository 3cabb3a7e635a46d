from .scan_state import ScanState, ScanDependencies

__all__ = ["ScanState", "ScanDependencies"]
