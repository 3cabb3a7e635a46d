import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator

PIPELINE_NODES = ("normalize", "upload", "locate", "identify")


@contextmanager
def node_timer(state: Dict[str, Any], node_name: str) -> Iterator[Dict[str, Any]]:
    """
    Time one graph node and print its one-line summary on exit.

    The node fills the yielded report: ``ok`` (defaults to True) plus any
    key=value details worth printing. Elapsed time lands in
    ``state["timings"]["<node>_ms"]`` even if the node raises.
    """
    report: Dict[str, Any] = {}
    t0 = time.perf_counter()
    try:
        yield report
    finally:
        elapsed_ms = round((time.perf_counter() - t0) * 1000.0, 2)
        state["timings"][f"{node_name}_ms"] = elapsed_ms
        status = "✅" if report.pop("ok", True) else "❌"
        details = " ".join(f"{k}={v}" for k, v in report.items())
        print(f"[{node_name}] {status} {details} took {elapsed_ms} ms")


def print_pipeline_summary(timings: Dict[str, float], total_ms: float) -> None:
    """Print the scan's total time with a per-node breakdown; skipped nodes show '-'."""
    per_node = ", ".join(f"{node} {timings.get(node + '_ms', '-')} ms" for node in PIPELINE_NODES)
    print(f"[pipeline] ⏱ total {total_ms} ms ({per_node})")
