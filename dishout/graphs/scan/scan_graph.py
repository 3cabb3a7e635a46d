import time

from langgraph.graph import StateGraph, END

from .state.scan_state import ScanState, ScanDependencies
from .nodes.normalize_node import normalize_upload
from .nodes.upload_node import dispatch_upload
from .nodes.location_node import locate_user
from .nodes.identify_node import identify_dish
from .utils.timing import print_pipeline_summary


def route_after_normalize(state: ScanState) -> str:
    """Stop before any network call when the image could not be processed."""
    return END if state.get("error") else "upload"


def build_scan_graph():
    """
    Build the scan graph with four nodes:
    1. normalize - Re-encodes the upload as a JPEG data URI
    2. upload - Starts the fire-and-forget image upload
    3. locate - Best-effort position lookup
    4. identify - Gemini dish identification with maps grounding

    Returns:
        Compiled LangGraph workflow
    """
    # Create the state graph
    workflow = StateGraph(ScanState)

    # Add nodes
    workflow.add_node("normalize", normalize_upload)
    workflow.add_node("upload", dispatch_upload)
    workflow.add_node("locate", locate_user)
    workflow.add_node("identify", identify_dish)

    # Define the workflow
    workflow.set_entry_point("normalize")
    workflow.add_conditional_edges("normalize", route_after_normalize, {"upload": "upload", END: END})
    workflow.add_edge("upload", "locate")
    workflow.add_edge("locate", "identify")
    workflow.add_edge("identify", END)

    return workflow.compile()


def run_scan_pipeline(image_bytes: bytes, deps: ScanDependencies) -> ScanState:
    """
    Run the complete scan workflow.

    Args:
        image_bytes: Raw bytes of the uploaded photo
        deps: Analysis client, location provider and upload hook

    Returns:
        Final state; ``result`` is set on success, ``error``/``error_stage`` otherwise
    """
    # Initialize state
    initial_state: ScanState = {
        "image_bytes": image_bytes,
        "deps": deps,

        "image_data_uri": None,
        "location": None,
        "result": None,

        # Performance tracking
        "timings": {},
        "total_ms": None,

        # Debug and error handling
        "debug": {},
        "error": None,
        "error_stage": None,
    }

    # Execute the workflow
    t0_total = time.perf_counter()
    graph = build_scan_graph()
    result = graph.invoke(initial_state)
    result["total_ms"] = round((time.perf_counter() - t0_total) * 1000.0, 2)

    # Print final summary
    print_pipeline_summary(result["timings"], result["total_ms"])

    return result
