from ....errors import ProcessingError
from ....services.shared.image_normalizer import normalize_image
from ..state.scan_state import ScanState
from ..utils.timing import node_timer


def normalize_upload(state: ScanState) -> ScanState:
    """
    Node that re-encodes the uploaded file as a JPEG data URI.

    Args:
        state: Current graph state containing the raw upload bytes

    Returns:
        Updated state with ``image_data_uri`` or a normalize-stage error
    """
    with node_timer(state, "normalize") as report:
        report["bytes_in"] = len(state["image_bytes"] or b"")
        try:
            state["image_data_uri"] = normalize_image(state["image_bytes"], state["deps"].jpeg_quality)
            report["uri_chars"] = len(state["image_data_uri"])
        except ProcessingError as e:
            state["error"] = "Unable to process image."
            state["error_stage"] = "normalize"
            state["debug"]["normalize_error"] = str(e)
            report["ok"] = False
            report["reason"] = e
    return state
