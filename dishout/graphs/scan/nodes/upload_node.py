import logging

from ..state.scan_state import ScanState
from ..utils.timing import node_timer

logger = logging.getLogger(__name__)


def dispatch_upload(state: ScanState) -> ScanState:
    """
    Node that hands the normalized image to the background uploader.

    The upload is never awaited and its failure never fails the scan.
    """
    start_upload = state["deps"].start_upload
    with node_timer(state, "upload") as report:
        report["dispatched"] = False
        if start_upload is not None:
            try:
                start_upload(state["image_data_uri"])
                report["dispatched"] = True
            except Exception:
                logger.exception("Could not start background image upload")
    return state
