import logging

from ....errors import LocationUnavailable
from ..state.scan_state import ScanState
from ..utils.timing import node_timer

logger = logging.getLogger(__name__)


def locate_user(state: ScanState) -> ScanState:
    """
    Node that tries once to obtain the user's position.

    Failure is logged and the scan continues without a location.
    """
    with node_timer(state, "locate") as report:
        try:
            loc = state["deps"].location_provider.get_location()
            report["at"] = f"({loc.latitude:.4f},{loc.longitude:.4f})"
        except LocationUnavailable as e:
            logger.warning("Proceeding without location: %s", e)
            loc = None
            state["debug"]["location_error"] = str(e)
            report["ok"] = False
            report["at"] = "none"
        state["location"] = loc
    return state
