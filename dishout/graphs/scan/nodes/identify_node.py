from ....errors import AnalysisFailedError
from ....services.shared.image_normalizer import split_data_uri
from ..state.scan_state import ScanState
from ..utils.timing import node_timer


def identify_dish(state: ScanState) -> ScanState:
    """
    Node that identifies the dish and nearby restaurants with Gemini.

    Args:
        state: Current graph state containing the normalized image and optional location

    Returns:
        Updated state with the analysis result or an identify-stage error
    """
    mime_type, payload = split_data_uri(state["image_data_uri"])
    with node_timer(state, "identify") as report:
        try:
            result = state["deps"].analysis_client.identify_dish_and_find_places(
                payload, mime_type, state["location"]
            )
        except AnalysisFailedError as e:
            state["error"] = str(e)
            state["error_stage"] = "identify"
            report["ok"] = False
            return state

        state["result"] = result
        report["dish"] = f"'{result.dish_name}'"
        report["places"] = len(result.grounding_chunks)
        report["with_phone"] = sum(1 for c in result.grounding_chunks if c.phone_number)
    return state
