import base64
from types import SimpleNamespace

import pytest

from dishout.errors import AnalysisFailedError
from dishout.services.dish_analysis.ai_service import DishAnalysisClient
from dishout.services.dish_analysis.response_parser import DESCRIPTION_FALLBACK, NO_TEXT_FALLBACK
from .fakes import SCENARIO_A_TEXT, FakeGenaiClient, fake_response

IMAGE_B64 = base64.b64encode(b"\xff\xd8\xff\xe0fake-jpeg").decode()


def identify(client, location=None):
    return DishAnalysisClient(client).identify_dish_and_find_places(IMAGE_B64, "image/jpeg", location)


def test_scenario_a_phone_attached(scenario_a_client):
    result = identify(scenario_a_client)

    assert result.dish_name == "Spicy Tonkotsu Ramen"
    assert result.description == "Rich pork broth with noodles. Noodle House Phone: +971501234567"
    assert result.raw_text == SCENARIO_A_TEXT
    assert len(result.grounding_chunks) == 1
    assert result.grounding_chunks[0].title == "Noodle House"
    assert result.grounding_chunks[0].phone_number == "+971501234567"
    assert result.grounding_chunks[0].maps.uri == "https://maps.google.com/?cid=1"


def test_scenario_b_empty_text():
    result = identify(FakeGenaiClient(fake_response("")))

    assert result.dish_name == NO_TEXT_FALLBACK
    assert result.description == DESCRIPTION_FALLBACK
    assert result.raw_text == NO_TEXT_FALLBACK
    assert result.grounding_chunks == ()


def test_scenario_c_title_not_in_text():
    client = FakeGenaiClient(fake_response("Shakshuka\nEggs in tomato sauce.", [("Cafe X", "https://maps/x")]))
    result = identify(client)

    chunk = result.grounding_chunks[0]
    assert chunk.phone_number is None
    assert chunk.to_dict() == {"maps": {"uri": "https://maps/x", "title": "Cafe X"}}


def test_missing_candidates_and_none_text():
    result = identify(FakeGenaiClient(SimpleNamespace(text=None, candidates=None)))
    assert result.dish_name == NO_TEXT_FALLBACK
    assert result.grounding_chunks == ()


def test_chunks_keep_received_order():
    text = "Hummus\nCreamy.\nB Spot Phone: +971 4 222 3333\nA Spot Phone: +971 4 111 2222"
    client = FakeGenaiClient(fake_response(text, [("A Spot", "a"), ("Missing", "m"), ("B Spot", "b")]))
    result = identify(client)
    assert [c.title for c in result.grounding_chunks] == ["A Spot", "Missing", "B Spot"]
    assert [c.phone_number for c in result.grounding_chunks] == ["+971 4 111 2222", None, "+971 4 222 3333"]


def test_request_has_image_prompt_and_maps_tool(scenario_a_client, dubai):
    identify(scenario_a_client, dubai)

    call = scenario_a_client.models.calls[0]
    assert call["model"] == "gemini-2.5-flash"
    parts = call["contents"][0].parts
    assert parts[0].inline_data.mime_type == "image/jpeg"
    assert parts[0].inline_data.data == base64.b64decode(IMAGE_B64)
    assert "Phone: [number]" in parts[1].text

    config = call["config"]
    assert config.tools[0].google_maps is not None
    lat_lng = config.tool_config.retrieval_config.lat_lng
    assert (lat_lng.latitude, lat_lng.longitude) == (dubai.latitude, dubai.longitude)


def test_no_location_means_no_retrieval_bias(scenario_a_client):
    identify(scenario_a_client)
    assert scenario_a_client.models.calls[0]["config"].tool_config is None


def test_transport_error_becomes_analysis_failed():
    client = FakeGenaiClient(error=ConnectionError("network down"))
    with pytest.raises(AnalysisFailedError, match="API key") as exc:
        identify(client)
    assert isinstance(exc.value.__cause__, ConnectionError)


def test_unconfigured_client_always_fails():
    analysis = DishAnalysisClient(None)
    assert not analysis.configured
    with pytest.raises(AnalysisFailedError):
        analysis.identify_dish_and_find_places(IMAGE_B64, "image/jpeg")
