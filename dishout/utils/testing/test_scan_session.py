import threading
from urllib.parse import parse_qs, urlsplit

import pytest

from dishout.errors import AnalysisFailedError, InvalidTransition, OrderRefused
from dishout.models.analysis import LocationData
from dishout.models.scan import AppState
from dishout.services import scan_session as scan_session_module
from dishout.services.scan_session import NO_CONTACT_NOTICE, UNEXPECTED_ERROR, ScanSessionRegistry
from .fakes import FakeGenaiClient, FakeImageStore, fake_response, image_bytes

TWO_PLACES = (
    "Chicken Shawarma\nGarlicky and smoky.\n"
    "Al Mallah Phone: +971 4 398 4723\n"
    "Operation Falafel has great wraps too."
)


def two_place_client():
    return FakeGenaiClient(fake_response(TWO_PLACES, [("Al Mallah", "m1"), ("Operation Falafel", "m2")]))


def order_text(url):
    return parse_qs(urlsplit(url).query)["text"][0]


def test_capture_requires_sign_in(make_session, scenario_a_client):
    session = make_session(scenario_a_client)
    assert session.capture(None) is False
    assert session.state == AppState.IDLE

    assert session.capture("sam@example.com") is True
    assert session.state == AppState.CAPTURING
    session.cancel_capture()
    assert session.state == AppState.IDLE


def test_successful_scan_with_location(make_session, scenario_a_client, png_bytes, dubai, image_store):
    session = make_session(scenario_a_client, lookup=lambda: dubai)
    session.capture("sam@example.com")

    assert session.select_file(png_bytes) == AppState.RESULTS
    assert session.analysis_result.dish_name == "Spicy Tonkotsu Ramen"
    assert session.error_msg is None
    assert session.location == dubai
    assert session.image_preview.startswith("data:image/jpeg;base64,")
    assert image_store.uploads == [session.image_preview]
    assert session.uploaded_image_url == image_store.url

    config = scenario_a_client.models.calls[0]["config"]
    assert config.tool_config.retrieval_config.lat_lng.latitude == dubai.latitude


def test_undecodable_file_never_reaches_network(make_session, scenario_a_client, image_store):
    session = make_session(scenario_a_client, lookup=lambda: LocationData(1.0, 1.0))

    assert session.select_file(b"not an image at all") == AppState.ERROR
    assert session.error_msg == "Unable to process image."
    assert session.analysis_result is None
    assert scenario_a_client.models.calls == []
    assert image_store.uploads == []


def test_analysis_failure_goes_to_error(make_session, png_bytes):
    session = make_session(FakeGenaiClient(error=RuntimeError("401 API key not valid")))

    assert session.select_file(png_bytes) == AppState.ERROR
    assert session.error_msg == AnalysisFailedError.DEFAULT_MESSAGE
    assert session.analysis_result is None


def test_location_timeout_still_produces_results(make_session, scenario_a_client, png_bytes):
    release = threading.Event()

    def never_answers():
        release.wait(2)
        return LocationData(0.0, 0.0)

    session = make_session(scenario_a_client, lookup=never_answers, timeout=0.05)
    try:
        assert session.select_file(png_bytes) == AppState.RESULTS
    finally:
        release.set()
    assert session.location is None
    assert scenario_a_client.models.calls[0]["config"].tool_config is None


def test_no_location_capability(make_session, scenario_a_client, png_bytes):
    session = make_session(scenario_a_client, lookup=None)
    assert session.select_file(png_bytes) == AppState.RESULTS
    assert session.location is None


def test_selection_ignored_while_analyzing(make_session, scenario_a_client, png_bytes):
    session = make_session(scenario_a_client)
    token = session.begin_scan()
    assert session.state == AppState.ANALYZING

    assert session.select_file(png_bytes) is None
    assert session.begin_scan() is None
    assert scenario_a_client.models.calls == []

    assert session.run_scan(token, png_bytes) == AppState.RESULTS


def test_stale_scan_is_discarded_after_reset(make_session, scenario_a_client, png_bytes, image_store):
    session = make_session(scenario_a_client)
    token = session.begin_scan()
    session.reset()

    assert session.run_scan(token, png_bytes) == AppState.IDLE
    assert session.analysis_result is None
    assert session.image_preview is None
    assert image_store.uploads == []


def test_late_upload_of_previous_scan_is_dropped(make_session, scenario_a_client, png_bytes, runner):
    session = make_session(scenario_a_client)
    token = session.begin_scan()
    stale_generation = session._upload_generation
    session.reset()

    assert not session._uploaded_image_url.offer(stale_generation, "https://cdn/old.jpg")
    assert session.uploaded_image_url is None
    session.run_scan(token, png_bytes)
    assert session.uploaded_image_url is None


def test_results_and_error_require_reset(make_session, scenario_a_client, png_bytes):
    session = make_session(scenario_a_client)
    session.select_file(png_bytes)
    assert session.state == AppState.RESULTS

    with pytest.raises(InvalidTransition):
        session.capture("sam@example.com")
    with pytest.raises(InvalidTransition):
        session.begin_scan()

    session.reset()
    assert session.state == AppState.IDLE
    assert session.analysis_result is None
    assert session.uploaded_image_url is None


def test_state_invariants_hold_across_flow(make_session, png_bytes):
    session = make_session(two_place_client())

    def check():
        assert (session.analysis_result is not None) == (session.state == AppState.RESULTS)
        assert (session.error_msg is not None) == (session.state == AppState.ERROR)

    check()
    session.capture("sam@example.com")
    check()
    session.select_file(png_bytes)
    check()
    session.reset()
    check()
    session.select_file(b"junk")
    check()
    session.reset()
    check()


def test_order_with_uploaded_image(make_session, png_bytes, lead_store, opened, image_store):
    session = make_session(two_place_client())
    session.select_file(png_bytes)

    order = session.request_order(0)
    assert order.title == "Al Mallah"
    assert order.phone == "+971 4 398 4723"
    assert session.pending_order == order

    url = session.choose_provider("Talabat", user_email="sam@example.com")

    assert opened == [url]
    assert url.startswith("https://wa.me/97143984723?text=")
    assert order_text(url) == (
        "Hello, I found Al Mallah on DishOut. I'd like to order Chicken Shawarma via Talabat. "
        f"Dish Reference: {image_store.url}"
    )
    assert session.pending_order is None
    lead = lead_store.leads[0]
    assert lead.restaurant_phone == "97143984723"
    assert lead.user_email == "sam@example.com"
    assert lead.dish_image_url == image_store.url


def test_order_without_finished_upload_has_no_reference(make_session, png_bytes, opened):
    session = make_session(two_place_client(), store=FakeImageStore(error=RuntimeError("s3 down")))
    session.select_file(png_bytes)
    assert session.state == AppState.RESULTS
    assert session.uploaded_image_url is None

    session.request_order(0)
    url = session.choose_provider("Careem")
    assert "Dish Reference" not in order_text(url)


def test_order_refused_without_phone(make_session, png_bytes, lead_store, opened):
    session = make_session(two_place_client())
    session.select_file(png_bytes)

    with pytest.raises(OrderRefused, match=NO_CONTACT_NOTICE):
        session.request_order(1)
    assert session.pending_order is None
    assert lead_store.leads == []
    assert opened == []


def test_order_needs_results_and_valid_index(make_session, scenario_a_client, png_bytes):
    session = make_session(scenario_a_client)
    with pytest.raises(InvalidTransition):
        session.request_order(0)
    with pytest.raises(InvalidTransition):
        session.choose_provider("Talabat")

    session.select_file(png_bytes)
    with pytest.raises(InvalidTransition):
        session.request_order(5)


def test_dismiss_order(make_session, scenario_a_client, png_bytes, lead_store, opened):
    session = make_session(scenario_a_client)
    session.select_file(png_bytes)
    session.request_order(0)

    session.dismiss_order()
    assert session.pending_order is None
    assert session.state == AppState.RESULTS
    assert lead_store.leads == []
    assert opened == []


def test_snapshot(make_session, scenario_a_client, png_bytes, dubai):
    session = make_session(scenario_a_client, lookup=lambda: dubai)
    session.select_file(png_bytes)
    snap = session.snapshot()

    assert snap["state"] == "RESULTS"
    assert snap["analysis_result"]["grounding_chunks"][0]["maps"]["phone_number"] == "+971501234567"
    assert snap["location"] == dubai.to_dict()
    assert snap["pending_order"] is None


def test_registry_reuses_sessions(make_session, scenario_a_client):
    registry = ScanSessionRegistry(lambda: make_session(scenario_a_client))
    first = registry.get_or_create(None)
    assert registry.get_or_create(first.session_id) is first
    assert registry.get_or_create("unknown") is not first
    registry.drop(first.session_id)
    assert registry.get_or_create(first.session_id) is not first


def test_unencodable_image_ends_in_error_not_analyzing(make_session, scenario_a_client):
    session = make_session(scenario_a_client)

    assert session.select_file(image_bytes(size=(70000, 1))) == AppState.ERROR
    assert session.error_msg == "Unable to process image."
    assert scenario_a_client.models.calls == []

    session.reset()
    assert session.begin_scan() is not None


def test_pipeline_crash_moves_to_error(make_session, scenario_a_client, png_bytes, monkeypatch):
    def crash(image_bytes, deps):
        raise KeyError("timings")

    monkeypatch.setattr(scan_session_module, "run_scan_pipeline", crash)
    session = make_session(scenario_a_client)

    assert session.select_file(png_bytes) == AppState.ERROR
    assert session.error_msg.startswith(UNEXPECTED_ERROR)
    assert session.analysis_result is None

    session.reset()
    assert session.begin_scan() is not None


def test_registry_evicts_idle_sessions(make_session, scenario_a_client):
    now = [0.0]
    registry = ScanSessionRegistry(lambda: make_session(scenario_a_client), ttl_seconds=60, clock=lambda: now[0])
    first = registry.get_or_create(None)

    now[0] = 59.0
    assert registry.get_or_create(first.session_id) is first

    now[0] = 59.0 + 61.0
    assert registry.get_or_create(first.session_id) is not first
    assert len(registry) == 1


def test_registry_drops_least_recently_used(make_session, scenario_a_client):
    registry = ScanSessionRegistry(lambda: make_session(scenario_a_client), max_sessions=2)
    a = registry.get_or_create(None)
    b = registry.get_or_create(None)
    assert registry.get_or_create(a.session_id) is a

    registry.get_or_create(None)
    assert len(registry) == 2
    assert registry.get_or_create(a.session_id) is a
    assert registry.get_or_create(b.session_id) is not b
