import pytest

from dishout.models.analysis import LocationData
from dishout.services.dish_analysis.ai_service import DishAnalysisClient
from dishout.services.ordering.order_relay import OrderRelay
from dishout.services.scan_session import ScanSession
from dishout.services.shared.location_provider import LocationProvider

from .fakes import (
    SCENARIO_A_TEXT, FakeGenaiClient, FakeImageStore, FakeLeadStore, InlineRunner,
    fake_response, image_bytes,
)


@pytest.fixture
def png_bytes():
    return image_bytes()


@pytest.fixture
def scenario_a_client():
    return FakeGenaiClient(fake_response(SCENARIO_A_TEXT, [("Noodle House", "https://maps.google.com/?cid=1")]))


@pytest.fixture
def runner():
    return InlineRunner()


@pytest.fixture
def lead_store():
    return FakeLeadStore()


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
def opened():
    return []


@pytest.fixture
def make_session(runner, lead_store, image_store, opened):
    def _make(genai_client, lookup=None, timeout=10.0, store=image_store):
        relay = OrderRelay(runner, lead_store, opener=opened.append)
        return ScanSession(
            analysis_client=DishAnalysisClient(genai_client),
            location_provider=LocationProvider(lookup, timeout=timeout),
            relay=relay,
            runner=runner,
            image_store=store,
        )
    return _make


@pytest.fixture
def dubai():
    return LocationData(latitude=25.2048, longitude=55.2708)
