import pytest

from dishout.graphs.scan import ScanDependencies, run_scan_pipeline
from dishout.graphs.scan.utils.timing import node_timer
from dishout.services.dish_analysis.ai_service import DishAnalysisClient
from dishout.services.shared.location_provider import LocationProvider
from .fakes import FakeGenaiClient


def deps(genai_client, lookup=None, uploads=None):
    return ScanDependencies(
        analysis_client=DishAnalysisClient(genai_client),
        location_provider=LocationProvider(lookup),
        start_upload=uploads.append if uploads is not None else None,
    )


def test_pipeline_success(scenario_a_client, png_bytes, dubai):
    uploads = []
    final = run_scan_pipeline(png_bytes, deps(scenario_a_client, lambda: dubai, uploads))

    assert final["error"] is None
    assert final["result"].dish_name == "Spicy Tonkotsu Ramen"
    assert final["location"] == dubai
    assert uploads == [final["image_data_uri"]]
    assert set(final["timings"]) == {"normalize_ms", "upload_ms", "locate_ms", "identify_ms"}
    assert final["total_ms"] >= 0


def test_normalize_failure_stops_before_network(scenario_a_client):
    uploads = []
    final = run_scan_pipeline(b"\x00\x01", deps(scenario_a_client, uploads=uploads))

    assert final["error"] == "Unable to process image."
    assert final["error_stage"] == "normalize"
    assert final["result"] is None
    assert uploads == []
    assert list(final["timings"]) == ["normalize_ms"]
    assert scenario_a_client.models.calls == []


def test_identify_failure(png_bytes):
    final = run_scan_pipeline(png_bytes, deps(FakeGenaiClient(error=TimeoutError("deadline"))))
    assert final["error_stage"] == "identify"
    assert final["result"] is None
    assert final["location"] is None
    assert "location_error" in final["debug"]


def test_upload_hook_failure_does_not_fail_scan(scenario_a_client, png_bytes):
    def broken(_):
        raise RuntimeError("executor closed")

    d = deps(scenario_a_client)
    d.start_upload = broken
    final = run_scan_pipeline(png_bytes, d)
    assert final["error"] is None
    assert final["result"] is not None


def test_node_timer_records_even_when_node_raises(capsys):
    state = {"timings": {}}
    with pytest.raises(RuntimeError):
        with node_timer(state, "identify") as report:
            report["ok"] = False
            report["places"] = 0
            raise RuntimeError("boom")

    assert state["timings"]["identify_ms"] >= 0
    out = capsys.readouterr().out
    assert out.startswith("[identify] ❌ places=0 took ")


def test_pipeline_prints_summary(scenario_a_client, png_bytes, capsys):
    run_scan_pipeline(png_bytes, deps(scenario_a_client))
    lines = capsys.readouterr().out.strip().splitlines()
    assert [ln.split("]")[0] for ln in lines] == ["[normalize", "[upload", "[locate", "[identify", "[pipeline"]
    assert lines[2].startswith("[locate] ❌ at=none")
