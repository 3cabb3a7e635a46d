# gemini_client.py
import base64
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

from ....models.analysis import LocationData


def make_client(api_key: str) -> genai.Client:
    if not api_key:
        raise RuntimeError("Provide GEMINI_API_KEY (or API_KEY) for Gemini API key authentication.")
    return genai.Client(api_key=api_key)


def encode_image_to_part(image_base64: str, mime_type: str) -> types.Part:
    """Inline image part from a base64 payload (no data-URI prefix)."""
    return types.Part.from_bytes(data=base64.b64decode(image_base64), mime_type=mime_type)


def maps_grounding_config(location: Optional[LocationData] = None) -> types.GenerateContentConfig:
    """Generation config with the Google Maps tool, biased to ``location`` when known."""
    tool_config = None
    if location is not None:
        tool_config = types.ToolConfig(
            retrieval_config=types.RetrievalConfig(
                lat_lng=types.LatLng(latitude=location.latitude, longitude=location.longitude)
            )
        )
    return types.GenerateContentConfig(
        tools=[types.Tool(google_maps=types.GoogleMaps())],
        tool_config=tool_config,
    )


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _plain(obj: Any) -> Any:
    if hasattr(obj, "model_dump"):
        return obj.model_dump(exclude_none=True)
    return obj


def extract_text_from_response(resp) -> str:
    """Return the concatenated text of the response; '' when there is none."""
    top = getattr(resp, "text", None)
    if isinstance(top, str) and top.strip():
        return top
    texts = []
    for cand in (getattr(resp, "candidates", None) or [])[:1]:
        content = getattr(cand, "content", None)
        if not content:
            continue
        for part in (getattr(content, "parts", None) or []):
            t = getattr(part, "text", None)
            if isinstance(t, str):
                texts.append(t)
    return "".join(texts)


def extract_grounding_chunks(resp) -> List[Dict[str, Any]]:
    """Return the first candidate's grounding chunks as plain dicts (maps records only)."""
    candidates = getattr(resp, "candidates", None) or []
    if not candidates:
        return []
    metadata = _field(candidates[0], "grounding_metadata")
    raw_chunks = _field(metadata, "grounding_chunks") if metadata else None

    chunks: List[Dict[str, Any]] = []
    for chunk in (raw_chunks or []):
        maps = _field(chunk, "maps")
        if not maps:
            chunks.append({})
            continue
        sources = _field(maps, "place_answer_sources")
        if sources is not None and not isinstance(sources, list):
            sources = [sources]
        chunks.append({"maps": {
            "uri": _field(maps, "uri") or "",
            "title": _field(maps, "title"),
            "address": _field(maps, "address"),
            "place_answer_sources": [_plain(s) for s in (sources or [])],
        }})
    return chunks
