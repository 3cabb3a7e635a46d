import logging
import time
from typing import Optional

from google.genai import types

from ...errors import AnalysisFailedError
from ...models.analysis import DishAnalysisResult, LocationData, chunks_from_dicts
from ...prompts.dish_prompt import build_dish_prompt
from ..shared.gemini.gemini_client import (
    encode_image_to_part,
    extract_grounding_chunks,
    extract_text_from_response,
    maps_grounding_config,
)
from .phone_correlation import enrich_grounding_chunks
from .response_parser import NO_TEXT_FALLBACK, parse_dish_text

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


class DishAnalysisClient:
    """Identify a dish from a photo and find nearby restaurants serving it.

    ``client`` is a ``google.genai.Client`` built once at startup and passed in;
    ``None`` (no API key configured) makes every call fail with
    ``AnalysisFailedError``.
    """

    def __init__(self, client, model: str = DEFAULT_MODEL):
        self._client = client
        self.model = model

    @property
    def configured(self) -> bool:
        return self._client is not None

    def identify_dish_and_find_places(
        self,
        image_base64: str,
        mime_type: str,
        location: Optional[LocationData] = None,
    ) -> DishAnalysisResult:
        """
        Run one grounded generate-content call and assemble the result.

        Args:
            image_base64: Base64 image payload without the data-URI prefix
            mime_type: MIME type of the payload
            location: Optional position used to bias the maps retrieval

        Returns:
            DishAnalysisResult with phone numbers attached where they could be found

        Raises:
            AnalysisFailedError: On any transport or model error
        """
        t0 = time.perf_counter()
        try:
            if self._client is None:
                raise RuntimeError("Gemini client is not configured")

            parts = [
                encode_image_to_part(image_base64, mime_type),
                types.Part.from_text(text=build_dish_prompt()),
            ]
            resp = self._client.models.generate_content(
                model=self.model,
                contents=[types.Content(role="user", parts=parts)],
                config=maps_grounding_config(location),
            )

            text = extract_text_from_response(resp) or NO_TEXT_FALLBACK
            dish_name, description = parse_dish_text(text)
            raw_chunks = chunks_from_dicts(extract_grounding_chunks(resp))
            chunks = enrich_grounding_chunks(text, raw_chunks)
        except Exception as e:
            logger.error("Gemini API error after %.0f ms: %s", (time.perf_counter() - t0) * 1000.0, e)
            raise AnalysisFailedError() from e

        logger.info(
            "Identified %r with %d place(s), %d with phone, in %.0f ms",
            dish_name, len(chunks), sum(1 for c in chunks if c.phone_number),
            (time.perf_counter() - t0) * 1000.0,
        )
        return DishAnalysisResult(
            dish_name=dish_name,
            description=description,
            grounding_chunks=chunks,
            raw_text=text,
        )
