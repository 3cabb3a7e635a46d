from .gemini_client import (
    make_client,
    encode_image_to_part,
    maps_grounding_config,
    extract_text_from_response,
    extract_grounding_chunks,
)

__all__ = [
    "make_client",
    "encode_image_to_part",
    "maps_grounding_config",
    "extract_text_from_response",
    "extract_grounding_chunks",
]
