"""
Dish Analysis Module

Gemini-backed dish identification with maps grounding, plus the text parsing
and phone-number correlation applied to its response.
"""

from .ai_service import DishAnalysisClient
from .phone_correlation import find_phone_for_title, enrich_grounding_chunks
from .response_parser import parse_dish_text

__all__ = [
    "DishAnalysisClient",
    "find_phone_for_title",
    "enrich_grounding_chunks",
    "parse_dish_text",
]
