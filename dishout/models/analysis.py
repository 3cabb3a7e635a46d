from typing import List, Dict, Any, Optional, Tuple
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class LocationData:
    """Model for a single position fix"""
    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class MapsPlace:
    """Model for the maps record of a grounding chunk"""
    uri: str = ""
    title: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    place_answer_sources: Tuple[Dict[str, Any], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"uri": self.uri, "title": self.title}
        if self.phone_number:
            out["phone_number"] = self.phone_number
        if self.address:
            out["address"] = self.address
        if self.place_answer_sources:
            out["place_answer_sources"] = list(self.place_answer_sources)
        return out


@dataclass(frozen=True)
class GroundingChunk:
    """Model for one place result returned by the maps grounding tool"""
    maps: Optional[MapsPlace] = None

    @property
    def title(self) -> Optional[str]:
        return self.maps.title if self.maps else None

    @property
    def phone_number(self) -> Optional[str]:
        return self.maps.phone_number if self.maps else None

    def with_phone_number(self, phone_number: str) -> "GroundingChunk":
        return replace(self, maps=replace(self.maps or MapsPlace(), phone_number=phone_number))

    def to_dict(self) -> Dict[str, Any]:
        return {"maps": self.maps.to_dict()} if self.maps else {}


@dataclass(frozen=True)
class DishAnalysisResult:
    """Complete analysis response model"""
    dish_name: str
    description: str
    grounding_chunks: Tuple[GroundingChunk, ...] = field(default_factory=tuple)
    raw_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dish_name": self.dish_name,
            "description": self.description,
            "grounding_chunks": [c.to_dict() for c in self.grounding_chunks],
            "raw_text": self.raw_text,
        }


def chunks_from_dicts(items: List[Dict[str, Any]]) -> Tuple[GroundingChunk, ...]:
    """Build grounding chunks from plain dicts (SDK ``model_dump`` output or JSON)."""
    chunks = []
    for it in (items or []):
        maps = (it or {}).get("maps")
        if not maps:
            chunks.append(GroundingChunk())
            continue
        chunks.append(GroundingChunk(maps=MapsPlace(
            uri=maps.get("uri") or "",
            title=maps.get("title"),
            phone_number=maps.get("phone_number"),
            address=maps.get("address"),
            place_answer_sources=tuple(maps.get("place_answer_sources") or ()),
        )))
    return tuple(chunks)
