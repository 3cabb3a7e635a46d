# phone_correlation.py
"""
Recover restaurant phone numbers by correlating grounding-chunk titles with
the model's free text.

Grounding results carry no contact numbers, so the prompt asks the model to
write ``Phone: <number>`` after each restaurant name. For every chunk title we
look at a fixed window of text (measured in UTF-16 code units, as a browser
counts string length) starting at the title's first occurrence and
take the first labeled number, else the first bare international-looking one.
"""

import re
from typing import Iterable, Optional, Tuple

from ...models.analysis import GroundingChunk

WINDOW_CHARS = 400

# digits are ASCII only; \s stays Unicode so NBSP-separated numbers match
LABELED_PHONE = re.compile(r"Phone:\s*([+0-9\s()-]{8,})", re.IGNORECASE)
BARE_PHONE = re.compile(
    r"(\+[0-9]{1,3}[-.\s]?\(?[0-9]{1,4}?\)?[-.\s]?[0-9]{1,4}[-.\s]?[0-9]{1,9})"
)


def text_window(text: str, start: int, units: int = WINDOW_CHARS) -> str:
    """Slice of ``text`` from ``start`` spanning ``units`` UTF-16 code units.

    Characters outside the BMP (most emoji) count as two units.
    """
    used = 0
    end = start
    while end < len(text):
        width = 2 if ord(text[end]) > 0xFFFF else 1
        if used + width > units:
            break
        used += width
        end += 1
    return text[start:end]


def find_phone_for_title(raw_text: str, title: Optional[str]) -> Optional[str]:
    """Phone number written near ``title`` in ``raw_text``, or None."""
    if not title or not raw_text:
        return None
    idx = raw_text.find(title)
    if idx == -1:
        return None

    window = text_window(raw_text, idx)
    match = LABELED_PHONE.search(window) or BARE_PHONE.search(window)
    if not match or not match.group(1):
        return None
    return match.group(1).strip() or None


def enrich_grounding_chunks(raw_text: str, chunks: Iterable[GroundingChunk]) -> Tuple[GroundingChunk, ...]:
    """Attach phone numbers to chunks whose title can be located in the text. Order is kept."""
    enriched = []
    for chunk in chunks:
        phone = find_phone_for_title(raw_text, chunk.title)
        enriched.append(chunk.with_phone_number(phone) if phone else chunk)
    return tuple(enriched)
