from typing import Tuple

NO_TEXT_FALLBACK = "I couldn't identify the dish."
UNKNOWN_DISH = "Unknown Dish"
DESCRIPTION_FALLBACK = "Delicious culinary creation identified."

DESCRIPTION_LINES = 3


def strip_markdown(line: str) -> str:
    """Drop markdown emphasis/heading markers."""
    return line.replace("*", "").replace("#", "").strip()


def parse_dish_text(text: str) -> Tuple[str, str]:
    """Split model text into ``(dish_name, description)``.

    The first non-blank line is the dish name, the next three non-blank lines
    are the description.
    """
    lines = [ln.strip() for ln in (text or "").split("\n") if ln.strip()]
    dish_name = (strip_markdown(lines[0]) if lines else "") or UNKNOWN_DISH
    description = " ".join(lines[1:1 + DESCRIPTION_LINES]).strip() or DESCRIPTION_FALLBACK
    return dish_name, description
