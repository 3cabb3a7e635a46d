# dish_prompt.py
"""
Centralized prompt for dish identification and nearby restaurant lookup.
The ``Phone:`` marker is what the phone correlation step searches for.
"""

PHONE_MARKER = "Phone:"

RESTAURANT_LOOKUP = (
    "Then, find 3 highly-rated restaurants nearby that serve this specific dish or cuisine "
    "using the Google Maps tool.\n"
)

CONTACT_RULES = (
    "CRITICAL: For each restaurant, you MUST provide its official phone number in international "
    "format (e.g., +971...) and its website or map link.\n"
    f"Format your response such that after the restaurant name, you include \"{PHONE_MARKER} [number]\".\n"
)


def build_dish_prompt() -> str:
    """
    Build the dish identification prompt.

    Returns:
        Complete prompt string
    """
    return (
        "Identify this dish. Provide a catchy title and a brief flavor profile.\n"
        + RESTAURANT_LOOKUP
        + "\n"
        + CONTACT_RULES
    )
