class DishOutError(Exception):
    """Base class for errors raised by the scan pipeline and order relay."""


class ProcessingError(DishOutError):
    """The uploaded image could not be decoded or re-encoded."""


class AnalysisFailedError(DishOutError):
    """The dish analysis call failed (transport or model side)."""

    DEFAULT_MESSAGE = "Failed to analyze dish. Please ensure your API key is a valid Google Gemini key."

    def __init__(self, message: str = DEFAULT_MESSAGE):
        super().__init__(message)


class LocationUnavailable(DishOutError):
    """No position could be obtained (unsupported, denied or timed out)."""


class OrderRefused(DishOutError):
    """The chosen result cannot be ordered from."""


class InvalidTransition(DishOutError):
    """The requested action is not allowed in the current scan state."""
