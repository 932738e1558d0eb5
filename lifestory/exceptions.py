"""
Errors surfaced to callers of the conversation and biography services.
"""


class InvalidInputError(ValueError):
    """Raised when a request is missing required fields or carries malformed values."""
    pass


class NotFoundError(LookupError):
    """Raised when there is no stored history for the requested person."""
    pass
