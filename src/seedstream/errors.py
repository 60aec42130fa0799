"""
Exceptions raised by the recommender and its bundled clients.
"""

from typing import Optional


class RecommenderError(Exception):
    """Base exception for the recommender."""

    def __init__(self, message: str, code: str = "RECOMMENDER_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class SeedValidationError(RecommenderError):
    """The seed item cannot be used to start a ranking run."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid seed {field}: {message}", "SEED_INVALID")


class SourceUnavailableError(RecommenderError):
    """An external data source failed or returned an unusable response."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service} unavailable: {message}", "SOURCE_UNAVAILABLE")
