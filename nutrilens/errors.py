"""Errors that end a request.

Parse ambiguity and a missing nutrition match are not errors: the parser and
the nutrition client absorb them and the pipeline keeps going.
"""

from typing import Any, Dict, Optional


class NutrilensError(Exception):
    status_code = 500

    def __init__(self, error: str, details: Optional[str] = None):
        super().__init__(error)
        self.error = error
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.details:
            body["details"] = self.details
        return body


class InvalidRequest(NutrilensError):
    """Missing or malformed image input."""

    status_code = 400


class VisionProviderError(NutrilensError):
    """Vision key is unconfigured or the vision call did not succeed."""

    status_code = 500
