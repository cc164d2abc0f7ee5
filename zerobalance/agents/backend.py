"""
Extraction Backend Contract

The generative backend is the ONLY wire boundary of the resolver.
It receives one utterance plus the caller's reference data, and proposes
one loosely-shaped action:

    {"action": "ADD_TRANSACTION", "params": {...}}

The backend is UNTRUSTED. It may:
- return an object of the wrong shape
- return nothing at all (None)
- raise

The resolver handles all three. Backends only have to report honestly
which of the three happened.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field

from zerobalance.models.reference import ReferenceEntity


class ExtractionBackendError(Exception):
    """Base exception for extraction backend failures."""
    pass


class BackendUnavailableError(ExtractionBackendError):
    """The backend could not be reached or rejected the request."""
    pass


class BackendTimeoutError(ExtractionBackendError):
    """The backend did not answer within the configured deadline."""
    pass


class BackendResponseFormatError(ExtractionBackendError):
    """The backend answered, but not with a JSON object."""
    pass


class ExtractionRequest(BaseModel):
    """Everything the backend gets to see for one utterance."""

    utterance: str = Field(
        ...,
        description="Raw user message"
    )
    users: list[ReferenceEntity] = Field(
        default_factory=list,
        description="Known users; the payer's id must come from here"
    )
    categories: list[ReferenceEntity] = Field(
        default_factory=list,
        description="Known categories, for naming guidance only"
    )
    current_date: str = Field(
        ...,
        pattern=r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$",
        description="Reference 'today' for relative dates, YYYY-MM-DD"
    )


class ExtractionBackend(ABC):
    """
    Abstract interface for the generative text backend.

    Any implementation (Gemini, a local model, a test fake) must
    implement extract().
    """

    name: str = "backend"

    @abstractmethod
    async def extract(
        self,
        request: ExtractionRequest,
    ) -> Optional[dict[str, Any]]:
        """
        Propose one action for the request.

        Returns:
            A loosely-shaped action object, or None if the model was silent

        Raises:
            ExtractionBackendError: If the call failed
        """
        pass


def extract_json_object(text: Optional[str]) -> Optional[dict[str, Any]]:
    """
    Pull the first {...} object out of model output text.

    Models sometimes wrap JSON in prose or code fences, so we take the
    span between the first '{' and the last '}'.

    Returns None for empty text.

    Raises:
        BackendResponseFormatError: If text is present but holds no object
    """
    if text is None or not text.strip():
        return None

    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise BackendResponseFormatError("AI response did not contain a JSON object.")

    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise BackendResponseFormatError(f"AI response was not valid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise BackendResponseFormatError("AI response did not contain a JSON object.")
    return data
