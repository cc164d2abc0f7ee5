"""AI Agents package."""

from zerobalance.agents.backend import (
    BackendResponseFormatError,
    BackendTimeoutError,
    BackendUnavailableError,
    ExtractionBackend,
    ExtractionBackendError,
    ExtractionRequest,
    extract_json_object,
)
from zerobalance.agents.categorization import CategorizationAgent, CategorySuggestion
from zerobalance.agents.gemini import GeminiExtractionBackend
from zerobalance.agents.subscriptions import (
    PotentialSubscription,
    ReviewTransaction,
    SubscriptionReview,
    SubscriptionReviewAgent,
)

__all__ = [
    "BackendResponseFormatError",
    "BackendTimeoutError",
    "BackendUnavailableError",
    "CategorizationAgent",
    "CategorySuggestion",
    "ExtractionBackend",
    "ExtractionBackendError",
    "ExtractionRequest",
    "GeminiExtractionBackend",
    "PotentialSubscription",
    "ReviewTransaction",
    "SubscriptionReview",
    "SubscriptionReviewAgent",
    "extract_json_object",
]
