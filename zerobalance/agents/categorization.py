"""
Categorization Agent

Suggests a spending category for a free-text transaction description,
e.g. "Coffee at Starbucks" -> "Food & Dining". Used by the manual
add-transaction form.

BOUNDARIES:
- CAN: Suggest a category name with a confidence
- CANNOT: Assign the category; the user picks it in the form
- NEVER raises for model trouble: falls back to "Other" with zero confidence
"""

from typing import Any, Iterable, Optional

import google.generativeai as genai
from pydantic import BaseModel, Field

from zerobalance.agents.backend import (
    ExtractionBackendError,
    extract_json_object,
)
from zerobalance.agents.gemini import response_text
from zerobalance.audit import AuditLogger
from zerobalance.config import GeminiSettings, get_settings
from zerobalance.models.reference import ReferenceEntity, normalize_name


FALLBACK_CATEGORY = "Other"
SUGGESTION_MAX_TOKENS = 256


class CategorySuggestion(BaseModel):
    """AI's suggestion for a transaction category."""

    category: str = Field(..., min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)


def clamp_confidence(value: Any) -> float:
    """Coerce a model-reported confidence into [0, 1]; unreadable means 0.5."""
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.5
    if number != number:  # NaN
        return 0.0
    return min(1.0, max(0.0, number))


def snap_to_known(
    name: str,
    categories: Optional[Iterable[ReferenceEntity]],
) -> str:
    """Return the known category's own spelling if the name matches one."""
    if not categories:
        return name
    wanted = normalize_name(name)
    for category in categories:
        if normalize_name(category.name) == wanted:
            return category.name
    return name


class CategorizationAgent:
    """
    AI agent for description-to-category suggestions.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Any = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings
        self._model = model or self._configure_genai()
        self._audit_logger = audit_logger

    def _configure_genai(self):
        """Configure Google Generative AI."""
        settings = self._settings or get_settings().gemini
        genai.configure(api_key=settings.api_key)
        return genai.GenerativeModel(
            model_name=settings.model_name,
            generation_config={
                "temperature": settings.temperature,
                # A suggestion is one short object
                "max_output_tokens": min(settings.max_tokens, SUGGESTION_MAX_TOKENS),
                "response_mime_type": "application/json",
            },
        )

    def _build_prompt(
        self,
        description: str,
        categories: Optional[list[ReferenceEntity]],
    ) -> str:
        known = ""
        if categories:
            names = ", ".join(c.name for c in categories)
            known = f"\nPrefer one of these categories when it fits: {names}\n"

        return f"""You are a personal finance expert categorizing transactions.

Suggest a spending category for this transaction and how confident you are (0 to 1).

Description: {description}
{known}
Respond with ONLY a JSON object in this exact format:
{{"category": "Food & Dining", "confidence": 0.8}}"""

    async def suggest_category(
        self,
        description: str,
        categories: Optional[Iterable[ReferenceEntity | dict]] = None,
    ) -> CategorySuggestion:
        """
        Suggest a category for a transaction description.

        Returns a suggestion the user can accept or override.
        """
        if not description or not description.strip():
            return CategorySuggestion(category=FALLBACK_CATEGORY, confidence=0.0)

        known = [
            c if isinstance(c, ReferenceEntity) else ReferenceEntity.model_validate(c)
            for c in (categories or [])
        ]

        try:
            response = await self._model.generate_content_async(
                self._build_prompt(description.strip(), known)
            )
            data = extract_json_object(response_text(response))
            if data is None:
                raise ExtractionBackendError("AI did not return a response.")

            raw_category = data.get("category")
            if not isinstance(raw_category, str) or not raw_category.strip():
                raise ExtractionBackendError("AI response had no category.")

            suggestion = CategorySuggestion(
                category=snap_to_known(raw_category.strip(), known),
                confidence=clamp_confidence(data.get("confidence", 0.5)),
            )
        except Exception as e:
            # Fallback: the user picks a category manually
            await self._log_failure(description, e)
            return CategorySuggestion(category=FALLBACK_CATEGORY, confidence=0.0)

        if self._audit_logger:
            await self._audit_logger.log_category_suggested(
                description=description,
                category=suggestion.category,
                confidence=suggestion.confidence,
            )
        return suggestion

    async def _log_failure(self, description: str, error: Exception) -> None:
        if self._audit_logger:
            await self._audit_logger.log_error(
                error_type="categorization_failed",
                error_message=str(error) or type(error).__name__,
                details={"description": description[:80]},
            )
