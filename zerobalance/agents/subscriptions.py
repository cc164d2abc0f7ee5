"""
Subscription Review Agent

Looks over a few months of transactions and points out payments that
look recurring (streaming services, gym fees, cloud storage), grouped per
service with an average amount and an estimated frequency.

BOUNDARIES:
- CAN: Flag potential subscriptions with a confidence and evidence
- CANNOT: Cancel, tag or modify any transaction
- NEVER raises for model trouble: falls back to an empty review whose
  summary says the review is unavailable
"""

from typing import Any, Iterable, Optional, Union

import google.generativeai as genai
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from zerobalance.agents.backend import ExtractionBackendError, extract_json_object
from zerobalance.agents.categorization import clamp_confidence
from zerobalance.agents.gemini import response_text
from zerobalance.audit import AuditLogger
from zerobalance.config import GeminiSettings, get_settings


NO_TRANSACTIONS_SUMMARY = "No transactions to review."
REVIEW_UNAVAILABLE_SUMMARY = (
    "Subscription review is unavailable right now. Please try again later."
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReviewTransaction(_CamelModel):
    """One transaction as shown to the reviewer."""

    description: str = Field(..., description="Merchant description, e.g. 'NETFLIX.COM'")
    date: str = Field(..., description="Transaction date, YYYY-MM-DD")
    amount: float = Field(..., description="Transaction amount")


class PotentialSubscription(_CamelModel):
    """A recurring payment the model believes it found."""

    name: str = Field(..., min_length=1, description="Common name of the service")
    average_amount: float = Field(..., description="Typical recurring amount")
    estimated_frequency: str = Field(
        default="Uncertain",
        description="Monthly, Annually, Weekly, Bi-weekly, Irregular or Uncertain"
    )
    confidence: float = Field(..., ge=0.0, le=1.0)
    supporting_evidence: list[str] = Field(
        default_factory=list,
        description="Transaction descriptions that led to this finding"
    )
    notes: Optional[str] = None


class SubscriptionReview(_CamelModel):
    """Result of one review."""

    potential_subscriptions: list[PotentialSubscription] = Field(default_factory=list)
    summary: Optional[str] = None


def _parse_subscription(item: Any) -> Optional[PotentialSubscription]:
    """One model-proposed entry, or None if it is unusable."""
    if not isinstance(item, dict):
        return None

    data = dict(item)
    data["confidence"] = clamp_confidence(data.get("confidence", 0.5))
    evidence = data.get("supportingEvidence")
    data["supportingEvidence"] = (
        [e for e in evidence if isinstance(e, str)] if isinstance(evidence, list) else []
    )
    if not isinstance(data.get("notes"), str):
        data.pop("notes", None)

    try:
        return PotentialSubscription.model_validate(data)
    except ValidationError:
        return None


class SubscriptionReviewAgent:
    """
    AI agent for spotting recurring payments in a transaction history.
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
                "max_output_tokens": settings.max_tokens,
                "response_mime_type": "application/json",
            },
        )

    def _build_prompt(
        self,
        transactions: list[ReviewTransaction],
        analysis_period_months: int,
    ) -> str:
        rows = "\n".join(
            f'- Description: "{t.description}", Date: {t.date}, Amount: {t.amount}'
            for t in transactions
        )

        return f"""You are an expert financial analyst identifying recurring subscriptions and payments.

The transactions below cover {analysis_period_months} month(s).

Look for:
- Repeated merchant names or descriptions (e.g. "Spotify", "NETFLIX.COM", "AWS")
- Consistent amounts, or amounts in a typical range for a service
- Regular intervals (monthly, annually, weekly), allowing for slight date drift
- Description variants of one service (e.g. "Google *Storage", "Google *Services"); group them
- One-time purchases, which are NOT subscriptions

List each service ONCE, with its average amount and estimated frequency.

Transactions:
{rows}

Respond with ONLY a JSON object in this exact format:
{{"potentialSubscriptions": [{{"name": "Netflix", "averageAmount": 649, "estimatedFrequency": "Monthly", "confidence": 0.9, "supportingEvidence": ["NETFLIX.COM", "NETFLIX.COM"], "notes": "optional"}}],
 "summary": "Found 1 potential monthly subscription."}}"""

    async def review_subscriptions(
        self,
        transactions: Iterable[Union[ReviewTransaction, dict]],
        analysis_period_months: int,
    ) -> SubscriptionReview:
        """
        Review transactions for potential subscriptions.

        Args:
            transactions: {description, date, amount} entries
            analysis_period_months: Months the transactions cover (positive)

        Returns:
            The review. Entries the model got badly wrong are dropped.

        Raises:
            ValueError: If analysis_period_months is not a positive integer
            ValidationError: If a transaction is malformed
        """
        if (
            isinstance(analysis_period_months, bool)
            or not isinstance(analysis_period_months, int)
            or analysis_period_months < 1
        ):
            raise ValueError("analysis_period_months must be a positive integer")

        rows = [
            t if isinstance(t, ReviewTransaction) else ReviewTransaction.model_validate(t)
            for t in transactions
        ]
        if not rows:
            return SubscriptionReview(summary=NO_TRANSACTIONS_SUMMARY)

        try:
            response = await self._model.generate_content_async(
                self._build_prompt(rows, analysis_period_months)
            )
            data = extract_json_object(response_text(response))
            if data is None:
                raise ExtractionBackendError(
                    "AI did not return a response for subscription review."
                )

            items = data.get("potentialSubscriptions")
            if not isinstance(items, list):
                raise ExtractionBackendError("AI response had no potentialSubscriptions list.")

            summary = data.get("summary")
            review = SubscriptionReview(
                potential_subscriptions=[
                    s for s in (_parse_subscription(i) for i in items) if s is not None
                ],
                summary=summary if isinstance(summary, str) else None,
            )
        except Exception as e:
            # Fallback: nothing flagged, and the summary says why
            await self._log_failure(len(rows), e)
            return SubscriptionReview(summary=REVIEW_UNAVAILABLE_SUMMARY)

        if self._audit_logger:
            await self._audit_logger.log_subscriptions_reviewed(
                transaction_count=len(rows),
                subscription_count=len(review.potential_subscriptions),
                period_months=analysis_period_months,
            )
        return review

    async def _log_failure(self, transaction_count: int, error: Exception) -> None:
        if self._audit_logger:
            await self._audit_logger.log_error(
                error_type="subscription_review_failed",
                error_message=str(error) or type(error).__name__,
                details={"transaction_count": transaction_count},
            )
