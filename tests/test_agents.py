"""
Tests for the AI agents.

The Gemini model object is replaced by a mock; no real API calls.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from zerobalance.agents import (
    BackendResponseFormatError,
    BackendUnavailableError,
    CategorizationAgent,
    ExtractionRequest,
    GeminiExtractionBackend,
    SubscriptionReviewAgent,
    extract_json_object,
)
from zerobalance.agents import categorization
from zerobalance.agents.gemini import build_prompt, response_text
from zerobalance.agents.subscriptions import (
    NO_TRANSACTIONS_SUMMARY,
    REVIEW_UNAVAILABLE_SUMMARY,
)
from zerobalance.audit import AuditLogger
from zerobalance.config import GeminiSettings
from zerobalance.models.audit import AuditEventType


def _model(text=None, error=None):
    """Mock GenerativeModel whose generate_content_async replies with text."""
    model = MagicMock()
    if error is not None:
        model.generate_content_async = AsyncMock(side_effect=error)
    else:
        model.generate_content_async = AsyncMock(return_value=SimpleNamespace(text=text))
    return model


class _Blocked:
    """Mimics a Gemini response with no candidate parts."""

    @property
    def text(self):
        raise ValueError("response has no parts")


@pytest.fixture
def request_():
    return ExtractionRequest(
        utterance="Paid 500 for groceries yesterday",
        users=[{"id": "u1", "name": "Alice"}],
        categories=[{"id": "groceries", "name": "Groceries"}],
        current_date="2024-03-10",
    )


@pytest.fixture
def gemini_settings():
    return GeminiSettings(api_key="test-key")


class TestExtractJsonObject:
    """Tests for pulling JSON out of model text."""

    def test_plain_object(self):
        assert extract_json_object('{"action": "INFO"}') == {"action": "INFO"}

    def test_object_inside_code_fence(self):
        text = '```json\n{"action": "INFO", "params": {"aiResponse": "Hi"}}\n```'
        assert extract_json_object(text)["params"]["aiResponse"] == "Hi"

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_empty_text_is_none(self, text):
        assert extract_json_object(text) is None

    def test_no_object_raises(self):
        with pytest.raises(BackendResponseFormatError, match="did not contain"):
            extract_json_object("I could not understand that.")

    def test_invalid_json_raises(self):
        with pytest.raises(BackendResponseFormatError, match="not valid JSON"):
            extract_json_object('{"action": INFO}')


class TestGeminiExtractionBackend:
    """Tests for the Gemini backend with a mocked model."""

    async def test_returns_parsed_object(self, gemini_settings, request_):
        model = _model('{"action": "INFO", "params": {"aiResponse": "Hello"}}')
        backend = GeminiExtractionBackend(settings=gemini_settings, model=model)

        result = await backend.extract(request_)
        assert result == {"action": "INFO", "params": {"aiResponse": "Hello"}}
        model.generate_content_async.assert_awaited_once()

    async def test_blocked_response_is_silent(self, gemini_settings, request_):
        model = MagicMock()
        model.generate_content_async = AsyncMock(return_value=_Blocked())
        backend = GeminiExtractionBackend(settings=gemini_settings, model=model)
        assert await backend.extract(request_) is None

    async def test_empty_text_is_silent(self, gemini_settings, request_):
        backend = GeminiExtractionBackend(settings=gemini_settings, model=_model(""))
        assert await backend.extract(request_) is None

    async def test_prose_reply_is_format_error(self, gemini_settings, request_):
        backend = GeminiExtractionBackend(settings=gemini_settings, model=_model("Sure!"))
        with pytest.raises(BackendResponseFormatError):
            await backend.extract(request_)

    async def test_api_failure_is_unavailable(self, gemini_settings, request_):
        model = _model(error=RuntimeError("quota exceeded"))
        backend = GeminiExtractionBackend(settings=gemini_settings, model=model)
        with pytest.raises(BackendUnavailableError, match="quota exceeded"):
            await backend.extract(request_)

    def test_prompt_lists_reference_data(self, request_):
        prompt = build_prompt(request_)
        assert "- Alice (ID: u1)" in prompt
        assert "- Groceries (ID: groceries)" in prompt
        assert "Current date: 2024-03-10" in prompt
        assert prompt.endswith("User message: Paid 500 for groceries yesterday")

    def test_prompt_with_no_users(self):
        prompt = build_prompt(ExtractionRequest(utterance="hi", current_date="2024-03-10"))
        assert "Available users:\n- (none)" in prompt

    def test_response_text(self):
        assert response_text(SimpleNamespace(text="x")) == "x"
        assert response_text(_Blocked()) is None


class TestCategorizationAgent:
    """Tests for description-to-category suggestions."""

    async def test_suggestion(self, audit_storage):
        agent = CategorizationAgent(
            model=_model('{"category": "Food & Dining", "confidence": 0.9}'),
            audit_logger=AuditLogger(audit_storage),
        )
        suggestion = await agent.suggest_category("Coffee at Starbucks")
        assert suggestion.category == "Food & Dining"
        assert suggestion.confidence == 0.9
        assert audit_storage.events[-1].event_type == AuditEventType.CATEGORY_SUGGESTED

    async def test_snaps_to_known_spelling(self, categories):
        agent = CategorizationAgent(model=_model('{"category": "food & dining", "confidence": 0.7}'))
        suggestion = await agent.suggest_category("Lunch", categories)
        assert suggestion.category == "Food & Dining"

    async def test_unknown_name_kept(self, categories):
        agent = CategorizationAgent(model=_model('{"category": "Pets", "confidence": 0.6}'))
        suggestion = await agent.suggest_category("Dog food", categories)
        assert suggestion.category == "Pets"

    @pytest.mark.parametrize("raw, expected", [("1.7", 1.0), ("-0.2", 0.0), ('"high"', 0.5)])
    async def test_confidence_is_clamped(self, raw, expected):
        text = '{"category": "Utilities", "confidence": ' + raw + "}"
        agent = CategorizationAgent(model=_model(text))
        suggestion = await agent.suggest_category("Electric bill")
        assert suggestion.confidence == expected

    async def test_missing_confidence_defaults(self):
        agent = CategorizationAgent(model=_model('{"category": "Utilities"}'))
        suggestion = await agent.suggest_category("Water bill")
        assert suggestion.confidence == 0.5

    @pytest.mark.parametrize("description", ["", "   "])
    async def test_blank_description_falls_back(self, description):
        model = _model('{"category": "Utilities", "confidence": 1}')
        agent = CategorizationAgent(model=model)
        suggestion = await agent.suggest_category(description)
        assert (suggestion.category, suggestion.confidence) == ("Other", 0.0)
        model.generate_content_async.assert_not_awaited()

    async def test_api_failure_falls_back(self, audit_storage):
        agent = CategorizationAgent(
            model=_model(error=RuntimeError("network down")),
            audit_logger=AuditLogger(audit_storage),
        )
        suggestion = await agent.suggest_category("Taxi home")
        assert (suggestion.category, suggestion.confidence) == ("Other", 0.0)

        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.error_message == "network down"

    @pytest.mark.parametrize("text", [
        "",
        "no json here",
        '{"confidence": 0.9}',
        '{"category": "  ", "confidence": 0.9}',
    ])
    async def test_unusable_reply_falls_back(self, text):
        agent = CategorizationAgent(model=_model(text))
        suggestion = await agent.suggest_category("Movie tickets")
        assert suggestion.category == "Other"
        assert suggestion.confidence == 0.0

    @pytest.mark.parametrize("max_tokens, expected", [(200, 200), (1024, 256)])
    def test_generation_config_follows_settings(self, monkeypatch, max_tokens, expected):
        configure = MagicMock()
        generative_model = MagicMock()
        monkeypatch.setattr(categorization.genai, "configure", configure)
        monkeypatch.setattr(categorization.genai, "GenerativeModel", generative_model)

        CategorizationAgent(settings=GeminiSettings(
            api_key="test-key", temperature=0.4, max_tokens=max_tokens
        ))

        configure.assert_called_once_with(api_key="test-key")
        config = generative_model.call_args.kwargs["generation_config"]
        assert config["temperature"] == 0.4
        assert config["max_output_tokens"] == expected

    async def test_huge_confidence_is_clamped(self):
        text = '{"category": "Utilities", "confidence": 1' + "0" * 400 + "}"
        agent = CategorizationAgent(model=_model(text))
        suggestion = await agent.suggest_category("Gas bill")
        assert suggestion.confidence == 0.5


NETFLIX_REPLY = """{
  "potentialSubscriptions": [
    {"name": "Netflix", "averageAmount": 649, "estimatedFrequency": "Monthly",
     "confidence": 0.95, "supportingEvidence": ["NETFLIX.COM", "NETFLIX.COM"]},
    {"name": "Gym", "averageAmount": "lots", "confidence": 0.4},
    "not an object",
    {"name": "Spotify", "averageAmount": 119, "confidence": 3,
     "supportingEvidence": ["Spotify", 7], "notes": null}
  ],
  "summary": "Found 2 potential monthly subscriptions."
}"""


@pytest.fixture
def history():
    return [
        {"description": "NETFLIX.COM", "date": "2024-01-05", "amount": 649},
        {"description": "NETFLIX.COM", "date": "2024-02-05", "amount": 649},
        {"description": "Spotify", "date": "2024-02-11", "amount": 119},
        {"description": "Corner bakery", "date": "2024-02-14", "amount": 80},
    ]


class TestSubscriptionReviewAgent:
    """Tests for recurring-payment detection."""

    async def test_review(self, history, audit_storage):
        model = _model(NETFLIX_REPLY)
        agent = SubscriptionReviewAgent(model=model, audit_logger=AuditLogger(audit_storage))

        review = await agent.review_subscriptions(history, analysis_period_months=3)

        assert [s.name for s in review.potential_subscriptions] == ["Netflix", "Spotify"]
        netflix, spotify = review.potential_subscriptions
        assert netflix.average_amount == 649
        assert netflix.estimated_frequency == "Monthly"
        assert netflix.supporting_evidence == ["NETFLIX.COM", "NETFLIX.COM"]
        assert review.summary == "Found 2 potential monthly subscriptions."

        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.SUBSCRIPTIONS_REVIEWED
        assert event.details == {
            "transaction_count": 4,
            "subscription_count": 2,
            "period_months": 3,
        }

    async def test_entries_are_cleaned(self, history):
        """Test confidence is clamped and non-string evidence dropped."""
        agent = SubscriptionReviewAgent(model=_model(NETFLIX_REPLY))
        review = await agent.review_subscriptions(history, analysis_period_months=3)

        spotify = review.potential_subscriptions[1]
        assert spotify.confidence == 1.0
        assert spotify.supporting_evidence == ["Spotify"]
        assert spotify.estimated_frequency == "Uncertain"
        assert spotify.notes is None

    async def test_prompt_lists_transactions(self, history):
        model = _model('{"potentialSubscriptions": []}')
        agent = SubscriptionReviewAgent(model=model)
        review = await agent.review_subscriptions(history, analysis_period_months=6)

        prompt = model.generate_content_async.await_args.args[0]
        assert "cover 6 month(s)" in prompt
        assert '- Description: "NETFLIX.COM", Date: 2024-01-05, Amount: 649.0' in prompt
        assert review.potential_subscriptions == []
        assert review.summary is None

    async def test_wire_shape_is_camel_case(self, history):
        agent = SubscriptionReviewAgent(model=_model(NETFLIX_REPLY))
        review = await agent.review_subscriptions(history, analysis_period_months=3)

        wire = review.model_dump(by_alias=True, exclude_none=True)
        assert wire["potentialSubscriptions"][0]["averageAmount"] == 649
        assert "estimatedFrequency" in wire["potentialSubscriptions"][0]

    async def test_no_transactions_skips_model(self):
        model = _model(NETFLIX_REPLY)
        agent = SubscriptionReviewAgent(model=model)
        review = await agent.review_subscriptions([], analysis_period_months=3)
        assert review.potential_subscriptions == []
        assert review.summary == NO_TRANSACTIONS_SUMMARY
        model.generate_content_async.assert_not_awaited()

    @pytest.mark.parametrize("months", [0, -1, 2.5, True])
    async def test_rejects_bad_period(self, history, months):
        agent = SubscriptionReviewAgent(model=_model(NETFLIX_REPLY))
        with pytest.raises(ValueError):
            await agent.review_subscriptions(history, analysis_period_months=months)

    async def test_rejects_malformed_transaction(self):
        agent = SubscriptionReviewAgent(model=_model(NETFLIX_REPLY))
        with pytest.raises(ValidationError):
            await agent.review_subscriptions([{"description": "Netflix"}], 3)

    async def test_api_failure_falls_back(self, history, audit_storage):
        agent = SubscriptionReviewAgent(
            model=_model(error=RuntimeError("quota exceeded")),
            audit_logger=AuditLogger(audit_storage),
        )
        review = await agent.review_subscriptions(history, analysis_period_months=3)

        assert review.potential_subscriptions == []
        assert review.summary == REVIEW_UNAVAILABLE_SUMMARY
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.error_message == "quota exceeded"

    @pytest.mark.parametrize("text", [
        "",
        "Looks like Netflix to me.",
        '{"summary": "nothing"}',
        '{"potentialSubscriptions": "Netflix"}',
    ])
    async def test_unusable_reply_falls_back(self, history, text):
        agent = SubscriptionReviewAgent(model=_model(text))
        review = await agent.review_subscriptions(history, analysis_period_months=3)
        assert review.potential_subscriptions == []
        assert review.summary == REVIEW_UNAVAILABLE_SUMMARY


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
