"""
Gemini Extraction Backend

DESIGN DECISION: The LLM is a TRANSLATOR, not a bookkeeper.
It converts one chat message into a proposed action. It NEVER decides
category ids and NEVER has the final word on any field: everything it
returns is re-checked by the canonicalizer and validator.

The prompt asks the model to:
- resolve relative dates against the supplied current date
- assume the current year when none is given
- extract a bare number for the amount (no currency symbols)
- map the payer's name to a user id from the supplied list
- infer a category NAME from the description when none is stated
- default the type to "expense" unless income is explicit
- ask (CLARIFY) instead of guessing when crucial details are missing
"""

from typing import Any, Optional

import google.generativeai as genai

from zerobalance.agents.backend import (
    BackendUnavailableError,
    ExtractionBackend,
    ExtractionRequest,
    extract_json_object,
)
from zerobalance.config import GeminiSettings, get_settings
from zerobalance.models.reference import ReferenceEntity


SYSTEM_PROMPT = """You are the assistant inside the ZEROBALANCE personal finance app.
You read ONE chat message and decide ONE action. Reply with ONLY a JSON object:
{"action": "<ACTION>", "params": {...}}

Actions:

1. ADD_TRANSACTION - the user wants to record a transaction.
   params: {"userId": str, "description": str, "amount": number,
            "date": "YYYY-MM-DD", "categoryName": str (optional),
            "type": "income" | "expense"}
   - amount: the number only, without currency symbols.
   - date: resolve "today", "yesterday", "last Friday" etc. against the
     current date given below. If no year is mentioned, use the current year.
   - userId: match the payer's name against the user list below and use
     that user's ID. Never invent an ID.
   - categoryName: the category the user names, otherwise a sensible common
     name inferred from the description (e.g. "Groceries", "Utilities").
     Omit it if you cannot tell.
   - type: "expense" unless the user clearly says income or earning.

2. LIST_TRANSACTIONS - the user wants to see transactions.
   params: {"period": str, "user": str, "category": str} (all optional)
   Listing is handled by the app's Transactions page; prefer an INFO reply
   pointing the user to its filters.

3. CLARIFY - crucial details for adding a transaction (amount, date, who
   paid, what it was for) are missing or ambiguous.
   params: {"clarificationNeeded": "<your question to the user>"}

4. INFO - greetings, general questions, anything that is not a direct
   transaction action.
   params: {"aiResponse": "<your reply>"}

5. ERROR - you hit an internal problem interpreting the message that is not
   a clarification issue.
   params: {"errorMessage": "<what went wrong>"}
"""


def _format_entities(entities: list[ReferenceEntity]) -> str:
    if not entities:
        return "- (none)"
    return "\n".join(f"- {e.name} (ID: {e.id})" for e in entities)


def build_prompt(request: ExtractionRequest) -> str:
    """Render the per-call part of the prompt."""
    return (
        f"Available users:\n{_format_entities(request.users)}\n\n"
        "Available categories (for naming guidance; return a categoryName, "
        f"never an ID):\n{_format_entities(request.categories)}\n\n"
        f"Current date: {request.current_date}\n\n"
        f"User message: {request.utterance}"
    )


def response_text(response: Any) -> Optional[str]:
    """
    Text of a Gemini response, or None when there is none.

    `response.text` raises ValueError when the reply was blocked or
    carries no candidate parts; that is a silent model, not a failure.
    """
    try:
        return response.text
    except ValueError:
        return None


class GeminiExtractionBackend(ExtractionBackend):
    """
    Extraction backend backed by Google Gemini.

    BOUNDARIES:
    - ONLY proposes an action
    - NEVER validates, NEVER persists
    - Reports transport failures as BackendUnavailableError
    """

    name = "gemini"

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Any = None,
    ):
        self._settings = settings or get_settings().gemini
        self._model = model or self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            system_instruction=SYSTEM_PROMPT,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
            },
        )

    async def extract(
        self,
        request: ExtractionRequest,
    ) -> Optional[dict[str, Any]]:
        """
        Ask Gemini for one action.

        Returns:
            The parsed JSON object, or None if the model returned no text

        Raises:
            BackendUnavailableError: If the API call itself failed
            BackendResponseFormatError: If the reply holds no JSON object
        """
        try:
            response = await self._model.generate_content_async(build_prompt(request))
        except Exception as e:
            raise BackendUnavailableError(str(e)) from e

        return extract_json_object(response_text(response))
