"""
Resolution Orchestrator for ZEROBALANCE

Turns ONE chat utterance into exactly ONE action:

    utterance -> (empty? -> INFO)
              -> reference data lookup tables
              -> generative backend (untrusted)
              -> ADD_TRANSACTION? canonicalize -> validate
                 otherwise        validate
              -> ADD_TRANSACTION | LIST_TRANSACTIONS | CLARIFY | INFO | ERROR

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing the backend says reaches the caller unvalidated
- An ADD_TRANSACTION is only ever returned fully valid
- Missing details become a question (CLARIFY), not a guess
- resolve() NEVER raises; every failure becomes an ERROR action

Each call is stateless. There is no memory between utterances and no
shared mutable state, so calls may run concurrently without locks.
"""

import asyncio
from datetime import date, datetime
from typing import Any, Iterable, Optional, Union
from uuid import UUID

from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from zerobalance.agents import (
    BackendTimeoutError,
    BackendUnavailableError,
    ExtractionBackend,
    ExtractionRequest,
    GeminiExtractionBackend,
)
from zerobalance.audit import AuditLogger, create_correlation_id
from zerobalance.config import ResolverSettings, get_settings
from zerobalance.models.actions import (
    ActionType,
    ChatAction,
    TransactionDraft,
    error_action,
    info_action,
)
from zerobalance.models.reference import ReferenceData, ReferenceEntity
from zerobalance.resolution import canonicalize
from zerobalance.services.storage import AuditStorageInterface
from zerobalance.validation import ActionValidator, ValidationResult, action_name


EMPTY_INPUT_MESSAGE = "Please type a message so I can assist you."
NO_RESPONSE_MESSAGE = "AI did not return a response."
GENERIC_ERROR_MESSAGE = "An unexpected error occurred."
TIMEOUT_MESSAGE = "AI request timed out."


def _error_message(error: BaseException) -> str:
    message = str(error).strip()
    return message or GENERIC_ERROR_MESSAGE


def _is_silent(raw: Any) -> bool:
    """No usable reply: None or an empty scalar such as "", 0 or False."""
    if raw is None:
        return True
    return isinstance(raw, (str, int, float)) and not raw


def _iso_date(value: Union[str, date, datetime, None]) -> str:
    if value is None:
        return date.today().isoformat()
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


class ResolutionOrchestrator:
    """
    The single entry point of the conversational command resolver.

    Flow:
    1. Empty utterance -> INFO, backend never called
    2. Call the backend once (configurable retries for transport failures)
    3. Backend raised -> ERROR with its message
    4. Backend silent -> ERROR "AI did not return a response."
    5. ADD_TRANSACTION -> canonicalize, then strict validation
    6. Anything else -> strict validation as-is
    7. Any other exception -> ERROR
    """

    def __init__(
        self,
        backend: ExtractionBackend,
        validator: Optional[ActionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[ResolverSettings] = None,
        retry_wait: Any = None,
    ):
        self._backend = backend
        self._validator = validator or ActionValidator()
        self._audit_logger = audit_logger or AuditLogger()  # Local-only logging
        self._settings = settings or ResolverSettings()
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

    async def resolve(
        self,
        utterance: str,
        users: Optional[Iterable[Union[ReferenceEntity, dict]]] = None,
        categories: Optional[Iterable[Union[ReferenceEntity, dict]]] = None,
        current_date: Union[str, date, datetime, None] = None,
    ) -> ChatAction:
        """
        Resolve one utterance into one action.

        Args:
            utterance: Raw user message
            users: Known users ({id, name}); the payer must be one of them
            categories: Known categories ({id, name})
            current_date: "today" for relative dates (YYYY-MM-DD or a date).
                          Defaults to the local date.

        Returns:
            Exactly one action. Never raises.
        """
        correlation_id = create_correlation_id()

        try:
            return await self._resolve(
                utterance, users, categories, current_date, correlation_id
            )
        except Exception as e:
            message = _error_message(e)
            await self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=message,
                correlation_id=correlation_id,
            )
            return error_action(message)

    async def _resolve(
        self,
        utterance: Any,
        users: Optional[Iterable[Union[ReferenceEntity, dict]]],
        categories: Optional[Iterable[Union[ReferenceEntity, dict]]],
        current_date: Union[str, date, datetime, None],
        correlation_id: UUID,
    ) -> ChatAction:
        if not isinstance(utterance, str) or not utterance.strip():
            await self._audit_logger.log_empty_input(correlation_id)
            return info_action(EMPTY_INPUT_MESSAGE)

        reference = ReferenceData(users, categories, self._settings)
        request = ExtractionRequest(
            utterance=utterance,
            users=list(reference.users),
            categories=list(reference.categories),
            current_date=_iso_date(current_date),
        )

        await self._audit_logger.log_utterance_received(
            utterance=utterance,
            user_count=len(reference.users),
            category_count=len(reference.categories),
            correlation_id=correlation_id,
        )

        try:
            raw = await self._invoke_backend(request, correlation_id)
        except Exception as e:
            message = _error_message(e)
            await self._audit_logger.log_backend_failed(
                error_message=message,
                correlation_id=correlation_id,
                error_type=type(e).__name__,
            )
            return error_action(message)

        if isinstance(raw, BaseModel):
            raw = raw.model_dump(by_alias=True)

        if _is_silent(raw):
            await self._audit_logger.log_backend_silent(correlation_id)
            return error_action(NO_RESPONSE_MESSAGE)

        result = await self._dispatch(raw, reference, correlation_id)

        await self._audit_logger.log_action_resolved(
            action=result.action.action,
            correlation_id=correlation_id,
        )
        return result.action

    async def _invoke_backend(
        self,
        request: ExtractionRequest,
        correlation_id: UUID,
    ) -> Any:
        """
        Call the backend. One attempt unless backend_max_attempts says
        otherwise; only BackendUnavailableError is retried.
        """
        await self._audit_logger.log_backend_called(
            backend=getattr(self._backend, "name", type(self._backend).__name__),
            current_date=request.current_date,
            correlation_id=correlation_id,
        )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.backend_max_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(BackendUnavailableError),
            reraise=True,
        )
        return await retrying(self._call_backend_once, request)

    async def _call_backend_once(self, request: ExtractionRequest) -> Any:
        timeout = self._settings.backend_timeout_seconds
        if timeout is None:
            return await self._backend.extract(request)

        try:
            return await asyncio.wait_for(self._backend.extract(request), timeout)
        except asyncio.TimeoutError as e:
            raise BackendTimeoutError(TIMEOUT_MESSAGE) from e

    async def _dispatch(
        self,
        raw: Any,
        reference: ReferenceData,
        correlation_id: UUID,
    ) -> ValidationResult:
        tag = action_name(raw)

        if tag == ActionType.ADD_TRANSACTION.value:
            draft = TransactionDraft.from_backend(raw.get("params"))
            candidate = canonicalize(draft, reference)

            if candidate.category_source != "exact_match":
                suggested = draft.category_name if isinstance(draft.category_name, str) else None
                await self._audit_logger.log_category_defaulted(
                    suggested_name=suggested,
                    category_id=candidate.category_id,
                    strategy=candidate.category_source,
                    correlation_id=correlation_id,
                )

            result = self._validator.validate_transaction(candidate)
        else:
            result = self._validator.validate_action(raw)

        label = tag or "UNKNOWN"
        if result.is_valid:
            await self._audit_logger.log_validation_passed(
                action=label,
                correlation_id=correlation_id,
            )
        else:
            await self._audit_logger.log_validation_failed(
                action=label,
                issues=result.issues_as_dicts(),
                correlation_id=correlation_id,
            )
            if result.needs_clarification:
                await self._audit_logger.log_clarification_requested(
                    missing_fields=result.missing_fields,
                    correlation_id=correlation_id,
                )

        return result


def create_resolver(
    backend: Optional[ExtractionBackend] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
    settings: Optional[ResolverSettings] = None,
) -> ResolutionOrchestrator:
    """
    Factory function to build a ready-to-use resolver.

    Args:
        backend: Extraction backend. Defaults to Gemini (needs GEMINI_API_KEY).
        audit_storage: Optional sink for audit events.
        settings: Resolver settings. Defaults to the environment.

    Returns:
        A ResolutionOrchestrator
    """
    return ResolutionOrchestrator(
        backend=backend or GeminiExtractionBackend(),
        audit_logger=AuditLogger(audit_storage),
        settings=settings or get_settings().resolver,
    )
