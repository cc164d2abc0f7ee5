"""
Shared fixtures.

No real API calls in tests: the generative backend is replaced by
FakeBackend, which replays a scripted reply (or raises).
"""

from typing import Any, Optional

import pytest
from tenacity import wait_none

from zerobalance.agents import ExtractionBackend, ExtractionRequest
from zerobalance.audit import AuditLogger
from zerobalance.config import ResolverSettings
from zerobalance.orchestrator import ResolutionOrchestrator
from zerobalance.services.storage import InMemoryAuditStorage


class FakeBackend(ExtractionBackend):
    """Scripted backend. Each call pops the next reply; exceptions are raised."""

    name = "fake"

    def __init__(self, *replies: Any):
        self._replies = list(replies)
        self.requests: list[ExtractionRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def extract(self, request: ExtractionRequest) -> Optional[dict]:
        self.requests.append(request)
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply


def add_transaction(**params: Any) -> dict:
    """Backend-style ADD_TRANSACTION reply. Pass ... to leave a field out."""
    base = {
        "userId": "u1",
        "description": "Groceries",
        "amount": 500,
        "date": "2024-03-09",
        "categoryName": "Groceries",
        "type": "expense",
    }
    base.update(params)
    return {"action": "ADD_TRANSACTION", "params": {k: v for k, v in base.items() if v is not ...}}


@pytest.fixture
def users() -> list[dict]:
    return [
        {"id": "u1", "name": "Alice"},
        {"id": "u2", "name": "Bob"},
    ]


@pytest.fixture
def categories() -> list[dict]:
    return [
        {"id": "food-dining", "name": "Food & Dining"},
        {"id": "groceries", "name": "Groceries"},
        {"id": "utilities", "name": "Utilities"},
        {"id": "other", "name": "Other"},
    ]


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def make_resolver(audit_storage):
    """Build a resolver around a FakeBackend with the given replies."""

    def _make(*replies: Any, **settings: Any) -> tuple[ResolutionOrchestrator, FakeBackend]:
        backend = FakeBackend(*replies)
        resolver = ResolutionOrchestrator(
            backend=backend,
            audit_logger=AuditLogger(audit_storage),
            settings=ResolverSettings(**settings),
            retry_wait=wait_none(),
        )
        return resolver, backend

    return _make
