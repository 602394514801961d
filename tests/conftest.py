"""
Test configuration and fixtures for the Referral Waitlist API.

The contact directory is replaced by an in-memory fake so the signup flow can
be exercised without talking to Loops.
"""

import asyncio
import os
from typing import Any, Dict, Generator, List, Optional, Set

import pytest
from fastapi.testclient import TestClient


os.environ.setdefault("LOOPS_API_KEY", "test-key")
os.environ.setdefault("LOOPS_TRANSACTIONAL_ID", "tx-confirm")
os.environ.setdefault("LOOPS_BADGE_TRANSACTIONAL_ID", "tx-badge")
os.environ.setdefault("BASE_URL", "https://example.com/waitlist")

from app.features.waitlist.exceptions import DirectoryError, UpstreamConflict


class FakeDirectory:
    """In-memory stand-in for LoopsDirectoryClient, recording every call."""

    def __init__(self):
        self.contacts: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self.emails: List[Dict[str, Any]] = []
        self.fail_on: Set[str] = set()
        self.create_error: Optional[Exception] = None
        self.yield_after_find = False

    def _record(self, name: str, *args):
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise DirectoryError(f"{name} failed", status_code=500)

    def add_contact(self, email: str, **fields) -> Dict[str, Any]:
        contact = {"email": email, "referralCount": 0, "badge": "", **fields}
        self.contacts[email] = contact
        return contact

    async def create_contact(self, email: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        self._record("create_contact", email)
        if self.create_error is not None:
            raise self.create_error
        if email in self.contacts:
            raise UpstreamConflict(payload={"success": False, "message": "Email already on list."})
        self.contacts[email] = {"email": email, **properties}
        return {"success": True, "id": f"id-{len(self.contacts)}"}

    async def find_contacts(self, *, email=None, user_id=None) -> List[Dict[str, Any]]:
        self._record("find_contacts", email or user_id)
        found = [
            dict(c)
            for c in self.contacts.values()
            if (email is not None and c["email"] == email)
            or (user_id is not None and c.get("userId") == user_id)
        ]
        if self.yield_after_find:
            # Let a concurrent signup run up to its own lookup.
            await asyncio.sleep(0)
        return found

    async def list_contacts(self, page: int = 1, per_page: int = 50) -> List[Dict[str, Any]]:
        self._record("list_contacts", page)
        contacts = [dict(c) for c in self.contacts.values()]
        start = (page - 1) * per_page
        return contacts[start:start + per_page]

    async def update_contact(self, email: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        self._record("update_contact", email)
        self.contacts.setdefault(email, {"email": email}).update(properties)
        return {"success": True}

    async def send_transactional(
        self, transactional_id: str, email: str, data_variables: Dict[str, Any]
    ) -> Dict[str, Any]:
        self._record("send_transactional", transactional_id, email)
        self.emails.append(
            {"transactionalId": transactional_id, "email": email, "dataVariables": data_variables}
        )
        return {"success": True}

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def waitlist_config():
    from app.features.waitlist.services.waitlist import WaitlistConfig

    return WaitlistConfig(
        api_url="https://loops.test/api/v1",
        api_key="test-key",
        base_url="https://example.com/waitlist",
        confirmation_template_id="tx-confirm",
        badge_template_id="tx-badge",
    )


@pytest.fixture
def orchestrator(waitlist_config, fake_directory):
    from app.features.waitlist.services.waitlist import SignupOrchestrator

    return SignupOrchestrator(waitlist_config, fake_directory)


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application."""
    from app.main import app

    return app


@pytest.fixture(scope="function")
def client(test_app, orchestrator) -> Generator[TestClient, None, None]:
    """
    Test client whose waitlist endpoint runs against the fake directory.
    The dependency override is removed again after each test.
    """
    from app.features.waitlist.routes.waitlist import get_orchestrator

    test_app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    with TestClient(test_app, raise_server_exceptions=False) as test_client:
        yield test_client
    test_app.dependency_overrides.pop(get_orchestrator, None)
