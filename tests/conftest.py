import os
from typing import List, Optional

# Minimal environment setup before the app is imported
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("CONTACT_EMAIL", "owner@example.com")
os.environ.setdefault("OWNER_NAME", "Test Owner")

import pytest
from fastapi.testclient import TestClient

from portfolio_api.core.email import get_mail_dispatcher
from portfolio_api.core.rate_limiter import reset_rate_limiter_state
from portfolio_api.main import app
from portfolio_api.schemas.contact import OutboundMessage


class FakeDispatcher:
    """In-process stand-in for the SMTP relay.

    ``failures`` is consumed one entry per send; an exception entry is raised
    for that send, ``None`` lets it succeed.
    """

    def __init__(self, configured: bool = True, failures: Optional[list] = None) -> None:
        self.configured = configured
        self.failures = list(failures or [])
        self.sent: List[OutboundMessage] = []
        self.attempts = 0

    async def send(self, outbound: OutboundMessage) -> str:
        self.attempts += 1
        failure = self.failures.pop(0) if self.failures else None
        if failure is not None:
            raise failure
        self.sent.append(outbound)
        return f"<{self.attempts}.contact@test.local>"

    @property
    def notifications(self) -> List[OutboundMessage]:
        return [m for m in self.sent if m.reply_to is not None]

    @property
    def acknowledgements(self) -> List[OutboundMessage]:
        return [m for m in self.sent if m.reply_to is None]


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    reset_rate_limiter_state()
    yield
    reset_rate_limiter_state()


@pytest.fixture()
def make_dispatcher():
    return FakeDispatcher


@pytest.fixture()
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture()
def client(dispatcher):
    """
    TestClient with the mail dispatcher replaced by a FakeDispatcher.
    """
    app.dependency_overrides[get_mail_dispatcher] = lambda: dispatcher

    # Using 'with' context manager to trigger lifespan events (startup/shutdown)
    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def valid_payload() -> dict:
    return {
        "name": "Jo",
        "email": "jo@x.com",
        "message": "1234567890",
    }
