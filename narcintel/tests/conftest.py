import copy
import os

# Keep the module-level app off the filesystem during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient

from narcintel.api.server import create_app
from narcintel.config import Settings
from narcintel.database import build_engine
from narcintel.services.document_store import DocumentStore, SQLDocumentStore
from narcintel.services.llm_client import FlowError


CONTENT_ANALYSIS_RESPONSE = {
    "indicators": ["chemicals", "request for private messages"],
    "riskLevel": "Medium",
    "reasoning": "Mentions untested chemicals and asks buyers to message privately.",
    "matchedKeywords": ["chemicals", "researchchem"],
    "matchedEmojis": ["🧪"],
}

RISK_ASSESSMENT_RESPONSE = {
    "riskScore": 65,
    "riskLevel": "Medium",
    "indicators": ["chemicals"],
}

REPORT_RESPONSE = {
    "report": "The post advertises research chemicals and solicits private contact.",
}

USER_IDENTIFICATION_RESPONSE = {
    "linkedProfiles": ["Instagram:nycsnowman", "WhatsApp:coke_dealer_nyc"],
    "email": "tony@montana.com",
    "riskLevel": "Critical",
    "summary": "Username references cocaine sales in New York.",
}


class FakeLLM:
    """
    Scripted stand-in for LLMClient.

    responses maps flow name -> JSON dict to return, or an exception to raise.
    """

    def __init__(self, responses=None):
        self.responses = {
            "content_analysis": CONTENT_ANALYSIS_RESPONSE,
            "risk_assessment": RISK_ASSESSMENT_RESPONSE,
            "report_generation": REPORT_RESPONSE,
            "user_identification": USER_IDENTIFICATION_RESPONSE,
        }
        self.responses.update(responses or {})
        self.calls = []

    def complete_json(self, flow, system_msg, user_content, vision=False):
        self.calls.append(
            {"flow": flow, "system_msg": system_msg, "user_content": user_content, "vision": vision}
        )
        response = self.responses.get(flow)
        if isinstance(response, Exception):
            raise response
        if response is None:
            raise FlowError(flow, "no scripted response")
        return copy.deepcopy(response)

    def flows_called(self):
        return [call["flow"] for call in self.calls]


class BrokenStore(DocumentStore):
    """Store whose every operation fails, as an unreachable database would."""

    def add(self, collection, data):
        raise RuntimeError("connection refused")

    def set(self, collection, doc_id, data, merge=False):
        raise RuntimeError("connection refused")

    def get(self, collection, doc_id):
        raise RuntimeError("connection refused")

    def list(self, collection, order_by=None, limit=None):
        raise RuntimeError("connection refused")

    def count(self, collection):
        raise RuntimeError("connection refused")

    def batch(self):
        raise RuntimeError("connection refused")


@pytest.fixture
def fake_llm():
    """LLM client returning a Medium-risk analysis by default."""
    return FakeLLM()


@pytest.fixture
def store():
    """Fresh in-memory document store."""
    return SQLDocumentStore(build_engine("sqlite://"))


@pytest.fixture
def client(fake_llm, store):
    """FastAPI test client with the fake LLM and in-memory store injected."""
    app = create_app(config=Settings(database_url="sqlite://"), llm=fake_llm, document_store=store)
    return TestClient(app)


@pytest.fixture
def client_without_store(fake_llm):
    """Test client for a process where persistence is disabled."""
    app = create_app(config=Settings(database_url=""), llm=fake_llm)
    return TestClient(app)


@pytest.fixture
def sample_submission():
    """Content analysis form payload that passes validation."""
    return {
        "platform": "Telegram",
        "channel": "@chemcentral",
        "content": "Testing out some new chemicals. Looking for psychonauts to give feedback. #researchchem",
    }


@pytest.fixture
def make_llm():
    """Factory for FakeLLM instances with overridden flow responses."""
    return FakeLLM


@pytest.fixture
def broken_store():
    """Store that fails every operation."""
    return BrokenStore()


@pytest.fixture
def client_with_broken_store(fake_llm, broken_store):
    """Test client whose database is unreachable."""
    app = create_app(config=Settings(database_url="sqlite://"), llm=fake_llm, document_store=broken_store)
    return TestClient(app)
