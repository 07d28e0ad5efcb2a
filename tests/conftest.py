"""Shared test fixtures for the AgentFlow widget test suite."""

from __future__ import annotations

import os

import pytest


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    Settings are read when agentflow.main is imported, so this must run first.
    """
    os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
    os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("PUBLIC_BASE_URL", "https://app.agentflow.test")


class FakeAgentStore:
    """In-memory stand-in for the Supabase-backed AgentStore."""

    def __init__(self, agents=None):
        self.agents = list(agents or [])
        self.interactions = []

    def get_agent(self, agent_id):
        for agent in self.agents:
            if str(agent.id) == str(agent_id):
                return agent
        return None

    def get_agent_by_api_key(self, api_key):
        for agent in self.agents:
            if agent.api_key == api_key:
                return agent
        return None

    def record_interaction(self, agent, interaction, user_agent=None, referrer=None, ip_address=None):
        row = {
            "agent_id": agent.id,
            "event_type": interaction.action,
            "platform": interaction.platform,
            "user_agent": user_agent,
            "referrer": referrer,
        }
        self.interactions.append(row)
        return row


@pytest.fixture
def make_agent():
    """Factory fixture for agent records with sensible defaults."""
    from agentflow.models.widget import AgentRecord

    def _make(**overrides):
        data = {
            "id": 1,
            "name": "Acme Support",
            "status": "active",
            "api_key": "af_live_123",
            "widget_position": "bottom-right",
            "widget_color": "#25D366",
            "welcome_message": "Hi there",
            "whatsapp_number": "+1 (555) 123-4567",
            "whatsapp_mode": "web",
        }
        data.update(overrides)
        return AgentRecord(**data)

    return _make


@pytest.fixture
def agent_store(make_agent):
    return FakeAgentStore([
        make_agent(),
        make_agent(id=2, name="Draft Bot", api_key=None),
        make_agent(id=3, name="Paused Bot", api_key="af_paused", status="paused"),
        make_agent(
            id=4,
            name="Telegram Bot",
            api_key="af_tg",
            telegram_username="acme_bot",
            widget_color=None,
            whatsapp_number=None,
        ),
    ])


@pytest.fixture
def client(agent_store):
    """FastAPI test client with the fake agent store wired in."""
    from fastapi.testclient import TestClient

    from agentflow.main import app
    from agentflow.services.agent_store import get_agent_store

    app.dependency_overrides[get_agent_store] = lambda: agent_store
    yield TestClient(app)
    app.dependency_overrides.clear()
