"""Tests for the Supabase-backed agent store."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

from agentflow.models.widget import WidgetInteractionRequest
from agentflow.services.agent_store import AgentStore


def _client_returning(rows):
    client = MagicMock()
    query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    query.execute.return_value = MagicMock(data=rows)
    client.table.return_value.insert.return_value.execute.return_value = MagicMock(data=[{"id": 99}])
    return client


class TestAgentStore:
    def test_get_agent_by_api_key(self):
        client = _client_returning([{"id": 7, "name": "Acme", "api_key": "k7", "extra_column": True}])
        agent = AgentStore(client).get_agent_by_api_key("k7")

        assert agent.id == 7
        assert agent.api_key == "k7"
        client.table.assert_called_with("agents")
        client.table.return_value.select.return_value.eq.assert_called_with("api_key", "k7")

    def test_missing_agent_returns_none(self):
        assert AgentStore(_client_returning([])).get_agent("404") is None

    def test_record_interaction_inserts_conversion_event(self, make_agent):
        client = _client_returning([])
        interaction = WidgetInteractionRequest(
            api_key="af_live_123",
            platform="whatsapp",
            timestamp=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        )

        result = AgentStore(client).record_interaction(
            make_agent(), interaction, user_agent="Mozilla/5.0", referrer="https://shop.example.com/"
        )

        assert result == {"id": 99}
        client.table.assert_called_with("conversion_events")
        row = client.table.return_value.insert.call_args[0][0]
        assert row["agent_id"] == 1
        assert row["event_type"] == "widget_click"
        assert row["event_data"] == {
            "platform": "whatsapp",
            "client_timestamp": "2026-01-02T03:04:05+00:00",
        }
        assert row["referrer"] == "https://shop.example.com/"
