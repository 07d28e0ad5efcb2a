"""Read access to agent records and widget event recording"""
from typing import Any, Dict, Optional
import logging

from supabase import Client

from agentflow.database import get_supabase_admin
from agentflow.models.widget import AgentRecord, WidgetInteractionRequest
from agentflow.utils.retry import retry_supabase_query

logger = logging.getLogger(__name__)

AGENTS_TABLE = "agents"
EVENTS_TABLE = "conversion_events"


class AgentStore:
    """Thin repository over the Supabase agents table"""

    def __init__(self, client: Client):
        self.client = client

    def _first(self, column: str, value: Any) -> Optional[AgentRecord]:
        result = retry_supabase_query(
            lambda: self.client.table(AGENTS_TABLE).select("*").eq(
                column, value
            ).limit(1).execute()
        )
        if not result.data:
            return None
        return AgentRecord.model_validate(result.data[0])

    def get_agent(self, agent_id: str) -> Optional[AgentRecord]:
        return self._first("id", agent_id)

    def get_agent_by_api_key(self, api_key: str) -> Optional[AgentRecord]:
        return self._first("api_key", api_key)

    def record_interaction(
        self,
        agent: AgentRecord,
        interaction: WidgetInteractionRequest,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Store one widget beacon as a conversion event"""
        row = {
            "agent_id": agent.id,
            "event_type": interaction.action,
            "event_data": {
                "platform": interaction.platform,
                "client_timestamp": interaction.timestamp.isoformat(),
            },
            "user_agent": user_agent,
            "referrer": referrer,
            "ip_address": ip_address,
        }
        result = retry_supabase_query(
            lambda: self.client.table(EVENTS_TABLE).insert(row).execute()
        )
        logger.info(f"Recorded {interaction.action} for agent {agent.id} on {interaction.platform}")
        return result.data[0] if result.data else row


def get_agent_store() -> AgentStore:
    """FastAPI dependency providing the agent store"""
    return AgentStore(get_supabase_admin())
