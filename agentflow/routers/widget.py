"""Widget endpoints - embed codes, public config and click tracking"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from html import escape
import logging

from agentflow.config import get_settings
from agentflow.models.widget import (
    EmbedAgentSummary,
    EmbedCodeResponse,
    PublicWidgetConfig,
    WidgetDiagnosticsRequest,
    WidgetDiagnosticsResponse,
    WidgetInteractionRequest,
    WidgetInteractionResponse,
    WidgetPreviewClickResponse,
)
from agentflow.services.agent_store import AgentStore, get_agent_store
from agentflow.services.embed_service import build_widget_config, generate_embed_code, script_url
from agentflow.services.errors import ConfigurationError, UnknownPlatformError, WidgetError
from agentflow.services.interaction_tracker import InteractionTracker
from agentflow.services.platforms import get_platform
from agentflow.services.widget_codec import ENCODED_ATTRIBUTE, encode_config, locate_config_source, resolve_config
from agentflow.services.widget_controller import WidgetController

logger = logging.getLogger(__name__)
router = APIRouter()


def public_base_url(request: Request) -> str:
    """Origin embed snippets should load scripts from"""
    settings = get_settings()
    return (settings.public_base_url or str(request.base_url)).rstrip("/")


def get_interaction_tracker(request: Request) -> InteractionTracker:
    """Beacon sender pointed at this service's own tracking endpoint"""
    settings = get_settings()
    return InteractionTracker(
        f"{public_base_url(request)}{settings.tracking_path}",
        timeout=settings.tracking_timeout_seconds
    )


def _platform_or_400(platform: str):
    try:
        return get_platform(platform)
    except UnknownPlatformError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/agents/{agent_id}/embed-code", response_model=EmbedCodeResponse)
async def get_embed_code(
    agent_id: str,
    request: Request,
    platform: str = "whatsapp",
    store: AgentStore = Depends(get_agent_store)
):
    """Generate both embed snippet variants for an agent"""
    adapter = _platform_or_400(platform)
    try:
        agent = store.get_agent(agent_id)
        if not agent:
            raise HTTPException(status_code=404, detail="Agent not found")

        base_url = public_base_url(request)
        embed = generate_embed_code(agent, adapter, base_url)

        return EmbedCodeResponse(
            platform=adapter.name,
            script_url=script_url(base_url, adapter),
            secure_embed_code=embed.secure_embed_code,
            legacy_embed_code=embed.legacy_embed_code,
            agent=EmbedAgentSummary(
                id=agent.id,
                name=agent.name,
                widget_position=agent.widget_position or "bottom-right",
                widget_color=agent.widget_color,
                welcome_message=agent.welcome_message
            )
        )

    except HTTPException:
        raise
    except ConfigurationError as e:
        logger.warning(f"Embed code not generated for agent {agent_id}: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Error generating embed code: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate embed code")


@router.get("/agents/{agent_id}/widget-preview", response_class=HTMLResponse)
async def get_widget_preview(
    agent_id: str,
    platform: str = "whatsapp",
    store: AgentStore = Depends(get_agent_store)
):
    """Render the widget the way the encoded snippet would on a live page"""
    adapter = _platform_or_400(platform)
    try:
        agent = store.get_agent(agent_id)
        if not agent:
            raise HTTPException(status_code=404, detail="Agent not found")

        config = build_widget_config(agent, adapter)
        controller = WidgetController(adapter)
        if controller.mount([{ENCODED_ATTRIBUTE: encode_config(config)}]) is None:
            raise HTTPException(status_code=500, detail="Failed to render widget preview")
        controller.show_welcome_bubble()

        page = (
            "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
            f"<title>{escape(agent.name)} - {adapter.label} widget preview</title>"
            "</head><body>\n"
            f"{controller.render_html()}\n"
            "</body></html>"
        )
        return HTMLResponse(content=page)

    except HTTPException:
        raise
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Widget preview error: {e}")
        raise HTTPException(status_code=500, detail="Failed to render widget preview")


@router.post("/agents/{agent_id}/widget-preview/click", response_model=WidgetPreviewClickResponse)
async def click_widget_preview(
    agent_id: str,
    platform: str = "whatsapp",
    store: AgentStore = Depends(get_agent_store),
    tracker: InteractionTracker = Depends(get_interaction_tracker)
):
    """
    Click the previewed launcher: resolve the deep link and send the same
    beacon a live page would
    """
    adapter = _platform_or_400(platform)
    try:
        agent = store.get_agent(agent_id)
        if not agent:
            raise HTTPException(status_code=404, detail="Agent not found")

        config = build_widget_config(agent, adapter)
        controller = WidgetController(adapter, tracker=tracker)
        if controller.mount([{ENCODED_ATTRIBUTE: encode_config(config)}]) is None:
            raise HTTPException(status_code=500, detail="Failed to render widget preview")

        deep_link = await controller.click()
        return WidgetPreviewClickResponse(platform=adapter.name, deep_link=deep_link)

    except HTTPException:
        raise
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Widget preview click error: {e}")
        raise HTTPException(status_code=500, detail="Failed to click widget preview")


@router.get("/widget/config/{api_key}", response_model=PublicWidgetConfig)
async def get_widget_config(api_key: str, store: AgentStore = Depends(get_agent_store)):
    """
    Get widget configuration (PUBLIC endpoint - no auth required)
    Used by embedded widgets on customer websites
    """
    try:
        agent = store.get_agent_by_api_key(api_key)
        if not agent:
            raise HTTPException(status_code=404, detail="Agent not found")

        if not agent.is_active:
            raise HTTPException(status_code=403, detail="Agent is not active")

        return PublicWidgetConfig(
            welcome_message=agent.welcome_message,
            widget_color=agent.widget_color,
            widget_position=agent.widget_position or "bottom-right",
            whatsapp_number=agent.whatsapp_number,
            whatsapp_mode=agent.whatsapp_mode
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Widget config error: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch widget configuration")


@router.post(
    "/widget-interaction",
    response_model=WidgetInteractionResponse,
    status_code=status.HTTP_202_ACCEPTED
)
async def record_widget_interaction(
    interaction: WidgetInteractionRequest,
    request: Request,
    store: AgentStore = Depends(get_agent_store)
):
    """Record a widget click beacon (PUBLIC endpoint - attributed by api key)"""
    try:
        agent = store.get_agent_by_api_key(interaction.api_key)
        if not agent:
            raise HTTPException(status_code=404, detail="Agent not found")

        store.record_interaction(
            agent,
            interaction,
            user_agent=request.headers.get("user-agent"),
            referrer=request.headers.get("referer"),
            ip_address=request.client.host if request.client else None
        )
        return WidgetInteractionResponse(success=True)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Widget interaction error: {e}")
        raise HTTPException(status_code=500, detail="Failed to record interaction")


@router.post("/widget/diagnostics", response_model=WidgetDiagnosticsResponse)
async def diagnose_widget_snippet(body: WidgetDiagnosticsRequest):
    """Decode one script tag's attributes exactly as the browser script would"""
    adapter = _platform_or_400(body.platform)
    try:
        source = locate_config_source([body.attributes])
        config = resolve_config(source, adapter)
    except WidgetError as e:
        return WidgetDiagnosticsResponse(valid=False, error=str(e))

    return WidgetDiagnosticsResponse(
        valid=True,
        source=source.kind,
        config=config.to_payload(),
        deep_link=adapter.build_deep_link(config)
    )
