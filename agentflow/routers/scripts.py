"""Static-style delivery of the platform widget scripts"""
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
import logging

from agentflow.config import get_settings
from agentflow.routers.widget import public_base_url
from agentflow.services.errors import UnknownPlatformError
from agentflow.services.platforms import get_platform
from agentflow.services.widget_script import render_widget_script

logger = logging.getLogger(__name__)
router = APIRouter()

SCRIPT_SUFFIX = "-widget.js"


@router.get("/{script_name}")
async def get_widget_script(script_name: str, request: Request):
    """
    Serve a platform widget JavaScript file (PUBLIC endpoint)
    This is the script embed snippets point at, e.g. /widget/telegram-widget.js
    """
    if not script_name.endswith(SCRIPT_SUFFIX):
        raise HTTPException(status_code=404, detail="Widget script not found")

    platform = script_name[:-len(SCRIPT_SUFFIX)]
    if platform.startswith("agentflow-"):
        platform = platform[len("agentflow-"):]

    try:
        adapter = get_platform(platform)
    except UnknownPlatformError:
        raise HTTPException(status_code=404, detail="Widget script not found")

    settings = get_settings()
    tracking_url = f"{public_base_url(request)}{settings.tracking_path}"
    script = render_widget_script(adapter, tracking_url)

    return Response(
        content=script,
        media_type="application/javascript",
        headers={"Cache-Control": f"public, max-age={settings.widget_script_max_age}"}
    )
