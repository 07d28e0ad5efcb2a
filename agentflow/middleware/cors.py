"""CORS middleware configuration"""
from fastapi.middleware.cors import CORSMiddleware
from agentflow.config import get_settings


def setup_cors(app):
    """
    Configure CORS middleware for the application

    Widget beacons arrive from arbitrary customer sites without cookies, so
    credentials are only allowed when origins are pinned.

    Args:
        app: FastAPI application instance
    """
    settings = get_settings()
    allow_any = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=not allow_any,
        allow_methods=["*"],
        allow_headers=["*"],
    )
