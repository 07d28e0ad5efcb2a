"""Main FastAPI application"""
from fastapi import FastAPI
from agentflow.config import get_settings
from agentflow.middleware.cors import setup_cors
from agentflow.middleware.error_handler import ErrorHandlerMiddleware
from agentflow.routers import scripts, widget
import logging

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="AgentFlow API",
    description="Embeddable AI chat agent widgets for websites and messaging platforms",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Setup CORS
setup_cors(app)

# Add error handling middleware
app.add_middleware(ErrorHandlerMiddleware)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "agentflow-backend", "environment": settings.environment}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "AgentFlow Backend API",
        "version": "1.0.0",
        "docs": "/docs"
    }


app.include_router(widget.router, prefix="/api", tags=["Widget"])
app.include_router(scripts.router, prefix="/widget", tags=["Widget Scripts"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
