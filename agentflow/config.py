"""Application configuration"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # Supabase (agent store)
    supabase_url: str
    supabase_service_role_key: str

    # Application
    environment: str = "production"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # Widget delivery
    # Origin that serves /widget/*.js; the request's own base URL when empty
    public_base_url: str = ""
    tracking_path: str = "/api/widget-interaction"
    tracking_timeout_seconds: float = 5.0
    widget_script_max_age: int = 300

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
