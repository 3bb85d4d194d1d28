from typing import Optional
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Shared
    APP_ENV: str = "dev"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Task store
    TASK_STORE_BACKEND: str = "hosted"  # hosted | sql
    TASK_STORE_URL: Optional[str] = None
    TASK_STORE_ANON_KEY: Optional[str] = None
    TASK_STORE_SERVER_URL: Optional[str] = None
    TASK_STORE_SERVER_KEY: Optional[str] = None
    TASK_STORE_TIMEOUT_SECONDS: Optional[float] = None
    DATABASE_URL: Optional[str] = None

    # Automation webhook
    AUTOMATION_WEBHOOK_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("AUTOMATION_WEBHOOK_URL", "N8N_WEBHOOK_URL"),
    )
    AUTOMATION_TIMEOUT_SECONDS: Optional[float] = None

    # UI client
    API_BASE_URL: str = "http://localhost:8000"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def server_store_url(self) -> Optional[str]:
        return (self.TASK_STORE_SERVER_URL or "").strip() or (self.TASK_STORE_URL or "").strip() or None

    @property
    def server_store_key(self) -> Optional[str]:
        return (self.TASK_STORE_SERVER_KEY or "").strip() or (self.TASK_STORE_ANON_KEY or "").strip() or None

    @property
    def automation_webhook_url(self) -> Optional[str]:
        return (self.AUTOMATION_WEBHOOK_URL or "").strip() or None

settings = Settings()
