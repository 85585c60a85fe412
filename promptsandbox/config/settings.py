"""Runtime settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PSB_", extra="ignore")

    app_name: str = "PromptSandbox"
    log_level: str = "info"
    # empty string disables the rotating log file
    log_dir: str = "logs"
    host: str = "127.0.0.1"
    port: int = 18090

    gateway_url: str = "https://openrouter.ai/api/v1/chat/completions"
    gateway_timeout_seconds: float = 60.0
    gateway_max_connections: int = 100
    gateway_max_keepalive_connections: int = 20
    # sent as HTTP-Referer / X-Title so the gateway can attribute traffic
    app_referer: str = "http://localhost:5173"
    app_title: str = "Prompt Sandbox"

    stagger_interval_ms: int = Field(default=1000, ge=0)
    max_text_attachment_chars: int = Field(default=10_000, ge=1)
    max_attachments: int = Field(default=20, ge=0)
    system_prompt: str = "You are a helpful AI assistant. Provide clear, accurate, and thoughtful responses."

    # empty string means built-in models only
    model_registry_path: str = ""


settings = Settings()
