import secrets

from pydantic import Field
from pydantic_settings import BaseSettings

from stigmatized.services.state_machine import RoutingMode

REQUIRED_SECRETS = ("fb_page_token", "fb_app_secret")


class StartupConfigError(Exception):
    """Required process configuration is missing."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required settings: {', '.join(name.upper() for name in missing)}")


def _generate_verify_token() -> str:
    return secrets.token_hex(8)


class Settings(BaseSettings):
    wit_token: str = ""
    wit_api_url: str = "https://api.wit.ai"
    wit_api_version: str = "20200513"

    fb_page_token: str = ""
    fb_app_secret: str = ""
    # Registered with the platform by the operator; logged at startup.
    fb_verify_token: str = Field(default_factory=_generate_verify_token)
    graph_api_url: str = "https://graph.facebook.com"

    http_timeout_seconds: float = 10.0
    session_ttl_seconds: float = 86400
    session_sweep_interval_seconds: float = 300
    routing_mode: RoutingMode = RoutingMode.LABEL

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000

    class Config:
        env_file = ".env"
        extra = "ignore"

    def missing_secrets(self) -> list[str]:
        return [name for name in REQUIRED_SECRETS if not getattr(self, name)]

    def require_secrets(self) -> None:
        """Raise StartupConfigError if the page token or app secret is unset."""
        missing = self.missing_secrets()
        if missing:
            raise StartupConfigError(missing)


settings = Settings()


def get_settings() -> Settings:
    return settings
