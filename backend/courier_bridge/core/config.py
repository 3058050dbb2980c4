from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices
import logging
import structlog
from pythonjsonlogger import jsonlogger

DEV_ENVIRONMENTS = {"dev", "development", "local", "test"}
PRODUCTION_ENVIRONMENTS = {"prod", "production"}


class Settings(BaseSettings):
    app_name: str = Field(default="courier-bridge", validation_alias=AliasChoices("APP_NAME", "app_name"))
    environment: str = Field(default="dev", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    app_url: str = Field(
        default="http://localhost:8000",
        validation_alias=AliasChoices("APP_URL", "app_url"),
    )

    twilio_base_url: str = Field(
        default="https://api.twilio.com",
        validation_alias=AliasChoices("TWILIO_BASE_URL", "twilio_base_url"),
    )
    twilio_account_sid: str = Field(
        default="", validation_alias=AliasChoices("TWILIO_ACCOUNT_SID", "twilio_account_sid")
    )
    twilio_auth_token: str = Field(
        default="", validation_alias=AliasChoices("TWILIO_AUTH_TOKEN", "twilio_auth_token")
    )
    twilio_phone_number: str = Field(
        default="", validation_alias=AliasChoices("TWILIO_PHONE_NUMBER", "twilio_phone_number")
    )
    courier_phone_number: str = Field(
        default="", validation_alias=AliasChoices("COURIER_PHONE_NUMBER", "courier_phone_number")
    )

    provider_retry_attempts: int = Field(
        default=3, ge=1, le=10,
        validation_alias=AliasChoices("PROVIDER_RETRY_ATTEMPTS", "provider_retry_attempts"),
    )
    provider_retry_delay_seconds: float = Field(
        default=1.0, ge=0,
        validation_alias=AliasChoices("PROVIDER_RETRY_DELAY_SECONDS", "provider_retry_delay_seconds"),
    )
    dial_timeout_seconds: int = Field(
        default=30, ge=5, le=120,
        validation_alias=AliasChoices("DIAL_TIMEOUT_SECONDS", "dial_timeout_seconds"),
    )

    supabase_url: str = Field(default="", validation_alias=AliasChoices("SUPABASE_URL", "supabase_url"))
    supabase_service_key: str = Field(
        default="", validation_alias=AliasChoices("SUPABASE_SERVICE_KEY", "supabase_service_key")
    )
    supabase_anon_key: str = Field(
        default="", validation_alias=AliasChoices("SUPABASE_ANON_KEY", "supabase_anon_key")
    )

    cron_secret: str = Field(default="", validation_alias=AliasChoices("CRON_SECRET", "cron_secret"))
    cors_origins: str = Field(default="*", validation_alias=AliasChoices("CORS_ORIGINS", "cors_origins"))
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))

    model_config = SettingsConfigDict(env_file=(".env", "backend/.env"), case_sensitive=False, extra="ignore")

    @property
    def twilio_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_phone_number)

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in PRODUCTION_ENVIRONMENTS

    @property
    def enforce_webhook_signature(self) -> bool:
        """Webhook signatures are checked everywhere except local/dev runs."""
        return self.environment.strip().lower() not in DEV_ENVIRONMENTS

    def public_url(self, path: str) -> str:
        return self.app_url.rstrip("/") + path


settings = Settings()


def setup_logging() -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(jsonlogger.JsonFormatter("%(levelname)s %(message)s %(name)s %(asctime)s"))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        cache_logger_on_first_use=True,
    )
