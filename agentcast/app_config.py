from pydantic import BaseModel

from agentcast.domain.live.stream import StreamSettings
from agentcast.shared.config import config
from agentcast.shared.rate_limiter import RateLimitRule


class AppEnvironConfig(BaseModel):
    APP_ENV: str = (config.get("APP_ENV") or "development").strip().lower()
    DEBUG: bool = config.get_bool("DEBUG")

    API_HOST: str = (config.get("API_HOST") or "0.0.0.0").strip()
    API_PORT: int = config.get_int("API_PORT", 3000)
    API_WORKERS: int = config.get_int("API_WORKERS", 1)

    # Opaque privileged-caller secret for the admin surface
    ADMIN_PASSWORD: str = (config.get("ADMIN_PASSWORD") or "").strip()

    MAX_VIEWERS_PER_STREAM: int = config.get_int("MAX_VIEWERS_PER_STREAM", 1000)
    STREAM_LINE_LIMIT: int = config.get_int("STREAM_LINE_LIMIT", 500)
    CHAT_MESSAGE_LIMIT: int = config.get_int("CHAT_MESSAGE_LIMIT", 200)
    ACTIVITY_LOG_LIMIT: int = config.get_int("ACTIVITY_LOG_LIMIT", 50)
    INACTIVITY_TIMEOUT_SECONDS: float = config.get_float("INACTIVITY_TIMEOUT_SECONDS", 300)
    MAINTENANCE_INTERVAL_SECONDS: float = config.get_float("MAINTENANCE_INTERVAL_SECONDS", 60)
    SUBSCRIBER_QUEUE_SIZE: int = config.get_int("SUBSCRIBER_QUEUE_SIZE", 256)

    SEND_RATE_WINDOW_SECONDS: float = config.get_float("SEND_RATE_WINDOW_SECONDS", 60)
    SEND_RATE_MAX: int = config.get_int("SEND_RATE_MAX", 100)
    CONNECT_RATE_WINDOW_SECONDS: float = config.get_float("CONNECT_RATE_WINDOW_SECONDS", 60)
    CONNECT_RATE_MAX: int = config.get_int("CONNECT_RATE_MAX", 10)
    CREATE_RATE_WINDOW_SECONDS: float = config.get_float("CREATE_RATE_WINDOW_SECONDS", 3600)
    CREATE_RATE_MAX: int = config.get_int("CREATE_RATE_MAX", 10)
    CHAT_COOLDOWN_SECONDS: float = config.get_float("CHAT_COOLDOWN_SECONDS", 6)

    LOGFIRE_ENABLE: bool = config.get_bool("LOGFIRE_ENABLE")
    LOGFIRE_TOKEN: str | None = (config.get("LOGFIRE_TOKEN") or "").strip() or None

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    def stream_settings(self) -> StreamSettings:
        return StreamSettings(
            max_viewers_per_stream=self.MAX_VIEWERS_PER_STREAM,
            line_limit=self.STREAM_LINE_LIMIT,
            chat_limit=self.CHAT_MESSAGE_LIMIT,
            activity_limit=self.ACTIVITY_LOG_LIMIT,
            inactivity_timeout_seconds=self.INACTIVITY_TIMEOUT_SECONDS,
            subscriber_queue_size=self.SUBSCRIBER_QUEUE_SIZE,
            send_rule=RateLimitRule(self.SEND_RATE_WINDOW_SECONDS, self.SEND_RATE_MAX),
            connect_rule=RateLimitRule(self.CONNECT_RATE_WINDOW_SECONDS, self.CONNECT_RATE_MAX),
            create_rule=RateLimitRule(self.CREATE_RATE_WINDOW_SECONDS, self.CREATE_RATE_MAX),
            chat_rule=RateLimitRule(self.CHAT_COOLDOWN_SECONDS, 1),
        )


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
