import os
from functools import lru_cache
from pydantic import BaseModel


def _int_list(value: str) -> list[int]:
    return [int(part) for part in value.split(",") if part.strip()]


class Settings(BaseModel):
    env: str = os.getenv("ENV", "dev")
    port: int = int(os.getenv("PORT", "8080"))
    log_level: str = os.getenv("LOG_LEVEL", "info")

    # Application URLs
    app_url: str = os.getenv("APP_URL", "http://localhost:5173")

    # Session Configuration
    session_secret_key: str = os.getenv(
        "SESSION_SECRET_KEY", "dev-secret-change-in-production"
    )
    session_cookie_name: str = "user_lookup_session"
    # Session expiry in seconds (default: 7 days = 604800 seconds)
    session_cookie_max_age: int = int(os.getenv("SESSION_COOKIE_MAX_AGE", "604800"))

    # Database
    db_url: str | None = os.getenv("DB_URL")

    # User search
    # Free-text search over display names (otherwise usernames only)
    enable_names: bool = os.getenv("ENABLE_NAMES", "true").lower() == "true"
    user_search_default_limit: int = int(os.getenv("USER_SEARCH_DEFAULT_LIMIT", "20"))
    user_search_max_limit: int = int(os.getenv("USER_SEARCH_MAX_LIMIT", "50"))
    # Upper bound on restricted-category members considered per search
    user_search_category_member_cap: int = int(
        os.getenv("USER_SEARCH_CATEGORY_MEMBER_CAP", "200")
    )
    # Trust level groups (tl0/tl1/tl2) never grant category-tier matches
    user_search_excluded_group_ids: list[int] = _int_list(
        os.getenv("USER_SEARCH_EXCLUDED_GROUP_IDS", "10,11,12")
    )

    # Observability
    otel_exporter_otlp_endpoint: str | None = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    otel_debug: bool = os.getenv("OTEL_DEBUG", "false").lower() == "true"


@lru_cache
def get_settings() -> Settings:
    return Settings()
