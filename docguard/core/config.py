from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


# Bytes reserved for the non-title fields of a deleted-document snapshot
AUDIT_DETAILS_HEADROOM = 1024


class Settings(BaseSettings):
    # App
    app_name: str = "DocGuard"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./docguard.db"

    # Redis (only used by the redis rate limit backend)
    redis_url: str = "redis://localhost:6379/0"

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = False

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_backend: str = "memory"  # memory | redis
    rate_limit_window: int = 60  # seconds
    rate_limit_search: int = 20  # full-text searches per window
    rate_limit_list: int = 60  # unfiltered listings per window

    # Transactions
    transaction_timeout_seconds: float = 5.0

    # Input ceilings
    section_content_max_bytes: int = 50 * 1024
    section_content_max_depth: int = 10
    title_max_length: int = 200
    description_max_length: int = 2000
    comment_max_length: int = 5000
    search_max_length: int = 100
    list_max_results: int = 200

    # Audit
    audit_details_max_bytes: int = 2048

    # Default A3 layout for new documents, comma separated section keys
    default_sections: str = (
        "background,current_condition,goal,root_cause_analysis,"
        "countermeasures,implementation_plan,follow_up"
    )

    @property
    def audit_details_limit(self) -> int:
        """Effective ceiling; never below what a full-length title snapshot needs."""
        # A UTF-8 character takes at most 4 bytes
        return max(self.audit_details_max_bytes, self.title_max_length * 4 + AUDIT_DETAILS_HEADROOM)

    @property
    def default_sections_list(self) -> list[str]:
        return [key.strip() for key in self.default_sections.split(",") if key.strip()]

    model_config = SettingsConfigDict(
        env_prefix="DOCGUARD_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Allow extra env vars without raising validation errors
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
