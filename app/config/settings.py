from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # Database (SQLite file; the directory is created on startup)
    database_url: str = "sqlite:///./data/studygroups.db"
    database_echo: bool = False
    backup_dir: str = "backups"

    # Session tokens
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # SMS verification
    verification_code_ttl_minutes: int = 10
    verification_code_length: int = 6

    # Groups
    default_max_members: int = 25
    public_base_url: str = "http://localhost:3000"
    admin_phones: str = ""  # comma separated; allowed to read /admin endpoints

    # Schedule
    max_events_per_day: int = 5
    max_events_per_week: int = 20
    time_slots: str = "8:30-10:00,10:10-11:40,11:50-13:20,13:40-15:10,15:20-16:50,17:00-18:30"

    # Lecture notes
    max_notes_per_event: int = 2

    # App
    app_name: str = "studygroups-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    rate_limit_enabled: bool = True
    code_request_rate_limit: str = "5/minute"
    code_verify_rate_limit: str = "10/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_admin_phones_list(self) -> List[str]:
        return [p.strip() for p in self.admin_phones.split(",") if p.strip()]

    def get_time_slots_list(self) -> List[str]:
        return [s.strip() for s in self.time_slots.split(",") if s.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
