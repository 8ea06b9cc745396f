from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_ENV: str = "local"
    APP_NAME: str = "event-ops"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "postgresql+psycopg://postgres:postgres@db:5432/evops"
    REDIS_URL: str = "redis://redis:6379/0"
    CELERY_BROKER_URL: str = "redis://redis:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://redis:6379/1"

    JWT_SECRET: str = "dev_secret_change_me"
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    CORS_ORIGINS: str = "http://localhost:3000"

    # Comma-separated peer addresses allowed to set CF-Connecting-IP / X-Real-IP /
    # X-Forwarded-For. Empty means every peer is trusted.
    TRUSTED_PROXIES: str = ""

    AUDIT_RETENTION_DAYS: int = 90
    AUDIT_CLEANUP_BATCH_SIZE: int = 1000
    AUDIT_CLEANUP_HOUR_UTC: int = 3

    LOCKOUT_CLEANUP_HOURS: int = 6

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_CLEANUP_MINUTES: int = 60

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def trusted_proxies(self) -> set[str]:
        return {p.strip() for p in self.TRUSTED_PROXIES.split(",") if p.strip()}


settings = Settings()
