from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Runtime ---
    ENV: str = "dev"  # dev|test|prod
    CHOICE_DB_URL: str = "sqlite+aiosqlite:///./choice.db"
    LOG_LEVEL: str = "INFO"

    # --- Minimal service auth (API key) ---
    # Send: X-API-Key: <key>
    API_KEY: str | None = None

    # --- Credit bureau (mock today; a real bureau plugs in behind the same protocol) ---
    CREDIT_BUREAU_PROVIDER: str = "mock"
    CREDIT_MOCK_DELAY_S: float = 0.05

    # --- Email ---
    EMAIL_PROVIDER: str = "log"  # log|http
    EMAIL_API_URL: str | None = None
    EMAIL_API_KEY: str | None = None
    EMAIL_FROM: str = "Choice Properties <no-reply@choiceproperties.example>"

    # --- Property read cache ---
    PROPERTY_CACHE_TTL_S: float = 60.0

    # --- Outbound HTTP resilience ---
    HTTP_TIMEOUT_S: float = 15.0
    HTTP_MAX_RETRIES: int = 2
    HTTP_BACKOFF_BASE_S: float = 0.5
    HTTP_RATE_LIMIT_RPS: float = 5.0
    HTTP_CIRCUIT_FAIL_THRESHOLD: int = 5
    HTTP_CIRCUIT_RESET_S: float = 60.0


settings = Settings()
