from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Salon Admin Dashboard"
    LOG_LEVEL: str = "INFO"

    # CORS origins of the admin dashboard front-end
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Data store: "sql" (SQLAlchemy over DATABASE_URL) or "rest" (hosted PostgREST)
    DATA_STORE_BACKEND: str = "sql"
    DATABASE_URL: str = "sqlite:///./salon.db"

    # Hosted REST backend
    REST_URL: str = "http://localhost:54321"
    REST_API_KEY: str = ""
    REST_TIMEOUT_SECONDS: float = 30.0
    # collection -> hosted table name, e.g. {"sales": "dd-ventes"}
    REST_TABLE_NAMES: dict[str, str] = {}
    # collection -> {field: hosted column}, e.g. {"sales": {"net": "total_net"}}
    REST_COLUMN_NAMES: dict[str, dict[str, str]] = {}

    # Reporting windows and limits
    DASHBOARD_MONTHS: int = 6
    ANALYTICS_DEFAULT_DAYS: int = 30
    REPORT_DEFAULT_DAYS: int = 30
    DASHBOARD_TOP_N: int = 5
    REPORT_TOP_N: int = 10
    LOW_STOCK_THRESHOLD: int = 10
    DEFAULT_PAGE_SIZE: int = 20

    UNKNOWN_LABEL: str = "inconnu"
    DEFAULT_LANGUAGE: str = "fr"


settings = Settings()
