from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "devcamper-api"
    environment: str = "development"
    log_level: str = "INFO"

    mongo_port: int = 27017
    mongo_host: str = "localhost"
    mongo_db: str = "devcamper"
    mongo_password: str | None = None
    mongo_user: str | None = None
    mongo_srv: bool = False

    jwt_algorithm: str = "HS256"
    jwt_secret_key: str = "very-secret-key"
    jwt_expire_days: int = 30
    jwt_cookie_expire_days: int = 30

    reset_token_bytes: int = 20
    reset_token_expire_minutes: int = 10
    # Reset links use this origin when set, instead of the request Host
    public_base_url: str | None = None

    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    from_email: str = "noreply@devcamper.io"
    from_name: str = "DevCamper"

    redis_db: int = 0
    redis_port: int = 6379
    redis_host: str = "localhost"
    redis_password: str | None = None

    rate_limit_window_seconds: int = 600
    rate_limit_max_requests: int = 100

    default_page_limit: int = 25
    max_page_limit: int = 100

    model_config = SettingsConfigDict(env_file=(".env",), frozen=True)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def mongo_uri(self) -> str:
        auth = ""
        if self.mongo_user and self.mongo_password:
            auth = f"{self.mongo_user}:{self.mongo_password}@"
        if self.mongo_srv:
            return f"mongodb+srv://{auth}{self.mongo_host}/{self.mongo_db}?retryWrites=true&w=majority"
        return f"mongodb://{auth}{self.mongo_host}:{self.mongo_port}/{self.mongo_db}"


settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide settings."""
    return settings
