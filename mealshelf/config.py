from typing import Dict, Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Core
    log_level: str = "INFO"
    service_env: str = "dev"  # dev|prod
    server_public_url: str = "http://localhost:8000"

    # OpenAI (estimación nutricional)
    openai_base_url: str = "https://api.openai.com/v1"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    llm_timeout_s: int = 30
    llm_max_concurrency: int = 3

    # CORS
    cors_allow_origins: str = "*"
    cors_allow_credentials: bool = True
    cors_allow_methods: str = "*"
    cors_allow_headers: str = "*"

    # DB
    db_url: str = "sqlite:///./mealshelf.db"

    # Auth / multiusuario
    api_keys: str = "default:demo123"
    auth_fallback_user: Optional[str] = "default"
    jwt_secret: str = "change-me-dev"
    jwt_expire_minutes: int = 120
    auth_dev_pin: Optional[str] = None

    # Rate limiting
    rate_limit_rpm: int = 60
    rate_limit_burst: int = 60

    # Redis (rate limiting)
    redis_url: Optional[str] = None
    redis_password: Optional[str] = None

    # Size limit
    max_body_bytes: int = 262144  # 256KB

    # Paginación del listado de comidas
    meals_page_size: int = 20
    meals_page_size_max: int = 100

    def nutrition_enabled(self) -> bool:
        return bool(self.openai_api_key.strip())

    def parsed_api_keys(self) -> Dict[str, str]:
        mapping: Dict[str, str] = {}
        for pair in [p.strip() for p in self.api_keys.split(",") if p.strip()]:
            if ":" not in pair:
                continue
            user, token = pair.split(":", 1)
            mapping[token.strip()] = user.strip()
        return mapping

    @model_validator(mode="after")
    def _validate_security(self) -> "Settings":
        if self.service_env != "dev":
            if self.jwt_secret == "change-me-dev":
                raise ValueError("jwt_secret must be set via environment variable in non-dev environments")
            if self.auth_dev_pin is not None:
                raise ValueError("auth_dev_pin is only allowed in development")
            if self.service_env == "prod":
                self.auth_fallback_user = None
        else:
            if not self.auth_dev_pin:
                raise ValueError("auth_dev_pin must be defined via environment variable in development")
        if not (1 <= self.meals_page_size <= self.meals_page_size_max):
            raise ValueError("meals_page_size must be between 1 and meals_page_size_max")
        return self

settings = Settings()
