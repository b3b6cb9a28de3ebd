"""
Application configuration
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class CdekSettings(BaseModel):
    base_url: str = "https://api.edu.cdek.ru/v2"
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    # 44 = Moscow
    from_city_code: int = 44
    timeout: float = 10.0
    max_retries: int = 2
    retry_delay: float = 0.5


class Settings(BaseSettings):
    """Project settings"""

    PROJECT_NAME: str = Field(default="Trikotazhiya Storefront Backend")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=True)
    ENVIRONMENT: str = Field(default="development")

    cdek: CdekSettings = Field(default_factory=CdekSettings)

    # Request body logging (DEBUG only unless forced via X-Log-Body)
    LOG_REQUEST_BODY_ENABLE_BY_DEFAULT: bool = Field(default=True)
    LOG_REQUEST_BODY_MAX_BYTES: int = Field(default=2048)

    CORS_ORIGINS: list = Field(default=["http://localhost:3001", "http://localhost:9000"])

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """Accept either a JSON array string or a comma separated string."""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except ValueError:
                    pass
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v


settings = Settings()
