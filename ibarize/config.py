from pydantic import model_validator
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    BACKEND_URL: str = "http://localhost:3001"
    API_BASE_URL: str = ""
    REDIS_URL: str = "redis://localhost:6379/0"
    CORS_ORIGINS: str = "*"
    HTTP_TIMEOUT: float = 30.0
    MAX_UPLOAD_SIZE_MB: int = 50
    HEALTH_CACHE_SECONDS: int = 300
    DEMO_EMAIL: str = "broker@ibarize.com"
    DEMO_PASSWORD: str = "admin123"
    WHATSAPP_NUMBER: str = "250780429006"

    @model_validator(mode="after")
    def default_api_base(self):
        """API base falls back to the backend URL when not set explicitly."""
        if not self.API_BASE_URL:
            self.API_BASE_URL = self.BACKEND_URL
        return self

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
