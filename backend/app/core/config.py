from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "SpaceNow"
    API_PREFIX: str = "/api"

    # NASA open APIs (DONKI, NeoWs, APOD)
    NASA_KEY: str = "DEMO_KEY"
    NASA_BASE_URL: str = "https://api.nasa.gov"
    NASA_TIMEOUT_MS: Optional[int] = None
    NASA_RETRIES: int = 2
    NASA_BACKOFF_MS: int = 800

    # Text generation for the assistant; canned answers when unset
    COHERE_API_KEY: Optional[str] = None
    COHERE_API_URL: str = "https://api.cohere.ai/v1/chat"

    LOG_LEVEL: str = "info"
    PORT: int = 5173
    CORS_ORIGINS: List[str] = ["*"]

    @property
    def nasa_timeout_ms(self) -> int:
        return self.NASA_TIMEOUT_MS or 12000

    class Config:
        case_sensitive = True
        env_file = ".env"

settings = Settings()
