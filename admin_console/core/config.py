from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    API_BASE_URL: str = "http://localhost:5000/api"
    API_TOKEN: str = ""
    HTTP_TIMEOUT_SECONDS: float = 15.0

    DEFAULT_PER_PAGE: int = 10
    DATE_FILTER_FIELD: str = "createdAt"

    LOCALE: str = "en"  # en | ar
    LOG_LEVEL: str = "INFO"

    # Empty path -> pycountry ISO catalog with admin_console/data/locations.json laid over it
    LOCATION_CATALOG_PATH: Optional[str] = None

    GEOCODER_ENABLED: bool = False
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org/reverse"
    GEOCODER_TIMEOUT_SECONDS: float = 5.0
    GEOCODER_USER_AGENT: str = "admin-console"

    @property
    def api_base_url(self) -> str:
        return str(self.API_BASE_URL or "").strip().rstrip("/")

settings = Settings()
