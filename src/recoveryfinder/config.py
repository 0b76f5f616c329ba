"""RecoveryFinder configuration — provider credentials and search tuning."""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Geoapify (geocoding + places)
    geoapify_api_key: str = ""
    geoapify_base_url: str = "https://api.geoapify.com"

    @model_validator(mode="after")
    def _strip_api_keys(self) -> "Settings":
        """Strip whitespace/newlines from API keys (common paste error in dashboards)."""
        if self.geoapify_api_key and self.geoapify_api_key != self.geoapify_api_key.strip():
            self.geoapify_api_key = self.geoapify_api_key.strip()
        return self

    # Location resolution; short numeric postal codes prefer this country
    bias_country: str = "us"
    geocode_timeout: float = 10.0

    # Search fan-out
    places_timeout: float = 5.0
    search_deadline: float | None = 20.0
    places_page_size: int = 50
    default_radius_miles: float = 25.0
    max_radius_miles: float = 100.0
    max_results: int = 50

    # MLflow tracing
    tracing_enabled: bool = False
    mlflow_tracking_uri: str = "sqlite:///mlruns/mlflow.db"
    mlflow_experiment_name: str = "recoveryfinder"

    # Logging
    log_json: bool = True
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def has_provider_credentials(self) -> bool:
        return bool(self.geoapify_api_key)


settings = Settings()
