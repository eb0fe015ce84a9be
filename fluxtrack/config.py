from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    api_base_url: str = "http://localhost:8080/api"
    request_timeout_seconds: float = 30.0
    log_level: str = "INFO"
    debug: bool = False
    # Re-create the previous log when the create step of a log replace fails
    replace_compensation_enabled: bool = True

    @property
    def normalized_base_url(self) -> str:
        """Base URL with a trailing slash so relative paths join under it."""
        return self.api_base_url.rstrip("/") + "/"

    def validate_config(self) -> None:
        """Raise if the API base URL or timeout cannot be used."""
        if not self.api_base_url.startswith(("http://", "https://")):
            raise RuntimeError(f"API_BASE_URL must be an http(s) URL, got {self.api_base_url!r}")
        if self.request_timeout_seconds <= 0:
            raise RuntimeError("REQUEST_TIMEOUT_SECONDS must be positive")


settings = Settings()
