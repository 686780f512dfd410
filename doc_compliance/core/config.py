from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("doc-compliance-pipeline", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:3000,http://127.0.0.1:3000", alias="CORS_ORIGINS")

    # Document processing backend (status provider)
    document_api_base_url: str = Field("http://localhost:5000/api", alias="DOCUMENT_API_BASE_URL")
    document_api_token: str | None = Field(default=None, alias="DOCUMENT_API_TOKEN")
    document_api_timeout: float = Field(30.0, alias="DOCUMENT_API_TIMEOUT")

    # Lifecycle tracking
    poll_interval_seconds: float = Field(2.0, alias="POLL_INTERVAL_SECONDS")
    single_document_timeout_seconds: float = Field(120.0, alias="SINGLE_DOCUMENT_TIMEOUT_SECONDS")
    dual_document_timeout_seconds: float = Field(300.0, alias="DUAL_DOCUMENT_TIMEOUT_SECONDS")

    # Compliance Rules Configuration
    compliance_pass_threshold: int = Field(70, alias="COMPLIANCE_PASS_THRESHOLD")
    min_content_length: int = Field(50, alias="MIN_CONTENT_LENGTH")
    incomplete_document_threshold: int = Field(200, alias="INCOMPLETE_DOCUMENT_THRESHOLD")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

settings = Settings()
