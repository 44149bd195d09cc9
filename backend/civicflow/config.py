"""Engine configuration using pydantic-settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings with environment variable support."""

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    SERVICE_NAME: str = "civicflow-eligibility"

    # Rule catalog (JSON array of program rules)
    RULE_CATALOG_PATH: Optional[str] = None

    # Fraud analysis thresholds
    DOCUMENT_CONFIDENCE_THRESHOLD: float = 60.0
    DOCUMENT_CONFIDENCE_HIGH_GAP: float = 30.0
    NAME_SIMILARITY_THRESHOLD: float = 0.85
    MAX_REQUEST_TO_REVENUE_RATIO: float = 2.0
    INVESTIGATION_RISK_THRESHOLD: int = 50
    DATA_MISMATCH_FIELDS: str = "businessName,ein,address"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def data_mismatch_fields_list(self) -> list[str]:
        """Parse cross-document comparison fields from comma-separated string."""
        return [name.strip() for name in self.DATA_MISMATCH_FIELDS.split(",") if name.strip()]


# Global settings instance
settings = Settings()
