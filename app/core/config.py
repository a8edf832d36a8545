from decimal import Decimal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class CompetencyDefaults(BaseModel):
    """Competency type used when the configured type is missing from competency_types."""

    type_id: int
    type_name: str
    passing_score: Decimal


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    placeholder_email_domain: str = Field("no-reply.8connect.local", alias="PLACEHOLDER_EMAIL_DOMAIN")
    student_role_id: int = Field(1, alias="STUDENT_ROLE_ID")
    default_batch_months: int = Field(3, alias="DEFAULT_BATCH_MONTHS")

    default_competency_type: str = Field("Basic", alias="DEFAULT_COMPETENCY_TYPE")
    fallback_competency_type_id: int = Field(1, alias="FALLBACK_COMPETENCY_TYPE_ID")
    fallback_passing_score: Decimal = Field(Decimal("75.00"), alias="FALLBACK_PASSING_SCORE")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def competency_defaults(self) -> CompetencyDefaults:
        return CompetencyDefaults(
            type_id=self.fallback_competency_type_id,
            type_name=self.default_competency_type,
            passing_score=self.fallback_passing_score,
        )


settings = Settings()
