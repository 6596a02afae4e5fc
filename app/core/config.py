"""Configuration management for the NABH SOP Engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Environment
    SOP_ENGINE_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Generative AI provider
    AI_PROVIDER: str = Field(default="gemini", description="AI provider: gemini or anthropic")
    GEMINI_API_KEY: str = Field(default="", description="Google Gemini API key")
    GEMINI_MODEL: str = Field(default="gemini-2.0-flash", description="Gemini model name")
    GEMINI_BASE_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST base URL",
    )
    ANTHROPIC_API_KEY: str = Field(default="", description="Anthropic API key")
    ANTHROPIC_MODEL: str = Field(
        default="claude-haiku-4-5-20251001", description="Anthropic model name"
    )

    # AI call policy
    AI_TIMEOUT_SECONDS: float = Field(default=120.0, description="Timeout per AI request")
    AI_MAX_RETRIES: int = Field(default=3, description="Retries after the first attempt")
    AI_RETRY_BACKOFF_SECONDS: float = Field(
        default=1.0, description="Base delay for exponential backoff"
    )

    # Uploads and storage
    MAX_UPLOAD_BYTES: int = Field(
        default=20 * 1024 * 1024, description="Max source document size in bytes"
    )
    SOP_PDF_BUCKET: str = Field(default="sop-pdfs", description="Storage bucket for SOP PDFs")

    # Branding used in generated SOP documents
    HOSPITAL_NAME: str = Field(default="Hope Hospital", description="Organization name")
    HOSPITAL_ADDRESS: str = Field(default="", description="Organization postal address")
    HOSPITAL_CONTACT: str = Field(default="", description="Phone / email shown in footer")
    HOSPITAL_LOGO_URL: str = Field(default="/assets/hospital-logo.png")
    NABH_LOGO_URL: str = Field(default="/assets/nabh-logo.png")
    SOP_DEPARTMENT: str = Field(default="Quality Department")

    PREPARED_BY_NAME: str = Field(default="Quality Coordinator")
    PREPARED_BY_DESIGNATION: str = Field(default="Quality Coordinator")
    REVIEWED_BY_NAME: str = Field(default="Medical Superintendent")
    REVIEWED_BY_DESIGNATION: str = Field(default="Medical Superintendent")
    APPROVED_BY_NAME: str = Field(default="Director")
    APPROVED_BY_DESIGNATION: str = Field(default="Hospital Director")
    SIGNATURE_PREPARED_URL: str = Field(default="/assets/signature-prepared.png")
    SIGNATURE_REVIEWED_URL: str = Field(default="/assets/signature-reviewed.png")
    SIGNATURE_APPROVED_URL: str = Field(default="/assets/signature-approved.png")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
