"""
Configuration management for the clinic records service.

This module provides centralized configuration using Pydantic Settings
for environment-based configuration management.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    model_config = SettingsConfigDict(env_prefix="MONGO_")

    uri: str = Field(
        default="mongodb://localhost:27017", description="MongoDB connection URI"
    )
    db_name: str = Field(default="clinicrecords", description="MongoDB database name")

    @field_validator("uri")
    @classmethod
    def validate_mongo_uri(cls, v: str) -> str:
        """Validate MongoDB URI format."""
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(
                "MongoDB URI must start with 'mongodb://' or 'mongodb+srv://'"
            )
        return v


class AzureOpenAISettings(BaseSettings):
    """Azure OpenAI configuration settings (narrative and plan generation)."""

    model_config = SettingsConfigDict(env_prefix="AZURE_OPENAI_")

    endpoint: str = Field(default="", description="Azure OpenAI endpoint URL")
    api_key: str = Field(default="", description="Azure OpenAI API key")
    api_version: str = Field(default="2024-12-01-preview", description="Azure OpenAI API version")
    deployment_name: str = Field(default="gpt-4o-mini", description="Azure OpenAI chat deployment name")

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate Azure OpenAI endpoint format."""
        if v and not (v.startswith("https://") and ".openai.azure.com" in v):
            raise ValueError("Invalid Azure OpenAI endpoint format. Must be: https://xxx.openai.azure.com/")
        return v

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.api_key)


class OpenAISettings(BaseSettings):
    """OpenAI API configuration settings (speech-to-text)."""

    model_config = SettingsConfigDict(env_prefix="OPENAI_")

    api_key: str = Field(default="", description="OpenAI API key")
    transcription_model: str = Field(default="whisper-1", description="Speech-to-text model")
    transcription_language: Optional[str] = Field(
        default="pt", description="ISO-639-1 hint for the spoken language (None lets the model detect it)"
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        if v and not v.startswith("sk-"):
            raise ValueError("OpenAI API key must start with 'sk-'")
        return v


class NarrativeSettings(BaseSettings):
    """Narrative (summary / insights / evolution) generation settings."""

    model_config = SettingsConfigDict(env_prefix="NARRATIVE_")

    language: str = Field(default="pt-BR", description="Language the generated text is written in")
    temperature: float = Field(default=0.3, description="Temperature for model responses")
    max_tokens: int = Field(default=2000, description="Maximum tokens for responses")

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        """Validate temperature."""
        if not 0.0 <= v <= 2.0:
            raise ValueError("Temperature must be between 0.0 and 2.0")
        return v


class AzureBlobSettings(BaseSettings):
    """Azure Blob Storage configuration settings."""

    model_config = SettingsConfigDict(env_prefix="AZURE_BLOB_")

    account_name: str = Field(default="", description="Azure Storage Account Name")
    account_key: str = Field(default="", description="Azure Storage Account Key")
    connection_string: str = Field(default="", description="Azure Storage Connection String")
    container_name: str = Field(default="session-files", description="Blob container name")
    url_expiry_seconds: int = Field(default=3600, description="Lifetime of signed download URLs")
    max_file_size_mb: int = Field(default=100, description="Maximum file size in MB")

    @field_validator("connection_string")
    @classmethod
    def validate_connection_string(cls, v: str) -> str:
        """Validate Azure Storage connection string."""
        if v and not v.startswith("DefaultEndpointsProtocol="):
            raise ValueError("Invalid Azure Storage connection string format")
        return v


class ClinicalSettings(BaseSettings):
    """Clinical record rules."""

    model_config = SettingsConfigDict(env_prefix="CLINICAL_")

    evolution_min_sessions: int = Field(
        default=2, description="Qualifying sessions required before an evolution report can be generated"
    )
    evolution_max_sessions: int = Field(
        default=10, description="Most recent qualifying sessions sent with an evolution request"
    )
    default_estimated_sessions: int = Field(default=12, description="Estimated sessions of a new plan")
    recording_separator: str = Field(
        default="\n\n--- Nova gravação ---\n",
        description="Inserted before the transcription of a recording made in the session",
    )
    imported_audio_separator: str = Field(
        default="\n\n--- Áudio importado ---\n",
        description="Inserted before the transcription of an uploaded audio file",
    )

    @field_validator("evolution_min_sessions", "evolution_max_sessions")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Session counts must be at least 1")
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="json", description="Log format (json or text)")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class CORSSettings(BaseSettings):
    """CORS configuration settings."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins",
    )
    allow_credentials: bool = Field(default=True, description="Allow credentials in CORS")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="Clinic Records", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    app_env: str = Field(default="development", description="Application environment")
    debug: bool = Field(default=False, description="Debug mode")
    port: int = Field(default=8000, description="Application port")
    host: str = Field(default="0.0.0.0", description="Application host")

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    azure_openai: AzureOpenAISettings = Field(default_factory=AzureOpenAISettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    narrative: NarrativeSettings = Field(default_factory=NarrativeSettings)
    azure_blob: AzureBlobSettings = Field(default_factory=AzureBlobSettings)
    clinical: ClinicalSettings = Field(default_factory=ClinicalSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate application environment."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"App environment must be one of: {valid_envs}")
        return v.lower()

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number."""
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

# Global settings instance (loaded after attempting to read .env)
_settings: Optional[Settings] = None


def _load_env_file_if_available() -> None:
    """Load the nearest .env found in the working directory or its parents.

    Already-set environment variables win over values in the file.
    """
    cwd = Path(os.getcwd()).resolve()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            load_dotenv(dotenv_path=str(candidate), override=False)
            break


def get_settings() -> Settings:
    """Get application settings instance (lazy-init with .env discovery)."""
    global _settings
    if _settings is None:
        _load_env_file_if_available()
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
