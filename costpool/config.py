"""Configuration management for the cost pool classifier."""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load environment variables from .env file in ops folder
env_path = Path(__file__).parent.parent / "ops" / ".env"
load_dotenv(dotenv_path=env_path)


class OpenAIConfig(BaseSettings):
    """OpenAI API configuration."""

    api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    model: str = Field(default="gpt-4o", alias="OPENAI_MODEL")
    base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")
    temperature: float = Field(default=0.0, alias="OPENAI_TEMPERATURE")
    max_tokens: Optional[int] = Field(default=None, alias="OPENAI_MAX_TOKENS")
    timeout: int = Field(default=120, alias="OPENAI_TIMEOUT")

    class Config:
        env_file = "ops/.env"
        case_sensitive = False
        extra = "ignore"


class AnthropicConfig(BaseSettings):
    """Anthropic API configuration."""

    api_key: Optional[str] = Field(default=None, alias="ANTHROPIC_API_KEY")
    model: str = Field(default="claude-3-5-sonnet-latest", alias="ANTHROPIC_MODEL")
    temperature: float = Field(default=0.0, alias="ANTHROPIC_TEMPERATURE")
    max_tokens: Optional[int] = Field(default=None, alias="ANTHROPIC_MAX_TOKENS")
    timeout: int = Field(default=120, alias="ANTHROPIC_TIMEOUT")

    class Config:
        env_file = "ops/.env"
        case_sensitive = False
        extra = "ignore"


class MLflowConfig(BaseSettings):
    """MLflow tracking configuration."""

    tracking_uri: Optional[str] = Field(
        default="sqlite:///mlflow.db", alias="MLFLOW_TRACKING_URI"
    )
    experiment_name: str = Field(default="costpool", alias="MLFLOW_EXPERIMENT_NAME")
    enabled: bool = Field(default=False, alias="MLFLOW_ENABLED")

    class Config:
        env_file = "ops/.env"
        case_sensitive = False
        extra = "ignore"


class AppConfig(BaseSettings):
    """Main application configuration."""

    app_name: str = Field(default="costpool", alias="APP_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Document store
    database_path: Path = Field(
        default=Path("data/costpool.db"), alias="DATABASE_PATH"
    )
    taxonomy_document_id: str = Field(
        default="hierarchical", alias="TAXONOMY_DOCUMENT_ID"
    )

    # Blob store
    storage_type: str = Field(default="local", alias="STORAGE_TYPE")
    local_base_dir: Path = Field(default=Path("blobs"), alias="LOCAL_BASE_DIR")
    s3_region: Optional[str] = Field(default=None, alias="S3_REGION")

    # Pipeline tuning
    batch_size: int = Field(default=50, alias="BATCH_SIZE")
    writer_buffer_size: int = Field(default=500, alias="WRITER_BUFFER_SIZE")

    # Which provider answers classification requests
    oracle_llm: str = Field(default="openai", alias="ORACLE_LLM")

    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    anthropic: AnthropicConfig = Field(default_factory=AnthropicConfig)
    mlflow: MLflowConfig = Field(default_factory=MLflowConfig)

    class Config:
        env_file = "ops/.env"
        case_sensitive = False
        extra = "ignore"

    def __init__(self, **kwargs):
        """Initialize configuration with nested settings."""
        super().__init__(**kwargs)
        # Ensure database directory exists
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


# Global configuration instance
config = AppConfig()


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    return config


def reload_config() -> AppConfig:
    """Reload configuration from environment variables."""
    global config
    config = AppConfig()
    return config
