from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-3-flash-preview", validation_alias="GEMINI_MODEL")
	gemini_timeout_seconds: float = Field(default=30.0, validation_alias="GEMINI_TIMEOUT_SECONDS")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")

	# Database holding the key-value progress store
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")
	progress_key: str = Field(default="techcomm-user", validation_alias="PROGRESS_KEY")

	# Seconds the learner can review reading results before the session finishes
	reading_review_delay_seconds: float = Field(default=4.0, validation_alias="READING_REVIEW_DELAY_SECONDS")
	# Lifetime of the error banner
	notification_seconds: float = Field(default=10.0, validation_alias="NOTIFICATION_SECONDS")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
