from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	# Optional: model override used only by the answer judge
	gemini_judge_model: str | None = Field(default=None, validation_alias="GEMINI_JUDGE_MODEL")
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")

	# OpenRouter fallback configuration (optional)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="x-ai/grok-4-fast:free", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="Answer Grading Core", validation_alias="OPENROUTER_TITLE")

	# Judge call budget; past this the deterministic fallback is used
	judge_timeout_seconds: float = Field(default=45.0, gt=0, validation_alias="JUDGE_TIMEOUT_SECONDS")

	# Essay defaults when a question body does not carry its own limits
	essay_min_words: int = Field(default=100, ge=0, validation_alias="ESSAY_MIN_WORDS")
	essay_max_words: int = Field(default=300, ge=1, validation_alias="ESSAY_MAX_WORDS")
	essay_pass_ratio: float = Field(default=0.6, gt=0, le=1, validation_alias="ESSAY_PASS_RATIO")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
