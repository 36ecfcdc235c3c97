from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Primary and fallback provider: "gemini", "github_models" or "openai"
	ai_provider: str = Field(default="gemini", validation_alias="AI_PROVIDER")
	ai_fallback_provider: str = Field(default="github_models", validation_alias="AI_FALLBACK_PROVIDER")
	ai_max_tokens: int = Field(default=1000, validation_alias="AI_MAX_TOKENS")
	ai_temperature: float = Field(default=0.7, validation_alias="AI_TEMPERATURE")
	ai_timeout_seconds: float = Field(default=60.0, validation_alias="AI_TIMEOUT_SECONDS")

	# Gemini (Generative Language API)
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	gemini_base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta/models", validation_alias="GEMINI_BASE_URL")

	# GitHub Models (OpenAI-compatible chat completions)
	github_models_api_key: str | None = Field(default=None, validation_alias="GITHUB_MODELS_API_KEY")
	github_models_endpoint: str = Field(default="https://models.inference.ai.azure.com", validation_alias="GITHUB_MODELS_ENDPOINT")
	github_model_name: str = Field(default="gpt-4o-mini", validation_alias="GITHUB_MODEL_NAME")

	# OpenAI
	openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
	openai_model: str = Field(default="gpt-4o-mini", validation_alias="OPENAI_MODEL")
	openai_base_url: str = Field(default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=720, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# Uploads (100MB default)
	upload_dir: str = Field(default="uploads", validation_alias="UPLOAD_DIR")
	max_file_size: int = Field(default=104857600, validation_alias="MAX_FILE_SIZE")

	# HTTP
	# Comma separated list, "*" for any origin
	cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")
	# Optional prebuilt frontend bundle served at /app
	frontend_dir: str | None = Field(default=None, validation_alias="FRONTEND_DIR")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def cors_origin_list(self) -> list[str]:
		return [o.strip() for o in self.cors_origins.split(",") if o.strip()] or ["*"]

settings = Settings()
