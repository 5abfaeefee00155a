from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	environment: str = Field(default="development", validation_alias="ENVIRONMENT")
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	session_ttl_days: int = Field(default=7, validation_alias="SESSION_TTL_DAYS")
	allow_admin_signup: bool = Field(default=False, validation_alias="ALLOW_ADMIN_SIGNUP")

	# Database: a full URL wins, otherwise MySQL parts, otherwise local SQLite
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")
	db_host: str | None = Field(default=None, validation_alias="DB_HOST")
	db_user: str = Field(default="root", validation_alias="DB_USER")
	db_password: str = Field(default="", validation_alias="DB_PASSWORD")
	db_name: str = Field(default="ai_learning_platform", validation_alias="DB_NAME")

	# Insight generation. "fallback" never leaves the process; "gemini" needs a key.
	ai_provider: str = Field(default="fallback", validation_alias="AI_PROVIDER")
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	ai_rate_limit_max_requests: int = Field(default=10, validation_alias="AI_RATE_LIMIT_MAX_REQUESTS")
	ai_rate_limit_window_minutes: int = Field(default=60, validation_alias="AI_RATE_LIMIT_WINDOW_MINUTES")

	# Progress logs move a task to IN_PROGRESS/DONE even when it is CANCELLED or DONE
	progress_reopens_closed_tasks: bool = Field(default=True, validation_alias="PROGRESS_REOPENS_CLOSED_TASKS")

	seed_demo_data: bool = Field(default=False, validation_alias="SEED_DEMO_DATA")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def is_production(self) -> bool:
		return self.environment.lower() == "production"

	def resolved_database_url(self) -> str:
		if self.database_url:
			return self.database_url
		if self.db_host:
			return f"mysql+mysqlconnector://{self.db_user}:{self.db_password}@{self.db_host}/{self.db_name}"
		return "sqlite:///./learnhub.db"

settings = Settings()
