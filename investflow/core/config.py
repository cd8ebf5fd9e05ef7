from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
	model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

	APP_NAME: str = Field(default="InvestFlow API")
	DEBUG: bool = Field(default=False)
	API_PREFIX: str = Field(default="/api")

	# Database
	DATABASE_URL: str = Field(default="")

	# Auth / JWT (tokens are issued by the auth service; we only verify them)
	JWT_SECRET: str = Field(default="dev-change-me")
	JWT_ALGORITHM: str = Field(default="HS256")
	ACCESS_TOKEN_EXPIRES_MINUTES: int = Field(default=60 * 24 * 7)

	# Investment ledger
	CANCELLATION_WINDOW_HOURS: int = Field(default=24)
	INVESTMENT_CURRENCY: str = Field(default="USD")

	# Outbound email queue (consumed by the mailer worker)
	SERVICEBUS_CONNECTION_STRING: str = Field(default="")
	SERVICEBUS_EMAIL_QUEUE_NAME: str = Field(default="email-dispatch")
	CLIENT_URL: str = Field(default="http://localhost:3000")

	# Azure Monitor / Application Insights
	AZURE_MONITOR_CONN_STR: str = Field(default="")
	ENABLE_APP_INSIGHTS: bool = Field(default=True)
	SAMPLING_RATIO: float = Field(default=1.0)


settings = Settings()
