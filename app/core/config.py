from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Directory holding one JSON file per collection
    DATA_DIR: str = "data"

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    SUPER_ADMIN_EMAIL: str | None = None
    SUPER_ADMIN_PASSWORD: str | None = None
    SUPER_ADMIN_NAME: str | None = "Super Admin"
    ENV: str = "dev"  # "dev" or "prod"

    # --- PASSWORD RESET / LOGS / BROADCAST ---
    RESET_CODE_TTL_MINUTES: int = 5
    MAX_LOG_ENTRIES: int = 1000
    BROADCAST_QUEUE_SIZE: int = 256
    MAX_COMMAND_WARNINGS: int = 5

    # --- RATE LIMITING ---
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: str = "10/minute"
    REDIS_URL: str | None = None

    # --- EMAIL SETTINGS ---
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 2525  # Default to Mailtrap port
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    EMAILS_FROM_EMAIL: str = "no-reply@campus-portal.local"
    EMAILS_FROM_NAME: str = "Campus Portal"
    FRONTEND_URL: str = "http://localhost:3000"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
