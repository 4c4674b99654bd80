from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Security
    RACELOG_SECRET_KEY: str = "dev-secret-change-me"
    RACELOG_TOKEN_MAX_AGE: int = 60 * 60 * 12

    # Database
    RACELOG_DB_URL: str = "sqlite:///./racelog.db"

    # Scans are stored as local wall-clock time of the readers
    RACELOG_TIMEZONE: str = "Asia/Kolkata"

    RACELOG_LOG_LEVEL: str = "INFO"
    RACELOG_SEED_MARKS: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
