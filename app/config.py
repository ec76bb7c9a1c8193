from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./taskboard.db"
    CREATE_TABLES: bool = True

    # Security
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = Field(12, ge=10)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None

    CORS_ORIGIN_REGEX: str = "https?://.*"

    class Config:
        env_file = ".env"

settings = Settings()
