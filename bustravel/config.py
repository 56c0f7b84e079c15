from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./bustravel.db"
    DATABASE_ECHO: bool = False

    # Security
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24

    # Server
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 3000

    # Application
    PROJECT_NAME: str = "Bus Travel Booking System"
    API_PREFIX: str = "/api"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    LOG_LEVEL: str = "INFO"

    # Seeded administrator
    ADMIN_EMAIL: str = "admin@bustravel.com"
    ADMIN_PASSWORD: str = "admin123"
    ADMIN_NAME: str = "Admin"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
