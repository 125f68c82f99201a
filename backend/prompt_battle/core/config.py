"""
Application settings
"""

from typing import List, Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Basics
    APP_NAME: str = "Prompt Battle"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8001
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Database
    DATABASE_URL: str = "sqlite:///./prompt_battle.db"

    # Gemini scoring model
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash-lite"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    SCORING_TIMEOUT: int = 60

    # Game rules
    SUBMISSION_SECONDS: int = 60  # submission window per round
    INTERMISSION_SECONDS: int = 15  # countdown between rounds
    INTERMISSION_DELAY_MS: int = 500  # gap between results_ready and intermission
    MIN_ROUNDS: int = 1
    MAX_ROUNDS: int = 10
    DEFAULT_ROUNDS: int = 3
    MAX_PROMPT_LENGTH: int = 500

    # Let the server drive scoring and the next advance instead of the clients
    SERVER_PHASE_TIMER: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True

# Global settings instance
settings = Settings()
