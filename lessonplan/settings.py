"""
Application Settings

This module provides a centralized settings class that loads environment 
variables from the .env file and makes them available throughout the application.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load the .env file from the project root
# The project root is one level up from the lessonplan folder
PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class Settings:
    """
    Centralized settings class that provides access to all environment variables.
    Usage:
        from lessonplan.settings import settings
        api_key = settings.GEMINI_API_KEY
    """
    
    # Google Gemini API Key (used by the plan extractor)
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    
    # Gemini model used to read uploaded lesson plans
    EXTRACTION_MODEL: str = os.getenv("EXTRACTION_MODEL", "gemini-2.5-flash")
    
    # Database (empty -> in-memory store, state lost on restart)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    
    # Debug mode
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    
    # Fixed key the current plan is stored under
    PLAN_STORAGE_KEY: str = os.getenv("PLAN_STORAGE_KEY", "teaching-plan-v5")
    
    # Number of implementation steps in a fresh plan
    DEFAULT_STEP_COUNT: int = _int_env("DEFAULT_STEP_COUNT", 5)
    
    # Minimum number of steps an imported plan is padded to
    IMPORT_MIN_STEPS: int = _int_env("IMPORT_MIN_STEPS", 1)
    
    # Frontend origins allowed by CORS
    CORS_ORIGINS: list = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
        if origin.strip()
    ]

    
    @classmethod
    def validate(cls) -> None:
        """Validate that all required environment variables are set."""
        errors = []
        
        if not cls.GEMINI_API_KEY:
            errors.append("GEMINI_API_KEY is not set in .env file")
        if cls.DEFAULT_STEP_COUNT < 1:
            errors.append("DEFAULT_STEP_COUNT must be at least 1")
        if not cls.PLAN_STORAGE_KEY.strip():
            errors.append("PLAN_STORAGE_KEY must not be empty")
        
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


# Create a singleton instance for easy import
settings = Settings()
