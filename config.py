"""
Configuration module - loads all settings from environment variables.
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
try:
    load_dotenv()
except Exception as e:
    print(f"Warning: Failed to load .env file: {e}")
    print("Continuing with environment variables or defaults...")


class Config:
    """Application configuration loaded from environment variables."""

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Safely parse integer environment variable."""
        try:
            return int(os.getenv(key, str(default)))
        except (ValueError, TypeError) as e:
            print(f"Warning: Invalid integer for {key}, using default {default}: {e}")
            return default

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        """Safely parse float environment variable."""
        try:
            return float(os.getenv(key, str(default)))
        except (ValueError, TypeError) as e:
            print(f"Warning: Invalid float for {key}, using default {default}: {e}")
            return default

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Safely parse boolean environment variable."""
        try:
            value = os.getenv(key, str(default)).lower()
            return value in ("true", "1", "yes", "on")
        except Exception as e:
            print(f"Warning: Invalid boolean for {key}, using default {default}: {e}")
            return default

    # Google GenAI (Veo)
    GOOGLE_GENAI_API_KEY: str = os.getenv("GOOGLE_GENAI_API_KEY", "") or os.getenv("GEMINI_API_KEY", "")
    VEO_MODEL: str = os.getenv("VEO_MODEL", "veo-3.1-generate-preview")
    VIDEO_GENERATION_ENABLED: bool = _get_bool.__func__("VIDEO_GENERATION_ENABLED", True)

    # Request limits
    MAX_REFERENCE_IMAGES: int = _get_int.__func__("MAX_REFERENCE_IMAGES", 4)

    # Client-side polling
    POLL_INTERVAL_SECONDS: float = _get_float.__func__("POLL_INTERVAL_SECONDS", 5.0)
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:8000")
    HTTP_TIMEOUT_SECONDS: float = _get_float.__func__("HTTP_TIMEOUT_SECONDS", 60.0)

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = _get_int.__func__("PORT", 8000)

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        if cls.MAX_REFERENCE_IMAGES < 1:
            raise ValueError("MAX_REFERENCE_IMAGES must be at least 1")
        if cls.POLL_INTERVAL_SECONDS <= 0:
            raise ValueError("POLL_INTERVAL_SECONDS must be positive")

    @classmethod
    def has_google_credentials(cls) -> bool:
        """True when a Google GenAI API key is configured."""
        return bool(cls.GOOGLE_GENAI_API_KEY)

    @classmethod
    def get_google_api_key(cls) -> str:
        """Get GOOGLE_GENAI_API_KEY, raise error if not set."""
        if not cls.GOOGLE_GENAI_API_KEY:
            raise ValueError("GOOGLE_GENAI_API_KEY must be set in environment variables")
        return cls.GOOGLE_GENAI_API_KEY
