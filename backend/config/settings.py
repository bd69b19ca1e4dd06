from pydantic_settings import BaseSettings
from typing import Dict, List
from pathlib import Path

# Get absolute path to backend directory (config/settings.py -> backend/)
_backend_dir = Path(__file__).parent.parent
_env_local = _backend_dir / '.env.local'
_env_file = _backend_dir / '.env'


# Optional API keys and what degrades when each one is missing
OPTIONAL_API_KEYS: Dict[str, str] = {
    "RAPIDAPI_KEY": "JSearch source disabled - no RapidAPI job results",
    "ADZUNA_APP_ID": "Adzuna source disabled - no Adzuna job results",
    "ADZUNA_API_KEY": "Adzuna source disabled - no Adzuna job results",
    "REED_API_KEY": "Reed source disabled - no Reed job results",
    "PROXYCURL_API_KEY": "Manager/HR lookup uses placeholder identities instead of LinkedIn profiles",
    "HUNTER_API_KEY": "Contact emails are guessed from the company domain instead of verified",
    "GENERATED_PHOTOS_API_KEY": "AI headshot pool disabled - random-face and letter avatars used instead",
    "BRANDFETCH_API_KEY": "Brand search step of the logo chain is skipped",
}


class Settings(BaseSettings):
    """Application settings"""

    # Cron / admin endpoints authenticate with a shared bearer secret
    CRON_SECRET: str = ""

    # CORS - Will be parsed from environment variable string
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Database Configuration
    DATABASE_URL: str = ""  # PostgreSQL connection string (production)
    TEST_DATABASE_URL: str = ""  # PostgreSQL connection string (test/dev branch) - Optional

    # Job sources (keyed)
    RAPIDAPI_KEY: str = ""
    ADZUNA_APP_ID: str = ""
    ADZUNA_API_KEY: str = ""
    REED_API_KEY: str = ""
    MUSE_API_KEY: str = ""  # The Muse works without a key, the key only raises quota

    # Enrichment services
    PROXYCURL_API_KEY: str = ""
    HUNTER_API_KEY: str = ""
    GENERATED_PHOTOS_API_KEY: str = ""
    BRANDFETCH_API_KEY: str = ""

    # S3 bucket for mirrored headshots (empty = keep external URLs)
    PHOTO_BUCKET: str = ""

    # Pipeline tunables
    ENRICH_BATCH_SIZE: int = 10
    ENRICH_CONCURRENCY: int = 3
    ENRICH_MAX_RETRIES: int = 3
    DEDUP_WINDOW_DAYS: int = 30
    MAX_JOBS_PER_ADAPTER: int = 50
    STUCK_JOB_MINUTES: int = 30

    class Config:
        # Prioritize .env.local for local development, fallback to .env
        # Use absolute paths to avoid working directory issues
        env_file = str(_env_local) if _env_local.exists() else str(_env_file)
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from environment file

    def get_allowed_origins(self) -> List[str]:
        """Parse and return CORS origins as a list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    def has_keys(self, *keys: str) -> bool:
        """True when every named setting is non-empty (no keys = always True)."""
        return all(getattr(self, key, "") for key in keys)

    def missing_optional_keys(self) -> Dict[str, str]:
        """Return {key: consequence} for every optional API key that is unset."""
        return {
            key: message
            for key, message in OPTIONAL_API_KEYS.items()
            if not getattr(self, key, "")
        }


settings = Settings()
