import os
from dotenv import load_dotenv

# Load .env from the working directory
load_dotenv()


class Settings:
    """
    Environment-driven settings for prompt assembly and model routing.
    """
    # Model identifiers per routing tier
    FAST_MODEL = os.getenv("COACH_FAST_MODEL", "claude-haiku-4-5")
    BALANCED_MODEL = os.getenv("COACH_BALANCED_MODEL", "claude-sonnet-4-5")
    DEEP_MODEL = os.getenv("COACH_DEEP_MODEL", "claude-sonnet-4-5")
    MODEL_PROVIDER = os.getenv("COACH_MODEL_PROVIDER", "anthropic")

    # Coach name used in boilerplate sections
    COACH_NAME = os.getenv("COACH_NAME", "Gena")

    # Root directory that uploaded object paths resolve against
    FILE_STORAGE_ROOT = os.getenv("COACH_FILE_STORAGE_ROOT", "./uploads")

    # Async SQLAlchemy URL for the storage adapter
    DATABASE_URL = os.getenv("COACH_DATABASE_URL", "sqlite+aiosqlite:///./coach.db")

    def model_for_tier(self, tier: str) -> str:
        return {
            "fast": self.FAST_MODEL,
            "balanced": self.BALANCED_MODEL,
            "deep": self.DEEP_MODEL,
        }[tier]

    @classmethod
    def validate(cls):
        """
        Checks that every routing tier has a model identifier.
        """
        missing = []
        if not cls.FAST_MODEL:
            missing.append("COACH_FAST_MODEL")
        if not cls.BALANCED_MODEL:
            missing.append("COACH_BALANCED_MODEL")
        if not cls.DEEP_MODEL:
            missing.append("COACH_DEEP_MODEL")

        if missing:
            raise ValueError(f"Missing environment variables: {', '.join(missing)}")


# Validate on import
try:
    Settings.validate()
except ValueError as e:
    print(f"WARNING: {e}")
