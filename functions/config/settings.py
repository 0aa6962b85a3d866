"""SparkQuote configuration settings.

Loads configuration from environment variables with sensible defaults.
Secrets are loaded via Firebase Secrets Manager (production) or environment variables (emulator).
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for non-secret configuration (emulator hosts, model names, budgets)
load_dotenv()


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Note: Secrets (OPENAI_API_KEY) should be accessed via config.secrets module,
    not directly from this class. The openai_api_key property delegates to it.
    """

    # LLM Configuration (non-secrets)
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-3.5-turbo"))
    llm_temperature: float = field(default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.2")))
    llm_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("LLM_TIMEOUT_SECONDS", "60")))
    llm_max_retries: int = field(default_factory=lambda: int(os.getenv("LLM_MAX_RETRIES", "2")))

    # Output-length budgets per stage
    clarification_max_tokens: int = field(default_factory=lambda: int(os.getenv("CLARIFICATION_MAX_TOKENS", "400")))
    estimation_max_tokens: int = field(default_factory=lambda: int(os.getenv("ESTIMATION_MAX_TOKENS", "1200")))
    time_estimate_max_tokens: int = field(default_factory=lambda: int(os.getenv("TIME_ESTIMATE_MAX_TOKENS", "10")))

    # Quote Configuration
    max_clarifying_questions: int = field(default_factory=lambda: int(os.getenv("MAX_CLARIFYING_QUESTIONS", "5")))
    default_hourly_rate: float = field(default_factory=lambda: float(os.getenv("DEFAULT_HOURLY_RATE", "50")))

    # Firebase Configuration
    use_firebase_emulators: bool = field(default_factory=lambda: os.getenv("USE_FIREBASE_EMULATORS", "false").lower() == "true")

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Internal: cached secret value (use openai_api_key property instead)
    _openai_api_key: Optional[str] = field(default=None, repr=False)

    @property
    def openai_api_key(self) -> Optional[str]:
        """Get OpenAI API key from Firebase Secrets Manager or environment."""
        if self._openai_api_key is None:
            from config.secrets import get_openai_api_key
            self._openai_api_key = get_openai_api_key()
        return self._openai_api_key

    def validate(self) -> None:
        """Validate required settings are present.

        Raises:
            ValueError: If required settings are missing or out of range.
        """
        if not self.openai_api_key and not self.use_firebase_emulators:
            raise ValueError("OPENAI_API_KEY is required in production")
        if self.default_hourly_rate <= 0:
            raise ValueError("DEFAULT_HOURLY_RATE must be positive")
        if self.estimation_max_tokens <= self.clarification_max_tokens:
            raise ValueError("ESTIMATION_MAX_TOKENS must exceed CLARIFICATION_MAX_TOKENS")


# Singleton settings instance
settings = Settings()
