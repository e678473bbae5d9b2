from pydantic_settings import BaseSettings
from typing import Any, Dict, List, Optional
import os

from genie.estimation.config import EstimationConfig, load_estimation_config


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./genie.db"

    # API
    API_V1_PREFIX: str = "/api/v1"

    # CORS - can be comma-separated string or list
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Environment
    ENVIRONMENT: str = "development"

    # LLM Configuration
    LLM_PROVIDER: str = "openai"
    MODEL_NAME: str = ""

    # OpenAI-compatible endpoint
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = ""

    # Anthropic Configuration
    ANTHROPIC_API_KEY: str = ""

    # Ollama Configuration
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_API_KEY: str = ""

    # Retry on transient LLM errors (429/500/503)
    LLM_MAX_RETRIES: int = 3
    LLM_RETRY_BASE_DELAY: float = 1.0

    # Brief text sent to the model is truncated to this many characters
    MAX_INPUT_CHARS: int = 50000

    # Regional Configuration
    DEFAULT_CURRENCY: str = "IDR"

    # Estimation calibration (unset values keep the government defaults)
    ESTIMATION_TCF: Optional[float] = None
    ESTIMATION_ECF: Optional[float] = None
    ESTIMATION_PHM_MULTIPLIER: Optional[float] = None
    ESTIMATION_HOURS_PER_DAY: Optional[float] = None
    ESTIMATION_DAYS_PER_MONTH: Optional[float] = None
    ESTIMATION_WARRANTY_RATE: Optional[float] = None
    ESTIMATION_TAX_RATE: Optional[float] = None

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS_ORIGINS string into list"""
        if isinstance(self.CORS_ORIGINS, str):
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]
        return self.CORS_ORIGINS

    def estimation_overrides(self) -> Dict[str, Any]:
        return {
            "tcf": self.ESTIMATION_TCF,
            "ecf": self.ESTIMATION_ECF,
            "phm_multiplier": self.ESTIMATION_PHM_MULTIPLIER,
            "hours_per_day": self.ESTIMATION_HOURS_PER_DAY,
            "days_per_month": self.ESTIMATION_DAYS_PER_MONTH,
            "warranty_rate": self.ESTIMATION_WARRANTY_RATE,
            "tax_rate": self.ESTIMATION_TAX_RATE,
            "currency": self.DEFAULT_CURRENCY,
        }

    def estimation_config(self) -> EstimationConfig:
        """Validated calibration; raises EstimationConfigError on bad values"""
        return load_estimation_config(self.estimation_overrides())

    class Config:
        env_file = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env")
        case_sensitive = True
        extra = "ignore"


settings = Settings()


def get_estimation_config() -> EstimationConfig:
    """Dependency returning the validated estimation calibration"""
    return settings.estimation_config()
