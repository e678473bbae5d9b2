"""
Configuration validation for deployments.
Validates LLM settings and the estimation calibration on application startup.
"""
import logging
from typing import List, Optional, Tuple

from genie.core.config import Settings, settings as default_settings
from genie.core.exceptions import EstimationConfigError
from genie.estimation.config import EstimationConfig

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "anthropic", "ollama")


def validate_llm_settings(settings: Settings) -> Tuple[bool, List[str]]:
    """
    Validate that the LLM provider can be reached with the configured credentials.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    llm_provider = settings.LLM_PROVIDER.lower()
    if llm_provider not in SUPPORTED_PROVIDERS:
        errors.append(f"LLM_PROVIDER must be one of {', '.join(SUPPORTED_PROVIDERS)} (got '{settings.LLM_PROVIDER}')")
    elif llm_provider == "openai" and not settings.OPENAI_API_KEY:
        errors.append("OPENAI_API_KEY must be set when LLM_PROVIDER=openai")
    elif llm_provider == "anthropic" and not settings.ANTHROPIC_API_KEY:
        errors.append("ANTHROPIC_API_KEY must be set when LLM_PROVIDER=anthropic")

    if not settings.MODEL_NAME:
        errors.append("MODEL_NAME must be set")

    if settings.LLM_MAX_RETRIES < 1:
        errors.append("LLM_MAX_RETRIES must be at least 1")

    if settings.LLM_RETRY_BASE_DELAY < 0:
        errors.append("LLM_RETRY_BASE_DELAY cannot be negative")

    return len(errors) == 0, errors


def print_env_summary(settings: Settings, estimation: EstimationConfig) -> None:
    """Print a summary of the configuration (safe for logs)."""
    logger.info("=" * 60)
    logger.info("Environment Configuration Summary")
    logger.info("=" * 60)
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"LLM Provider: {settings.LLM_PROVIDER}")
    logger.info(f"Model Name: {settings.MODEL_NAME or 'not set'}")
    logger.info(f"Database URL: {settings.DATABASE_URL.split('@')[-1]}")
    logger.info(
        f"Estimation: TCF={estimation.tcf} ECF={estimation.ecf} PHM={estimation.phm_multiplier} "
        f"hours/day={estimation.hours_per_day} days/month={estimation.days_per_month} "
        f"warranty={estimation.warranty_rate} tax={estimation.tax_rate}"
    )
    logger.info("=" * 60)


def validate_on_startup(settings: Optional[Settings] = None, require_llm: bool = False) -> EstimationConfig:
    """
    Validate configuration on application startup.

    The estimation calibration is always checked and a bad value stops the
    application (EstimationConfigError). LLM settings only stop startup when
    ``require_llm`` is set; otherwise problems are logged as warnings and the
    estimation endpoints keep working without a model.
    """
    settings = settings or default_settings

    try:
        estimation = settings.estimation_config()
    except EstimationConfigError as e:
        logger.error(f"Estimation configuration rejected: {e}")
        raise

    is_valid, errors = validate_llm_settings(settings)
    if not is_valid:
        error_message = "LLM configuration incomplete:\n" + "\n".join(f"  - {error}" for error in errors)
        if require_llm:
            logger.error(error_message)
            raise ValueError(error_message)
        logger.warning(error_message)
    else:
        logger.info("Environment validation passed")

    print_env_summary(settings, estimation)
    return estimation
