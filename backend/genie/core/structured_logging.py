"""
Structured logging utilities for estimation runs and the ingestion pipeline.
Uses JSON format for better analysis and observability.
"""
import json
import logging
from typing import Dict, Any, Optional
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def log_event(
    event_type: str,
    project_id: Optional[str] = None,
    document_id: Optional[str] = None,
    stage: Optional[str] = None,
    **kwargs
) -> None:
    """
    Log an event with structured JSON format.

    Args:
        event_type: Type of event (estimate_recalculated, ingestion_stage, llm_retry, etc.)
        project_id: Optional project ID
        document_id: Optional workspace document ID
        stage: Pipeline stage, when the event belongs to one
        **kwargs: Additional context fields
    """
    log_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "project_id": project_id,
        "document_id": document_id,
        "stage": stage,
        **kwargs
    }

    # Remove None values for cleaner logs
    log_data = {k: v for k, v in log_data.items() if v is not None}

    logger.info(f"ESTIMATION_EVENT: {json.dumps(log_data, ensure_ascii=False, default=str)}")


def log_estimate(
    metrics: Dict[str, Any],
    grand_total: Any,
    warning_count: int = 0,
    project_id: Optional[str] = None,
    document_id: Optional[str] = None,
) -> None:
    """Log a completed estimate recalculation."""
    log_event(
        event_type="estimate_recalculated",
        project_id=project_id,
        document_id=document_id,
        metrics=metrics,
        grand_total=grand_total,
        coerced_cells=warning_count or None,
    )


def log_ingestion_stage(
    stage: str,
    message: str,
    project_id: Optional[str] = None,
    **kwargs
) -> None:
    """Log an ingestion pipeline stage transition."""
    log_event(
        event_type="ingestion_stage",
        project_id=project_id,
        stage=stage,
        message=message,
        **kwargs
    )


def log_llm_retry(
    attempt: int,
    max_retries: int,
    delay_seconds: float,
    error: str,
    **kwargs
) -> None:
    """Log a retried LLM call."""
    log_event(
        event_type="llm_retry",
        attempt=attempt,
        max_retries=max_retries,
        delay_ms=round(delay_seconds * 1000),
        error=error,
        **kwargs
    )
