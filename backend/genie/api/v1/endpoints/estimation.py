from fastapi import APIRouter, Depends, HTTPException, status
from typing import Any, Dict, List
import logging

from genie.core.config import get_estimation_config
from genie.core.exceptions import EstimationConfigError
from genie.estimation.complexity import environmental_complexity, technical_complexity
from genie.estimation.config import EstimationConfig, load_estimation_config
from genie.estimation.engine import calculate_estimate
from genie.estimation.formatting import render_rab_rows
from genie.estimation.records import ActorRecord, CoercionWarning, UseCaseRecord, log_coercions
from genie.schemas.estimation import (
    ComplexityRequest,
    ComplexityResponse,
    EstimateRequest,
    EstimateResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/calculate", response_model=EstimateResponse)
async def calculate(
    request: EstimateRequest,
    config: EstimationConfig = Depends(get_estimation_config)
):
    """
    Stateless estimate from actor and use-case lists.

    TCF, ECF and the PHM multiplier may be overridden per request; malformed
    weights or transaction counts count as zero and are listed in ``warnings``.
    """
    overrides = {
        "tcf": request.tcf,
        "ecf": request.ecf,
        "phm_multiplier": request.phm_multiplier,
    }
    if any(value is not None for value in overrides.values()):
        try:
            config = load_estimation_config({**config.model_dump(), **overrides})
        except EstimationConfigError as e:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    warnings: List[CoercionWarning] = []
    actors = [
        ActorRecord.from_mapping(actor.model_dump(), number, warnings)
        for number, actor in enumerate(request.actors, 1)
    ]
    use_cases = [
        UseCaseRecord.from_mapping(use_case.model_dump(), number, warnings)
        for number, use_case in enumerate(request.use_cases, 1)
    ]
    log_coercions(warnings)

    result = calculate_estimate(actors, use_cases, config, warnings)
    payload = result.to_dict()
    return EstimateResponse(table=render_rab_rows(result, config), **payload)


@router.get("/config")
async def get_config(config: EstimationConfig = Depends(get_estimation_config)) -> Dict[str, Any]:
    """Calibration currently in force"""
    return {
        "tcf": float(config.tcf),
        "ecf": float(config.ecf),
        "phm_multiplier": float(config.phm_multiplier),
        "hours_per_day": float(config.hours_per_day),
        "days_per_month": float(config.days_per_month),
        "warranty_rate": float(config.warranty_rate),
        "tax_rate": float(config.tax_rate),
        "currency": config.currency,
        "effort_distribution": {k: float(v) for k, v in config.effort_distribution.items()},
        "role_rates": {k: float(v) for k, v in config.role_rates.items()},
        "activity_roles": dict(config.activity_roles),
    }


@router.post("/complexity", response_model=ComplexityResponse)
async def complexity(request: ComplexityRequest):
    """TCF and ECF from factor ratings (0-5)"""
    try:
        technical = technical_complexity(request.technical)
        environmental = environmental_complexity(request.environmental)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return ComplexityResponse(
        tcf=float(technical.factor),
        ecf=float(environmental.factor),
        technical=technical.to_dict(),
        environmental=environmental.to_dict(),
    )
