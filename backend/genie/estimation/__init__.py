# Estimation package - Use-Case-Point effort and RAB cost calculation

from genie.estimation.config import EstimationConfig, load_estimation_config, DEFAULT_ESTIMATION_CONFIG
from genie.estimation.records import ActorRecord, UseCaseRecord, Classification, CoercionWarning
from genie.estimation.engine import calculate_estimate, EstimateResult, EstimationMetrics, CostBreakdownRow, CostSummary

__all__ = [
    "EstimationConfig",
    "load_estimation_config",
    "DEFAULT_ESTIMATION_CONFIG",
    "ActorRecord",
    "UseCaseRecord",
    "Classification",
    "CoercionWarning",
    "calculate_estimate",
    "EstimateResult",
    "EstimationMetrics",
    "CostBreakdownRow",
    "CostSummary",
]
