"""
Calibration tables for the Use-Case-Point cost estimate.

This module is the only place the effort distribution, role rates and
activity-to-role map are defined. The live workspace recalculation and every
export read them from an ``EstimationConfig`` built here, so the on-screen RAB
and the exported files always agree.
"""
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from genie.core.exceptions import EstimationConfigError

DEFAULT_TCF = Decimal("0.87")
DEFAULT_ECF = Decimal("0.77")
DEFAULT_PHM_MULTIPLIER = Decimal("20")  # person-hours per UCP
DEFAULT_HOURS_PER_DAY = Decimal("8")
DEFAULT_DAYS_PER_MONTH = Decimal("22")
DEFAULT_WARRANTY_RATE = Decimal("0.25")
DEFAULT_TAX_RATE = Decimal("0.11")  # PPN

PERCENTAGE_TOLERANCE = Decimal("0.000001")

# Share of total effort per activity (fractions, sum to 1)
EFFORT_DISTRIBUTION: Dict[str, Decimal] = {
    "Needs analysis": Decimal("0.016"),
    "Specification": Decimal("0.075"),
    "Design": Decimal("0.060"),
    "Implementation (Coding)": Decimal("0.520"),
    "Acceptance & installation": Decimal("0.055"),
    "Project management": Decimal("0.038"),
    "Configuration management": Decimal("0.043"),
    "Documentation": Decimal("0.084"),
    "Training & technical support": Decimal("0.010"),
    "Integrated testing": Decimal("0.070"),
    "Quality assurance": Decimal("0.009"),
    "Evaluation & testing": Decimal("0.020"),
}

# Monthly rates (IDR), Inkindo 2023 schedule
ROLE_RATES: Dict[str, Decimal] = {
    "Project Manager": Decimal("28150000"),
    "Business Analyst": Decimal("21950000"),
    "System Analyst": Decimal("21950000"),
    "Programmer": Decimal("21950000"),
    "Quality Control": Decimal("13950000"),
    "Quality Assurance": Decimal("13950000"),
    "Technical Writer": Decimal("13950000"),
    "Tester": Decimal("13950000"),
}

ACTIVITY_ROLES: Dict[str, str] = {
    "Needs analysis": "Business Analyst",
    "Specification": "System Analyst",
    "Design": "System Analyst",
    "Implementation (Coding)": "Programmer",
    "Acceptance & installation": "System Analyst",
    "Project management": "Project Manager",
    "Configuration management": "System Analyst",
    "Documentation": "Technical Writer",
    "Training & technical support": "Technical Writer",
    "Integrated testing": "Tester",
    "Quality assurance": "Tester",
    "Evaluation & testing": "Tester",
}


def _to_decimal(value: Any) -> Any:
    # floats go through str() so 0.87 stays 0.87 instead of its binary expansion
    if isinstance(value, float):
        return Decimal(str(value))
    return value


class EstimationConfig(BaseModel):
    """Calibration constants and tables consumed by the cost estimation engine."""

    tcf: Decimal = Field(DEFAULT_TCF, description="Technical Complexity Factor")
    ecf: Decimal = Field(DEFAULT_ECF, description="Environmental Complexity Factor")
    phm_multiplier: Decimal = Field(DEFAULT_PHM_MULTIPLIER, description="Person-hours per use case point")
    hours_per_day: Decimal = Field(DEFAULT_HOURS_PER_DAY, description="Work hours per day")
    days_per_month: Decimal = Field(DEFAULT_DAYS_PER_MONTH, description="Work days per month")
    warranty_rate: Decimal = Field(DEFAULT_WARRANTY_RATE, description="Warranty markup on total effort cost")
    tax_rate: Decimal = Field(DEFAULT_TAX_RATE, description="Tax (PPN) on the subtotal")
    currency: str = "IDR"
    effort_distribution: Dict[str, Decimal] = Field(default_factory=lambda: dict(EFFORT_DISTRIBUTION))
    role_rates: Dict[str, Decimal] = Field(default_factory=lambda: dict(ROLE_RATES))
    activity_roles: Dict[str, str] = Field(default_factory=lambda: dict(ACTIVITY_ROLES))

    class Config:
        frozen = True

    @field_validator(
        "tcf", "ecf", "phm_multiplier", "hours_per_day", "days_per_month",
        "warranty_rate", "tax_rate",
        mode="before",
    )
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Any:
        return _to_decimal(value)

    @field_validator("effort_distribution", "role_rates", mode="before")
    @classmethod
    def _coerce_table(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {key: _to_decimal(item) for key, item in value.items()}
        return value

    @field_validator("tcf", "ecf", "phm_multiplier", "warranty_rate", "tax_rate")
    @classmethod
    def _finite(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            raise ValueError("must be a finite number")
        return value

    @field_validator("hours_per_day", "days_per_month")
    @classmethod
    def _positive_divisor(cls, value: Decimal) -> Decimal:
        if not value.is_finite() or value <= 0:
            raise ValueError("divisor must be a finite number greater than zero")
        return value

    @model_validator(mode="after")
    def _check_tables(self) -> "EstimationConfig":
        if not self.effort_distribution:
            raise ValueError("effort distribution table is empty")
        for activity, share in self.effort_distribution.items():
            if not share.is_finite() or share < 0:
                raise ValueError(f"effort share for '{activity}' must be a non-negative number")
        total = sum(self.effort_distribution.values(), Decimal(0))
        if abs(total - 1) > PERCENTAGE_TOLERANCE:
            raise ValueError(f"effort distribution must sum to 1.0 (got {total})")
        for role, rate in self.role_rates.items():
            if not rate.is_finite() or rate < 0:
                raise ValueError(f"rate for role '{role}' must be a non-negative number")
        for activity in self.effort_distribution:
            role = self.activity_roles.get(activity)
            if role is None:
                raise ValueError(f"activity '{activity}' has no role assigned")
            if role not in self.role_rates:
                raise ValueError(f"role '{role}' (activity '{activity}') has no rate")
        return self

    def rate_for(self, activity: str) -> Decimal:
        return self.role_rates[self.activity_roles[activity]]


def load_estimation_config(overrides: Optional[Dict[str, Any]] = None) -> EstimationConfig:
    """
    Build and validate an EstimationConfig.

    ``None`` values in overrides are ignored so callers can pass optional
    settings straight through. Any validation failure is reported as a single
    EstimationConfigError, meant to stop startup.
    """
    values = {key: value for key, value in (overrides or {}).items() if value is not None}
    try:
        return EstimationConfig(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise EstimationConfigError(f"Invalid estimation configuration: {problems}") from e


DEFAULT_ESTIMATION_CONFIG = EstimationConfig()
