"""
Use-Case-Point cost estimation engine.

Pipeline: UAW + UUCW -> UUCP -> UCP (x TCF x ECF) -> person-hours (x PHM)
-> work days -> man-months -> per-activity effort and cost -> warranty -> tax.

``calculate_estimate`` is a pure function: it reads its inputs, returns a new
EstimateResult, and never rounds. All values are ``Decimal``; rounding to
whole rupiah is left to ``genie.estimation.formatting``. Same inputs always
produce the same result.
"""
from dataclasses import dataclass, field
from decimal import Context, Decimal, ROUND_HALF_EVEN, localcontext
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from genie.estimation.config import DEFAULT_ESTIMATION_CONFIG, EstimationConfig
from genie.estimation.records import ActorRecord, CoercionWarning, UseCaseRecord

ENGINE_CONTEXT = Context(prec=28, rounding=ROUND_HALF_EVEN)


@dataclass(frozen=True)
class EstimationMetrics:
    uaw: Decimal
    uucw: Decimal
    uucp: Decimal
    ucp: Decimal
    phm: Decimal
    work_days: Decimal
    man_months: Decimal

    def to_dict(self) -> Dict[str, float]:
        return {
            "uaw": float(self.uaw),
            "uucw": float(self.uucw),
            "uucp": float(self.uucp),
            "ucp": float(self.ucp),
            "phm": float(self.phm),
            "work_days": float(self.work_days),
            "man_months": float(self.man_months),
        }


@dataclass(frozen=True)
class CostBreakdownRow:
    activity: str
    percentage: Decimal
    effort_man_months: Decimal
    role: str
    rate_amount: Decimal
    cost_amount: Decimal

    def as_tuple(self) -> Tuple[str, Decimal, Decimal, str, Decimal, Decimal]:
        """Stable export column order: activity, percentage, effort, role, rate, cost."""
        return (
            self.activity,
            self.percentage,
            self.effort_man_months,
            self.role,
            self.rate_amount,
            self.cost_amount,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activity": self.activity,
            "percentage": float(self.percentage),
            "effort_man_months": float(self.effort_man_months),
            "role": self.role,
            "rate_amount": float(self.rate_amount),
            "cost_amount": float(self.cost_amount),
        }


@dataclass(frozen=True)
class CostSummary:
    total_effort_cost: Decimal
    warranty: Decimal
    subtotal: Decimal
    tax: Decimal
    grand_total: Decimal

    def to_dict(self) -> Dict[str, float]:
        return {
            "total_effort_cost": float(self.total_effort_cost),
            "warranty": float(self.warranty),
            "subtotal": float(self.subtotal),
            "tax": float(self.tax),
            "grand_total": float(self.grand_total),
        }


@dataclass(frozen=True)
class EstimateResult:
    metrics: EstimationMetrics
    rows: Tuple[CostBreakdownRow, ...]
    summary: CostSummary
    warnings: Tuple[CoercionWarning, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metrics": self.metrics.to_dict(),
            "rows": [row.to_dict() for row in self.rows],
            "summary": self.summary.to_dict(),
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


def compute_metrics(
    actors: Iterable[ActorRecord],
    use_cases: Iterable[UseCaseRecord],
    config: EstimationConfig,
) -> EstimationMetrics:
    with localcontext(ENGINE_CONTEXT):
        uaw = sum((actor.weight for actor in actors), Decimal(0))
        uucw = sum((use_case.weight for use_case in use_cases), Decimal(0))
        uucp = uaw + uucw
        ucp = uucp * config.tcf * config.ecf
        phm = ucp * config.phm_multiplier
        work_days = phm / config.hours_per_day
        man_months = work_days / config.days_per_month
    return EstimationMetrics(
        uaw=uaw,
        uucw=uucw,
        uucp=uucp,
        ucp=ucp,
        phm=phm,
        work_days=work_days,
        man_months=man_months,
    )


def distribute_cost(man_months: Decimal, config: EstimationConfig) -> Tuple[List[CostBreakdownRow], CostSummary]:
    """Split man-months over the activity table and apply warranty, then tax."""
    rows = []
    with localcontext(ENGINE_CONTEXT):
        for activity, share in config.effort_distribution.items():
            effort = man_months * share
            role = config.activity_roles[activity]
            rate = config.role_rates[role]
            rows.append(CostBreakdownRow(
                activity=activity,
                percentage=share,
                effort_man_months=effort,
                role=role,
                rate_amount=rate,
                cost_amount=effort * rate,
            ))

        total_effort_cost = sum((row.cost_amount for row in rows), Decimal(0))
        warranty = total_effort_cost * config.warranty_rate
        subtotal = total_effort_cost + warranty
        tax = subtotal * config.tax_rate
        grand_total = subtotal + tax

    return rows, CostSummary(
        total_effort_cost=total_effort_cost,
        warranty=warranty,
        subtotal=subtotal,
        tax=tax,
        grand_total=grand_total,
    )


def calculate_estimate(
    actors: Sequence[ActorRecord],
    use_cases: Sequence[UseCaseRecord],
    config: Optional[EstimationConfig] = None,
    warnings: Sequence[CoercionWarning] = (),
) -> EstimateResult:
    """
    Run the full estimate.

    Args:
        actors: Actor records (empty list gives UAW = 0)
        use_cases: Use-case records (empty list gives UUCW = 0)
        config: Validated calibration; defaults to the standard government tables
        warnings: Coercion warnings collected while building the records, carried
            through to the result so callers can surface them

    Returns:
        EstimateResult with metrics, one row per activity and the summary totals
    """
    config = config or DEFAULT_ESTIMATION_CONFIG
    metrics = compute_metrics(actors, use_cases, config)
    rows, summary = distribute_cost(metrics.man_months, config)
    return EstimateResult(
        metrics=metrics,
        rows=tuple(rows),
        summary=summary,
        warnings=tuple(warnings),
    )
