"""
Display formatting for estimates: rupiah amounts, percentages and RAB table rows.

This is the only place estimate values get rounded.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from genie.estimation.config import EstimationConfig, DEFAULT_ESTIMATION_CONFIG
from genie.estimation.engine import EstimateResult

RAB_HEADERS = ["Fase / Aktivitas", "Effort (%)", "Effort (MM)", "Role", "Rate (IDR)", "Biaya (IDR)"]

SUMMARY_ROW_COUNT = 5

_COMPACT_UNITS = [
    (Decimal("1000000000000"), "T"),
    (Decimal("1000000000"), "M"),
    (Decimal("1000000"), "Jt"),
]


def to_rupiah(value: Decimal) -> Decimal:
    """Round to whole rupiah, half up."""
    return Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP)


def _group_thousands(amount: Decimal) -> str:
    # Indonesian grouping uses dots: 21.950.000
    return f"{int(amount):,}".replace(",", ".")


def format_idr(value: Decimal, compact: bool = False) -> str:
    """
    Format an amount as rupiah.

    >>> format_idr(Decimal("2106194.4"))
    'Rp 2.106.194'
    >>> format_idr(Decimal("171759305"), compact=True)
    'Rp 171,8 Jt'
    """
    value = Decimal(value)
    sign = "-" if value < 0 else ""
    amount = abs(value)
    if compact:
        for threshold, unit in _COMPACT_UNITS:
            if amount >= threshold:
                scaled = (amount / threshold).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
                return f"{sign}Rp {format(scaled, 'f').replace('.', ',')} {unit}"
    return f"{sign}Rp {_group_thousands(to_rupiah(amount))}"


def format_number(value: Decimal, places: int = 2) -> str:
    quantum = Decimal(1).scaleb(-places)
    return format(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP), "f")


def format_percentage(fraction: Decimal, places: int = 1) -> str:
    """0.016 -> '1.6%'."""
    return f"{format_number(Decimal(fraction) * 100, places)}%"


def percent_label(rate: Decimal) -> str:
    """0.25 -> '25', 0.115 -> '11.5'."""
    return format((Decimal(rate) * 100).normalize(), "f")


def summary_labels(config: Optional[EstimationConfig] = None) -> List[str]:
    config = config or DEFAULT_ESTIMATION_CONFIG
    return [
        "Total Effort Cost",
        f"Warranty ({percent_label(config.warranty_rate)}%)",
        "Sub Total",
        f"PPN ({percent_label(config.tax_rate)}%)",
        "TOTAL BIAYA (RAB)",
    ]


def render_rab_rows(result: EstimateResult, config: Optional[EstimationConfig] = None) -> List[List[str]]:
    """
    Render an estimate as the rows of the RAB workspace table.

    Twelve activity rows in [activity, percentage, effort, role, rate, cost]
    order, then Total Effort, Warranty, Sub Total, PPN and the grand total.
    """
    labels = summary_labels(config)
    rows = [
        [
            row.activity,
            format_percentage(row.percentage),
            format_number(row.effort_man_months, 3),
            row.role,
            format_idr(row.rate_amount),
            format_idr(row.cost_amount),
        ]
        for row in result.rows
    ]
    summary = result.summary
    rows.append([labels[0], "100%", format_number(result.metrics.man_months, 2), "-", "-",
                 format_idr(summary.total_effort_cost)])
    rows.append([labels[1], "-", "-", "-", "-", format_idr(summary.warranty)])
    rows.append([labels[2], "-", "-", "-", "-", format_idr(summary.subtotal)])
    rows.append([labels[3], "-", "-", "-", "-", format_idr(summary.tax)])
    rows.append([labels[4], "-", "-", "-", "-", format_idr(summary.grand_total)])
    return rows
