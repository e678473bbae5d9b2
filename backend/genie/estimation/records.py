"""
Actor and use-case records for the Use-Case-Point estimate.

Records are built from workspace table rows (strings typed by a person or
emitted by the model) or from JSON objects. Numeric cells are parsed
leniently: anything that is not a finite number counts as zero and a
CoercionWarning is recorded for the cell, so a malformed table still renders
zero-valued rows instead of failing.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# Column positions inside workspace tables
ACTOR_NAME_COL = 1
ACTOR_CLASS_COL = 2
ACTOR_WEIGHT_COL = 3
USE_CASE_NAME_COL = 1
USE_CASE_CLASS_COL = 2
USE_CASE_TRANSACTIONS_COL = 3
USE_CASE_WEIGHT_COL = 4

# cells above 10^15 are not weights or transaction counts
MAX_CELL_EXPONENT = 15


class Classification(str, Enum):
    SIMPLE = "Simple"
    AVERAGE = "Average"
    COMPLEX = "Complex"

    @classmethod
    def parse(cls, value: Any) -> Optional["Classification"]:
        """Case-insensitive lookup; unknown labels give None."""
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        text = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        return None


ACTOR_WEIGHTS = {
    Classification.SIMPLE: Decimal(1),
    Classification.AVERAGE: Decimal(2),
    Classification.COMPLEX: Decimal(3),
}

USE_CASE_WEIGHTS = {
    Classification.SIMPLE: Decimal(5),
    Classification.AVERAGE: Decimal(10),
    Classification.COMPLEX: Decimal(15),
}


def classify_transactions(transaction_count: int) -> Classification:
    """Standard UCP bands: up to 3 transactions Simple, 4-7 Average, 8+ Complex."""
    if transaction_count <= 3:
        return Classification.SIMPLE
    if transaction_count <= 7:
        return Classification.AVERAGE
    return Classification.COMPLEX


@dataclass(frozen=True)
class CoercionWarning:
    """A numeric cell that could not be parsed and was counted as zero."""
    table: str
    row: int
    field: str
    raw: str

    @property
    def message(self) -> str:
        return f"{self.table} row {self.row}: {self.field} '{self.raw}' is not a number, counted as 0"

    def to_dict(self) -> dict:
        return {"table": self.table, "row": self.row, "field": self.field, "raw": self.raw, "message": self.message}


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def safe_decimal(raw: Any) -> Tuple[Decimal, bool]:
    """
    Parse a numeric cell. Returns (value, ok); unparseable input gives (0, False).

    A single comma is read as the decimal mark ("2,5" is 2.5). Cells with
    more than one separator ("1.000.000", "1,000.5") are thousands-grouped
    amounts, which weights and transaction counts never are, so they are
    rejected. Values beyond MAX_CELL_EXPONENT are rejected too.
    """
    if isinstance(raw, bool) or _is_blank(raw):
        return Decimal(0), False
    if isinstance(raw, Decimal):
        value = raw
    else:
        text = str(raw).strip()
        if text.count(",") + text.count(".") > 1:
            return Decimal(0), False
        try:
            value = Decimal(text.replace(",", "."))
        except InvalidOperation:
            return Decimal(0), False
    if not value.is_finite() or (value and value.adjusted() > MAX_CELL_EXPONENT):
        return Decimal(0), False
    return value, True


def _resolve_weight(
    raw: Any,
    classification: Optional[Classification],
    weights: Mapping[Classification, Decimal],
    table: str,
    row: int,
    warnings: List[CoercionWarning],
) -> Decimal:
    # blank weight cells fall back to the classification table
    if _is_blank(raw) and classification is not None:
        return weights[classification]
    value, ok = safe_decimal(raw)
    if not ok:
        warnings.append(CoercionWarning(table, row, "weight", "" if raw is None else str(raw)))
    return value


def _cell(row: Sequence[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


@dataclass(frozen=True)
class ActorRecord:
    name: str
    classification: Optional[Classification]
    weight: Decimal

    @classmethod
    def create(cls, name: str, classification: Any, weight: Any = None,
               row: int = 1, warnings: Optional[List[CoercionWarning]] = None) -> "ActorRecord":
        sink = warnings if warnings is not None else []
        parsed = Classification.parse(classification)
        resolved = _resolve_weight(weight, parsed, ACTOR_WEIGHTS, "actors", row, sink)
        return cls(name=str(name or "").strip(), classification=parsed, weight=resolved)

    @classmethod
    def from_row(cls, row: Sequence[Any], row_number: int,
                 warnings: Optional[List[CoercionWarning]] = None) -> "ActorRecord":
        """Row layout: [No, Aktor, Klasifikasi, Weight]."""
        return cls.create(
            _cell(row, ACTOR_NAME_COL),
            _cell(row, ACTOR_CLASS_COL),
            _cell(row, ACTOR_WEIGHT_COL),
            row=row_number,
            warnings=warnings,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], row_number: int,
                     warnings: Optional[List[CoercionWarning]] = None) -> "ActorRecord":
        return cls.create(
            data.get("name"),
            data.get("classification") or data.get("type"),
            data.get("weight"),
            row=row_number,
            warnings=warnings,
        )

    def to_row(self, number: int) -> List[str]:
        label = self.classification.value if self.classification else ""
        return [str(number), self.name, label, _plain(self.weight)]


@dataclass(frozen=True)
class UseCaseRecord:
    name: str
    classification: Optional[Classification]
    transaction_count: int
    weight: Decimal

    @classmethod
    def create(cls, name: str, classification: Any, transaction_count: Any = None,
               weight: Any = None, row: int = 1,
               warnings: Optional[List[CoercionWarning]] = None) -> "UseCaseRecord":
        sink = warnings if warnings is not None else []
        transactions = 0
        if not _is_blank(transaction_count):
            value, ok = safe_decimal(transaction_count)
            if ok:
                transactions = int(value)
            else:
                sink.append(CoercionWarning("use_cases", row, "transactions", str(transaction_count)))
        parsed = Classification.parse(classification)
        if parsed is None and transactions > 0:
            parsed = classify_transactions(transactions)
        resolved = _resolve_weight(weight, parsed, USE_CASE_WEIGHTS, "use_cases", row, sink)
        return cls(
            name=str(name or "").strip(),
            classification=parsed,
            transaction_count=transactions,
            weight=resolved,
        )

    @classmethod
    def from_row(cls, row: Sequence[Any], row_number: int,
                 warnings: Optional[List[CoercionWarning]] = None) -> "UseCaseRecord":
        """Row layout: [No, Use Case, Tipe, Trans., Weight]."""
        return cls.create(
            _cell(row, USE_CASE_NAME_COL),
            _cell(row, USE_CASE_CLASS_COL),
            _cell(row, USE_CASE_TRANSACTIONS_COL),
            _cell(row, USE_CASE_WEIGHT_COL),
            row=row_number,
            warnings=warnings,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], row_number: int,
                     warnings: Optional[List[CoercionWarning]] = None) -> "UseCaseRecord":
        return cls.create(
            data.get("name"),
            data.get("classification") or data.get("type"),
            data.get("transaction_count", data.get("transactions")),
            data.get("weight"),
            row=row_number,
            warnings=warnings,
        )

    def to_row(self, number: int) -> List[str]:
        label = self.classification.value if self.classification else ""
        return [str(number), self.name, label, str(self.transaction_count), _plain(self.weight)]


def _plain(value: Decimal) -> str:
    # "3" rather than "3.0" or "3E+0"
    normalized = value.normalize()
    return format(normalized, "f")


def log_coercions(warnings: Sequence[CoercionWarning]) -> None:
    for warning in warnings:
        logger.warning(warning.message)
