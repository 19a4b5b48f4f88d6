"""
Period descriptors and index resolution.

Column tokens coming from the period-selection UI ("Mar", "march", "3",
"Q1", "HY2", "FY", "Full Year", "YTD", ...) are parsed once into a
tagged PeriodKind. Everything downstream compares kinds by value.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple, Union

logger = logging.getLogger(__name__)

NOT_FOUND = -1


class PeriodParseError(ValueError):
    """Raised when a column descriptor cannot be interpreted."""


class PeriodType(str, Enum):
    ACTUAL = "Actual"
    BUDGET = "Budget"
    FORECAST = "Forecast"


@dataclass(frozen=True)
class Month:
    number: int  # 1..12

    @property
    def label(self) -> str:
        return MONTH_LABELS[self.number - 1]


@dataclass(frozen=True)
class Quarter:
    number: int  # 1..4

    @property
    def label(self) -> str:
        return f"Q{self.number}"


@dataclass(frozen=True)
class Half:
    number: int  # 1..2

    @property
    def label(self) -> str:
        return f"HY{self.number}"


@dataclass(frozen=True)
class FullYear:
    @property
    def label(self) -> str:
        return "FY"


@dataclass(frozen=True)
class YearToDate:
    @property
    def label(self) -> str:
        return "YTD"


PeriodKind = Union[Month, Quarter, Half, FullYear, YearToDate]

MONTH_LABELS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

_MONTH_TOKENS: Dict[str, int] = {}
for _i, _name in enumerate(MONTH_LABELS, start=1):
    _MONTH_TOKENS[_name.lower()] = _i
    _MONTH_TOKENS[_name[:3].lower()] = _i
_MONTH_TOKENS["sept"] = 9

_FULL_YEAR_TOKENS = {"fy", "year", "full year", "fullyear", "full-year", "full_year"}
_YTD_TOKENS = {"ytd", "yrtodate", "year-to-date"}
_QUARTER_TOKENS = {"q1": 1, "q2": 2, "q3": 3, "q4": 4}
_HALF_TOKENS = {"hy1": 1, "hy2": 2, "h1": 1, "h2": 2}

_TYPE_TOKENS = {
    "actual": PeriodType.ACTUAL,
    "budget": PeriodType.BUDGET,
    "fy budget": PeriodType.BUDGET,
    "full year budget": PeriodType.BUDGET,
    "forecast": PeriodType.FORECAST,
    "estimate": PeriodType.FORECAST,
    "fy estimate": PeriodType.FORECAST,
}


def normalize_token(value) -> str:
    return str(value if value is not None else "").strip().lower()


def parse_month_token(token) -> PeriodKind:
    """Parse a month/quarter/half/FY/YTD token into a PeriodKind."""
    x = normalize_token(token)
    if x in _MONTH_TOKENS:
        return Month(_MONTH_TOKENS[x])
    if x in _QUARTER_TOKENS:
        return Quarter(_QUARTER_TOKENS[x])
    if x in _HALF_TOKENS:
        return Half(_HALF_TOKENS[x])
    if x in _FULL_YEAR_TOKENS:
        return FullYear()
    if x in _YTD_TOKENS:
        return YearToDate()
    if x.isdigit() and 1 <= int(x) <= 12:
        return Month(int(x))
    raise PeriodParseError(f"Unrecognised month token: {token!r}")


def parse_period_type(token) -> PeriodType:
    x = normalize_token(token)
    if x not in _TYPE_TOKENS:
        raise PeriodParseError(f"Unrecognised period type: {token!r}")
    return _TYPE_TOKENS[x]


@dataclass(frozen=True)
class Period:
    """One column of the report: a year, a period kind and a data type."""
    year: int
    kind: PeriodKind
    type: PeriodType
    raw_month: str = field(default="", compare=False)

    @classmethod
    def parse(cls, year, month, type) -> "Period":
        try:
            year_value = int(year)
        except (TypeError, ValueError):
            raise PeriodParseError(f"Invalid year: {year!r}")
        return cls(
            year=year_value,
            kind=parse_month_token(month),
            type=parse_period_type(type),
            raw_month=str(month).strip(),
        )

    @property
    def is_budget(self) -> bool:
        return self.type == PeriodType.BUDGET

    @property
    def is_actual(self) -> bool:
        return self.type == PeriodType.ACTUAL

    @property
    def is_full_year(self) -> bool:
        return isinstance(self.kind, FullYear)

    @property
    def is_ytd(self) -> bool:
        return isinstance(self.kind, YearToDate)

    @property
    def month_number(self) -> Optional[int]:
        """Calendar month number, only for single-month periods."""
        return self.kind.number if isinstance(self.kind, Month) else None

    @property
    def label(self) -> str:
        return f"{self.kind.label} {self.year} {self.type.value}"

    def to_dict(self) -> Dict[str, object]:
        return {
            "year": self.year,
            "month": self.kind.label,
            "type": self.type.value,
            "label": self.label,
        }


class ColumnSchema:
    """Ordered, immutable sequence of periods shared by every entity row."""

    def __init__(self, periods: Iterable[Period]):
        self._periods: Tuple[Period, ...] = tuple(periods)

    @classmethod
    def from_dicts(cls, columns: Iterable[Dict[str, object]]) -> "ColumnSchema":
        return cls(
            Period.parse(c.get("year"), c.get("month"), c.get("type"))
            for c in columns
        )

    def __len__(self) -> int:
        return len(self._periods)

    def __getitem__(self, index: int) -> Period:
        return self._periods[index]

    def __iter__(self) -> Iterator[Period]:
        return iter(self._periods)

    def __eq__(self, other) -> bool:
        return isinstance(other, ColumnSchema) and self._periods == other._periods

    def __hash__(self) -> int:
        return hash(self._periods)

    def __repr__(self) -> str:
        return f"ColumnSchema({[p.label for p in self._periods]!r})"

    def is_valid_index(self, index: Optional[int]) -> bool:
        return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(self)

    def find(self, predicate: Callable[[Period], bool]) -> int:
        """Index of the first period matching the predicate, or NOT_FOUND."""
        for i, period in enumerate(self._periods):
            if predicate(period):
                return i
        return NOT_FOUND

    def find_first(self, *predicates: Callable[[Period], bool]) -> int:
        """Try predicates most-specific-first; index of the first hit."""
        for predicate in predicates:
            index = self.find(predicate)
            if index != NOT_FOUND:
                return index
        return NOT_FOUND


@dataclass(frozen=True)
class ResolvedPeriods:
    """Column indices the engine reads; NOT_FOUND (-1) where a column is absent."""
    base_index: int
    budget_index: int
    previous_year_index: int
    ytd_current_index: int
    ytd_previous_index: int
    fy_current_index: int
    fy_previous_index: int
    fy_budget_index: int
    is_fy_period: bool

    @property
    def has_budget(self) -> bool:
        return self.budget_index != NOT_FOUND

    @property
    def has_prev_year(self) -> bool:
        return self.previous_year_index != NOT_FOUND

    @property
    def has_ytd_current(self) -> bool:
        return self.ytd_current_index != NOT_FOUND

    @property
    def has_ytd(self) -> bool:
        return self.has_ytd_current and self.ytd_previous_index != NOT_FOUND

    @property
    def has_fy(self) -> bool:
        return self.fy_current_index != NOT_FOUND

    @property
    def has_fy_budget(self) -> bool:
        return self.fy_budget_index != NOT_FOUND

    @property
    def has_fy_comparison(self) -> bool:
        return self.has_fy and (self.fy_previous_index != NOT_FOUND or self.has_fy_budget)

    def to_dict(self) -> Dict[str, object]:
        return {
            "base_index": self.base_index,
            "budget_index": self.budget_index,
            "previous_year_index": self.previous_year_index,
            "ytd_current_index": self.ytd_current_index,
            "ytd_previous_index": self.ytd_previous_index,
            "fy_current_index": self.fy_current_index,
            "fy_previous_index": self.fy_previous_index,
            "fy_budget_index": self.fy_budget_index,
            "is_fy_period": self.is_fy_period,
        }


def find_budget_index(schema: ColumnSchema, base_period_index: int) -> int:
    """
    Budget column for the base period, most specific first:
    same year and month, FY budget of the same year, any budget of the
    same year, any budget at all.
    """
    if not schema.is_valid_index(base_period_index):
        return NOT_FOUND
    base = schema[base_period_index]
    return schema.find_first(
        lambda c: c.is_budget and c.year == base.year and c.kind == base.kind,
        lambda c: c.is_budget and c.year == base.year and c.is_full_year,
        lambda c: c.is_budget and c.year == base.year,
        lambda c: c.is_budget,
    )


def resolve_periods(schema: ColumnSchema, base_period_index: int) -> ResolvedPeriods:
    """Resolve every comparison column relative to the base period."""
    if not schema.is_valid_index(base_period_index):
        raise ValueError(f"Base period index {base_period_index!r} is outside the schema")

    base = schema[base_period_index]
    year, prev_year = base.year, base.year - 1

    # Prior year must be an exact match; a missing year is reported, not substituted.
    previous_year_index = schema.find(
        lambda c: c.is_actual and c.year == prev_year and c.kind == base.kind
    )

    resolved = ResolvedPeriods(
        base_index=base_period_index,
        budget_index=find_budget_index(schema, base_period_index),
        previous_year_index=previous_year_index,
        ytd_current_index=schema.find(lambda c: c.is_actual and c.is_ytd and c.year == year),
        ytd_previous_index=schema.find(lambda c: c.is_actual and c.is_ytd and c.year == prev_year),
        fy_current_index=schema.find_first(
            lambda c: c.is_actual and c.is_full_year and c.year == year,
            lambda c: c.type == PeriodType.FORECAST and c.is_full_year and c.year == year,
        ),
        fy_previous_index=schema.find(lambda c: c.is_actual and c.is_full_year and c.year == prev_year),
        fy_budget_index=schema.find(lambda c: c.is_budget and c.is_full_year and c.year == year),
        is_fy_period=base.is_full_year,
    )
    logger.debug("Resolved periods for %s: %s", base.label, resolved)
    return resolved


def months_remaining(period: Period) -> Optional[int]:
    """Months left in the year after a calendar-month period; None for other granularities."""
    month = period.month_number
    if month is None:
        return None
    return max(0, 12 - month)
