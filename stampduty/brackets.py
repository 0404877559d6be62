"""Progressive duty brackets: normalising raw rows and evaluating them.

Rule tables encode brackets in one of two shapes:

  explicit  {lower_inclusive, upper_exclusive, base, marginal_rate, applies_above}
  legacy    {upper_bound, base, rate}  -- lower bound is the previous row's
            upper bound (0 for the first row) and the rate applies above it.

Both are resolved once, at load time, into ``BracketRow``. Evaluation never
looks at the raw field names.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from stampduty.errors import InvalidInput, ScheduleError

_EXPLICIT_FIELDS = ("lower_inclusive", "upper_exclusive", "marginal_rate")
_LEGACY_UPPER_FIELDS = ("upper_bound", "to", "up_to", "max")

ONE_DOLLAR = Decimal(1)


class RowShape(Enum):
    EXPLICIT = "explicit"
    LEGACY = "legacy"


@dataclass(frozen=True)
class BracketRow:
    """One tier of a progressive schedule, in canonical form."""

    lower_inclusive: Decimal
    upper_exclusive: Decimal | None  # None = open top tier
    base: Decimal
    marginal_rate: Decimal
    applies_above: Decimal

    def contains(self, price: Decimal) -> bool:
        return self.upper_exclusive is None or price < self.upper_exclusive

    def duty(self, price: Decimal) -> Decimal:
        """Unrounded duty for a price that falls in this tier."""
        return self.base + self.marginal_rate * (price - self.applies_above)


def round_dollars(value: Decimal) -> int:
    """Round to the nearest whole dollar, halves away from zero."""
    return int(value.quantize(ONE_DOLLAR, rounding=ROUND_HALF_UP))


def to_decimal(value, field: str = "value") -> Decimal:
    """Convert a YAML/JSON scalar to Decimal via its string form."""
    if isinstance(value, bool) or value is None:
        raise ScheduleError(f"{field} must be numeric, got {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ScheduleError(f"{field} must be numeric, got {value!r}") from exc


def price_to_decimal(price) -> Decimal:
    """Validate a caller-supplied price and convert it to Decimal."""
    if isinstance(price, bool) or not isinstance(price, (int, float, Decimal)):
        raise InvalidInput(f"price must be a number, got {price!r}")
    value = Decimal(str(price))
    if not value.is_finite() or value <= 0:
        raise InvalidInput(f"price must be a positive number, got {price!r}")
    return value


def detect_shape(row: dict) -> RowShape:
    if any(name in row for name in _EXPLICIT_FIELDS):
        return RowShape.EXPLICIT
    return RowShape.LEGACY


def _legacy_upper(row: dict):
    for name in _LEGACY_UPPER_FIELDS:
        if name in row:
            return row[name]
    return None


def normalize_rows(raw_rows) -> tuple[BracketRow, ...]:
    """Convert raw bracket rows of either shape into canonical rows.

    Raises ScheduleError when the result is empty or the tiers are not
    contiguous with a single open top tier.
    """
    if not isinstance(raw_rows, (list, tuple)):
        raise ScheduleError(f"bracket rows must be a list, got {type(raw_rows).__name__}")

    rows = []
    lower = Decimal(0)
    for idx, raw in enumerate(raw_rows):
        if not isinstance(raw, dict):
            raise ScheduleError(f"bracket row {idx} must be a mapping")

        if detect_shape(raw) is RowShape.EXPLICIT:
            li = to_decimal(raw.get("lower_inclusive", lower), "lower_inclusive")
            upper = raw.get("upper_exclusive")
            rate = to_decimal(raw.get("marginal_rate", 0), "marginal_rate")
        else:
            li = lower
            upper = _legacy_upper(raw)
            rate = to_decimal(raw.get("rate", 0), "rate")

        ue = None if upper is None else to_decimal(upper, "upper_exclusive")
        base = to_decimal(raw.get("base", 0), "base")
        applies = to_decimal(raw["applies_above"], "applies_above") if "applies_above" in raw else li

        rows.append(BracketRow(li, ue, base, rate, applies))
        if ue is not None:
            lower = ue

    if not rows:
        raise ScheduleError("Empty or invalid schedule")

    check_continuity(rows)
    return tuple(rows)


def check_continuity(rows) -> None:
    """Tiers must start at zero, touch end-to-end, and end in one open tier."""
    if rows[0].lower_inclusive != 0:
        raise ScheduleError(f"first tier must start at 0, starts at {rows[0].lower_inclusive}")

    open_tiers = [r for r in rows if r.upper_exclusive is None]
    if len(open_tiers) != 1 or rows[-1].upper_exclusive is not None:
        raise ScheduleError("schedule must end in exactly one open top tier")

    for prev, curr in zip(rows, rows[1:]):
        if prev.upper_exclusive != curr.lower_inclusive:
            raise ScheduleError(
                f"tiers are not contiguous: {prev.upper_exclusive} != {curr.lower_inclusive}"
            )
        if curr.lower_inclusive <= prev.lower_inclusive:
            raise ScheduleError("tiers must be in ascending order")


def find_row(rows, price: Decimal) -> BracketRow:
    """First tier whose upper bound exceeds the price, else the top tier."""
    for row in rows:
        if row.contains(price):
            return row
    return rows[-1]


def evaluate_rows(rows, price) -> int:
    """Marginal-rate duty for ``price``, rounded half-up to whole dollars."""
    if not rows:
        raise ScheduleError("Empty or invalid schedule")
    value = price if isinstance(price, Decimal) else price_to_decimal(price)
    return round_dollars(find_row(rows, value).duty(value))
