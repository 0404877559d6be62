"""Home guarantee scheme eligibility.

The scheme lets eligible buyers borrow up to 95% without mortgage
insurance, but only for purchases at or under a price cap that depends on
jurisdiction and region, and only for contracts signed once the current
caps took effect.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from functools import lru_cache
from pathlib import Path
from typing import Mapping

from stampduty.errors import InvalidInput, ScheduleError
from stampduty.rules import RULES_DIR, load_rule_file, normalize_region

GUARANTEE_FILE = RULES_DIR / "guarantee.yaml"
DEFAULT_REGION = "metro"


def parse_contract_date(value) -> date:
    """Accept a date, an ISO string, or None (today)."""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise InvalidInput(f"contract date must be YYYY-MM-DD, got {value!r}") from None


@dataclass(frozen=True)
class GuaranteeScheme:
    effective_from: date
    caps: Mapping[tuple[str, str], float] = field(default_factory=dict)

    def price_cap(self, jurisdiction: str, region: str | None = None) -> float | None:
        key = (jurisdiction.strip().upper(), normalize_region(region, DEFAULT_REGION))
        return self.caps.get(key)

    def is_eligible(
        self,
        jurisdiction: str,
        price: float,
        region: str | None = None,
        contract_date=None,
    ) -> bool:
        """True if a purchase at ``price`` falls under the scheme's cap."""
        if parse_contract_date(contract_date) < self.effective_from:
            return False
        cap = self.price_cap(jurisdiction, region)
        if cap is None:
            return False
        return price <= cap


def dict_to_scheme(data: dict) -> GuaranteeScheme:
    effective = data.get("effective_from")
    if effective is None:
        raise ScheduleError("guarantee table has no effective_from date")
    caps = {}
    for row in data.get("caps", []):
        key = (str(row["jurisdiction"]).upper(), normalize_region(row.get("region"), DEFAULT_REGION))
        caps[key] = float(row["price_cap"])
    return GuaranteeScheme(effective_from=parse_contract_date(effective), caps=caps)


@lru_cache(maxsize=4)
def load_guarantee_scheme(path: str | Path = GUARANTEE_FILE) -> GuaranteeScheme:
    return dict_to_scheme(load_rule_file(path))


def guarantee_eligible(jurisdiction: str, price: float, region: str | None = None, contract_date=None) -> bool:
    return load_guarantee_scheme().is_eligible(jurisdiction, price, region, contract_date)
