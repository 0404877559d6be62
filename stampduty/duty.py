"""Transfer duty for a property purchase.

    calc_duty("VIC", 650_000, BuyerFlags(is_owner_occupier=True, is_first_home_buyer=True))

resolves the jurisdiction's rule table, short-circuits to a closed-form
formula where one applies, otherwise picks a schedule, evaluates it and
applies any first home buyer concession. Results are whole dollars.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache

from stampduty.brackets import evaluate_rows, price_to_decimal
from stampduty.concessions import DutyContext, apply_concessions
from stampduty.modes import select_mode
from stampduty.params import BuyerFlags
from stampduty.rules import DEFAULT_PERIOD, FIRST_HOME_PREFIX, RuleBook, load_rulebook

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DutyBreakdown:
    """How a duty figure was reached."""

    jurisdiction: str
    price: float
    mode: str  # schedule used, or "formula"
    base_duty: int  # before concessions
    duty: int

    @property
    def concession(self) -> int:
        return self.base_duty - self.duty


class DutyEngine:
    """Duty calculator bound to one immutable set of rule tables."""

    def __init__(self, rulebook: RuleBook):
        self.rulebook = rulebook

    def breakdown(self, jurisdiction: str, price, flags: BuyerFlags | None = None) -> DutyBreakdown:
        flags = flags or BuyerFlags()
        rules = self.rulebook.get(jurisdiction)
        value = price_to_decimal(price)
        rules.require_ready()

        if rules.formula is not None and rules.formula.applies(value):
            duty = rules.formula.evaluate(value)
            return DutyBreakdown(rules.jurisdiction, price, "formula", duty, duty)

        mode = select_mode(rules, value, flags)
        base_duty = evaluate_rows(mode.rows, value)
        duty = apply_concessions(DutyContext(rules, value, flags, mode, base_duty))
        logger.debug("%s duty @ %s: base %s, final %s", rules.jurisdiction, value, base_duty, duty)
        return DutyBreakdown(rules.jurisdiction, price, mode.name, base_duty, duty)

    def calc_duty(self, jurisdiction: str, price, flags: BuyerFlags | None = None) -> int:
        return self.breakdown(jurisdiction, price, flags).duty

    def duty_from_schedule(self, jurisdiction: str, price, mode_name: str) -> int:
        """Evaluate one named schedule directly, with no selection or concessions."""
        rules = self.rulebook.get(jurisdiction)
        value = price_to_decimal(price)
        rules.require_ready()
        return evaluate_rows(rules.rows_for(mode_name), value)

    def features(self, jurisdiction: str) -> dict:
        """What a front end needs to know to offer the right options."""
        rules = self.rulebook.get(jurisdiction)
        regions = {rules.primary_region}
        for name, mode in rules.modes.items():
            if name.startswith(FIRST_HOME_PREFIX) and mode.region:
                regions.add(mode.region)
        return {
            "jurisdiction": rules.jurisdiction,
            "financial_year": rules.financial_year,
            "status": rules.status,
            "supports_owner_occupier_mode": rules.supports_owner_occupier_mode,
            "modes": sorted(rules.modes),
            "regions": sorted(regions),
        }

    def supported_jurisdictions(self) -> list[str]:
        return self.rulebook.jurisdictions


@lru_cache(maxsize=4)
def default_engine(period: str = DEFAULT_PERIOD) -> DutyEngine:
    return DutyEngine(load_rulebook(period))


def calc_duty(jurisdiction: str, price, flags: BuyerFlags | None = None) -> int:
    """Duty in whole dollars using the bundled rule tables."""
    return default_engine().calc_duty(jurisdiction, price, flags)


def jurisdiction_features(jurisdiction: str) -> dict:
    return default_engine().features(jurisdiction)


def supported_jurisdictions() -> list[str]:
    return default_engine().supported_jurisdictions()
