"""Choosing which duty schedule ("mode") applies to a buyer.

Priority, first match wins:
  1. vacant land: first-home land rates (under their cap), else land, else established
  2. owner-occupier rates, where the jurisdiction has them and the price is under any cap
  3. first-home rates for the buyer's region, under that region's cap
  4. established (general) rates
"""

import logging
from decimal import Decimal

from stampduty.params import BuyerFlags
from stampduty.rules import (
    ESTABLISHED,
    FIRST_HOME_LAND,
    FIRST_HOME_PREFIX,
    LAND,
    OWNER_OCCUPIER,
    RuleSet,
    Schedule,
    normalize_region,
)

logger = logging.getLogger(__name__)


def resolve_region(rules: RuleSet, flags: BuyerFlags) -> str:
    """Buyer's region, defaulting to the jurisdiction's primary region."""
    return normalize_region(flags.region, rules.primary_region)


def _land_mode(rules: RuleSet, price: Decimal, flags: BuyerFlags) -> Schedule:
    if flags.is_first_home_buyer and rules.has_mode(FIRST_HOME_LAND):
        if rules.modes[FIRST_HOME_LAND].allows(price):
            return rules.resolve(FIRST_HOME_LAND)
    if rules.has_mode(LAND):
        return rules.resolve(LAND)
    return rules.resolve(ESTABLISHED)


def select_mode(rules: RuleSet, price: Decimal, flags: BuyerFlags) -> Schedule:
    """Return the schedule (with rows) that applies to this buyer at ``price``."""
    if flags.is_vacant_land:
        mode = _land_mode(rules, price, flags)
    elif (
        flags.is_owner_occupier
        and rules.supports_owner_occupier_mode
        and rules.has_mode(OWNER_OCCUPIER)
        and rules.modes[OWNER_OCCUPIER].allows(price)
    ):
        mode = rules.resolve(OWNER_OCCUPIER)
    else:
        mode = None
        if flags.is_first_home_buyer:
            name = FIRST_HOME_PREFIX + resolve_region(rules, flags)
            if name != FIRST_HOME_LAND and rules.has_mode(name) and rules.modes[name].allows(price):
                mode = rules.resolve(name)
        if mode is None:
            mode = rules.resolve(ESTABLISHED)

    logger.debug("%s @ %s -> mode %s", rules.jurisdiction, price, mode.name)
    return mode
