"""First home buyer concessions.

Two kinds of concession share one interface, ``apply(ctx) -> int | None``
(``None`` meaning "does not apply here, keep looking"):

  * jurisdiction concessions -- statutory formulas written out in code,
    keyed by jurisdiction code and always tried first;
  * declarative concessions -- the ``fhb.concessions`` rows of a rule
    table, first matching row wins.

A buyer that matches nothing pays the base duty.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal

from stampduty.brackets import evaluate_rows, round_dollars
from stampduty.params import BuyerFlags
from stampduty.rules import (
    ESTABLISHED,
    OWNER_OCCUPIER,
    ConcessionRule,
    RuleSet,
    Schedule,
    TaperShape,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DutyContext:
    """Everything a concession needs to know about one query."""

    rules: RuleSet
    price: Decimal
    flags: BuyerFlags
    mode: Schedule
    base_duty: int

    def duty_under(self, mode_name: str | None, price: Decimal | None = None) -> int:
        """Duty at ``price`` (default: the query price) under a named mode."""
        rows = self.mode.rows if mode_name is None else self.rules.rows_for(mode_name)
        return evaluate_rows(rows, self.price if price is None else price)


# ---------------------------------------------------------------------------
# Taper arithmetic
# ---------------------------------------------------------------------------


def taper_fraction(price: Decimal, start: Decimal, end: Decimal) -> Decimal:
    """Position of ``price`` in (start, end) as a fraction 0..1."""
    return (price - start) / (end - start)


def linear_taper(target: int, price: Decimal, start: Decimal, end: Decimal) -> int:
    """Scale ``target`` duty linearly from 0 at ``start`` to full at ``end``."""
    return round_dollars(Decimal(target) * taper_fraction(price, start, end))


def step_rebate(
    target: int,
    max_rebate: int,
    price: Decimal,
    start: Decimal,
    step_amount: Decimal,
    step_interval: Decimal,
) -> int:
    """Duty after a rebate that shrinks by ``step_amount`` per started interval."""
    steps = ((price - start) / step_interval).to_integral_value(rounding=ROUND_CEILING)
    rebate = max(Decimal(0), Decimal(max_rebate) - steps * step_amount)
    return round_dollars(max(Decimal(0), Decimal(target) - rebate))


# ---------------------------------------------------------------------------
# Concession variants
# ---------------------------------------------------------------------------


class Concession:
    """A way of reducing duty for first home buyers."""

    def apply(self, ctx: DutyContext) -> int | None:
        raise NotImplementedError


@dataclass(frozen=True)
class DeclarativeConcession(Concession):
    rule: ConcessionRule

    def apply(self, ctx: DutyContext) -> int | None:
        rule = self.rule
        if not rule.matches(ctx.flags.property_type, ctx.flags.is_owner_occupier):
            return None

        start, end = rule.full_exemption_up_to, rule.taper_end_price
        if ctx.price <= start:
            return 0
        if end is None or ctx.price >= end:
            return ctx.base_duty

        if rule.taper_shape is TaperShape.LINEAR_TO_FULL:
            return linear_taper(ctx.duty_under(rule.basis_mode), ctx.price, start, end)

        if rule.taper_shape is TaperShape.LINEAR_TO_CAP:
            target = ctx.duty_under(rule.basis_mode, rule.cap_price)
            return linear_taper(target, ctx.price, start, end)

        return step_rebate(
            target=ctx.duty_under(rule.basis_mode),
            max_rebate=ctx.duty_under(rule.basis_mode, start),
            price=ctx.price,
            start=start,
            step_amount=rule.step_amount,
            step_interval=rule.step_interval,
        )


class NswFirstHomeBuyers(Concession):
    """NSW First Home Buyers Assistance.

    No duty up to the exemption threshold, then a linear phase-in to the
    buyer's own base duty at the upper threshold. Homes and vacant land
    have separate thresholds.
    """

    THRESHOLDS = {
        "established": (Decimal(800_000), Decimal(1_000_000)),
        "land": (Decimal(350_000), Decimal(450_000)),
    }

    def apply(self, ctx: DutyContext) -> int | None:
        start, end = self.THRESHOLDS[ctx.flags.property_type]
        if ctx.price <= start:
            return 0
        if ctx.price < end:
            return linear_taper(ctx.base_duty, ctx.price, start, end)
        return None


class VicFirstHomeBuyer(Concession):
    """VIC first home buyer duty exemption and concession (homes, owner-occupied).

    Exempt up to $600k; between $600k and $750k duty phases in linearly
    towards the general (established) rate at the same price.
    """

    START = Decimal(600_000)
    END = Decimal(750_000)

    def apply(self, ctx: DutyContext) -> int | None:
        if ctx.flags.is_vacant_land or not ctx.flags.is_owner_occupier:
            return None
        if ctx.price <= self.START:
            return 0
        if ctx.price < self.END:
            return linear_taper(ctx.duty_under(ESTABLISHED), ctx.price, self.START, self.END)
        return None


class QldFirstHomeConcession(Concession):
    """QLD first home concession (homes, owner-occupied).

    Exempt up to $700k. Above that the concession is the home concession
    duty at $700k, reduced by $1,735 for every $10,000 (or part) over
    $700k, and is gone by $800k.
    """

    START = Decimal(700_000)
    END = Decimal(800_000)
    STEP_AMOUNT = Decimal(1_735)
    STEP_INTERVAL = Decimal(10_000)

    def apply(self, ctx: DutyContext) -> int | None:
        if ctx.flags.is_vacant_land or not ctx.flags.is_owner_occupier:
            return None
        if ctx.price <= self.START:
            return 0
        if ctx.price < self.END:
            return step_rebate(
                target=ctx.duty_under(OWNER_OCCUPIER),
                max_rebate=ctx.duty_under(OWNER_OCCUPIER, self.START),
                price=ctx.price,
                start=self.START,
                step_amount=self.STEP_AMOUNT,
                step_interval=self.STEP_INTERVAL,
            )
        return None


JURISDICTION_CONCESSIONS: dict[str, tuple[Concession, ...]] = {
    "NSW": (NswFirstHomeBuyers(),),
    "VIC": (VicFirstHomeBuyer(),),
    "QLD": (QldFirstHomeConcession(),),
}


def concessions_for(rules: RuleSet) -> list[Concession]:
    """Jurisdiction concessions first, then the rule table's declarative rows."""
    concessions = list(JURISDICTION_CONCESSIONS.get(rules.jurisdiction, ()))
    concessions.extend(DeclarativeConcession(rule) for rule in rules.concessions)
    return concessions


def apply_concessions(ctx: DutyContext) -> int:
    """Final duty for the query after any first home buyer concession."""
    if not ctx.flags.is_first_home_buyer:
        return ctx.base_duty

    for concession in concessions_for(ctx.rules):
        duty = concession.apply(ctx)
        if duty is not None:
            logger.debug(
                "%s concession %s: %s -> %s",
                ctx.rules.jurisdiction, type(concession).__name__, ctx.base_duty, duty,
            )
            return duty
    return ctx.base_duty
