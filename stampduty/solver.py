"""Purchasing power: the most a buyer can pay.

A price is feasible when the buyer's cash covers the deposit, duty, fees
and any premium paid upfront, the loan (including a capitalised premium)
is within borrowing power, and total leverage is within the policy cap.

The financing mode is re-derived at every candidate price: under the
guarantee policy, prices above the scheme cap fall back to insured
lending, which changes both the premium and the leverage cap. Feasibility
is assumed to be non-increasing in price, and the maximum is found by a
bounded integer binary search.
"""

import logging
import math
from dataclasses import dataclass
from functools import lru_cache

from stampduty.duty import DutyEngine, default_engine
from stampduty.errors import InvalidInput
from stampduty.guarantee import GuaranteeScheme, load_guarantee_scheme, parse_contract_date
from stampduty.lmi import MortgageInsuranceTable, load_lmi_table
from stampduty.modes import resolve_region
from stampduty.params import LEVERAGE_CAPS, MIN_LEVERAGE, FinancingInput, FinancingPolicy

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 42
SEARCH_HEADROOM = 1.2  # upper search bound = (borrowing power + cash) * headroom
LEVERAGE_TOLERANCE = 1e-9
INFEASIBLE_NOTE = "Infeasible with current inputs"


@dataclass(frozen=True)
class FeasibilityProof:
    """Every quantity behind one feasibility decision."""

    price: int
    mode: FinancingPolicy  # effective mode at this price
    leverage_cap: float
    leverage_used: float
    duty: int
    ancillary_fees: float
    deposit_portion: float
    base_loan: float
    premium: int
    premium_cash_portion: int
    capitalised: bool
    loan_with_premium: float
    effective_leverage: float
    cash_required: float
    cash_ok: bool
    borrowing_ok: bool
    leverage_ok: bool
    premium_valid: bool = True

    @property
    def feasible(self) -> bool:
        return self.cash_ok and self.borrowing_ok and self.leverage_ok and self.premium_valid


@dataclass(frozen=True)
class SolverResult:
    max_price: int
    explain: FeasibilityProof  # at max_price, or at price 1 when infeasible
    borrowing_power: float
    cash_on_hand: float
    iterations: int
    note: str | None = None

    @property
    def feasible(self) -> bool:
        return self.max_price > 0


def _require_number(name: str, value, positive: bool = False) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidInput(f"{name} must be a finite number, got {value!r}")
    if positive and value <= 0:
        raise InvalidInput(f"{name} must be a positive number, got {value!r}")
    return float(value)


class PurchasingPowerSolver:
    """Max-price search bound to a duty engine and the two lending collaborators."""

    def __init__(
        self,
        engine: DutyEngine,
        insurance: MortgageInsuranceTable,
        guarantee: GuaranteeScheme,
        max_iterations: int = MAX_ITERATIONS,
    ):
        self.engine = engine
        self.insurance = insurance
        self.guarantee = guarantee
        self.max_iterations = max_iterations

    def resolve_mode(self, inputs: FinancingInput, price: int) -> FinancingPolicy:
        """Financing mode in force at ``price``; never cached across prices."""
        policy = inputs.financing_policy
        if policy is FinancingPolicy.SUBSIDIZED_GUARANTEE:
            rules = self.engine.rulebook.get(inputs.jurisdiction)
            eligible = self.guarantee.is_eligible(
                rules.jurisdiction, price, resolve_region(rules, inputs.buyer), inputs.contract_date
            )
            return FinancingPolicy.SUBSIDIZED_GUARANTEE if eligible else FinancingPolicy.INSURANCE_ALLOWED
        return policy

    def feasibility(self, inputs: FinancingInput, price: int) -> FeasibilityProof:
        mode = self.resolve_mode(inputs, price)
        cap = LEVERAGE_CAPS[mode]
        leverage = min(max(inputs.target_leverage, MIN_LEVERAGE), cap)

        duty = self.engine.calc_duty(inputs.jurisdiction, price, inputs.buyer)
        base_loan = leverage * price
        deposit = max(0.0, price - base_loan)

        premium, capitalised, premium_valid = 0, False, True
        if mode is FinancingPolicy.INSURANCE_ALLOWED:
            quote = self.insurance.quote(base_loan, leverage, capitalise=inputs.capitalise_premium)
            premium, capitalised, premium_valid = quote.premium, quote.capitalised, quote.valid
        cash_premium = 0 if capitalised else premium
        loan_with_premium = base_loan + (premium if capitalised else 0)

        fees = inputs.fees
        cash_required = deposit + duty + fees + cash_premium
        effective_leverage = loan_with_premium / price

        return FeasibilityProof(
            price=price,
            mode=mode,
            leverage_cap=cap,
            leverage_used=leverage,
            duty=duty,
            ancillary_fees=fees,
            deposit_portion=deposit,
            base_loan=base_loan,
            premium=premium,
            premium_cash_portion=cash_premium,
            capitalised=capitalised,
            loan_with_premium=loan_with_premium,
            effective_leverage=effective_leverage,
            cash_required=cash_required,
            cash_ok=inputs.cash_on_hand >= cash_required,
            borrowing_ok=loan_with_premium <= inputs.borrowing_power,
            leverage_ok=effective_leverage <= cap + LEVERAGE_TOLERANCE,
            premium_valid=premium_valid,
        )

    def validate(self, inputs: FinancingInput) -> None:
        _require_number("borrowing_power", inputs.borrowing_power, positive=True)
        _require_number("cash_on_hand", inputs.cash_on_hand)
        _require_number("target_leverage", inputs.target_leverage)
        if inputs.cash_on_hand < 0:
            raise InvalidInput(f"cash_on_hand must not be negative, got {inputs.cash_on_hand!r}")
        parse_contract_date(inputs.contract_date)
        self.engine.rulebook.get(inputs.jurisdiction).require_ready()

    def solve(self, inputs: FinancingInput) -> SolverResult:
        """Largest whole-dollar price that passes every constraint."""
        self.validate(inputs)

        lo = 1
        hi = max(1, math.floor((inputs.borrowing_power + inputs.cash_on_hand) * SEARCH_HEADROOM))
        best = None
        iterations = 0

        for iterations in range(1, self.max_iterations + 1):
            mid = (lo + hi) // 2
            proof = self.feasibility(inputs, mid)
            logger.debug("iteration %d: price %d feasible=%s", iterations, mid, proof.feasible)
            if proof.feasible:
                best = proof
                lo = mid + 1
            else:
                hi = mid - 1
            if hi < lo:
                break

        if best is None:
            logger.debug("%s: no feasible price", inputs.jurisdiction)
            return SolverResult(
                max_price=0,
                explain=self.feasibility(inputs, 1),
                borrowing_power=inputs.borrowing_power,
                cash_on_hand=inputs.cash_on_hand,
                iterations=iterations,
                note=INFEASIBLE_NOTE,
            )

        logger.debug("%s: max price %d after %d iterations", inputs.jurisdiction, best.price, iterations)
        return SolverResult(
            max_price=best.price,
            explain=best,
            borrowing_power=inputs.borrowing_power,
            cash_on_hand=inputs.cash_on_hand,
            iterations=iterations,
        )


@lru_cache(maxsize=1)
def default_solver() -> PurchasingPowerSolver:
    return PurchasingPowerSolver(default_engine(), load_lmi_table(), load_guarantee_scheme())


def solve_max_price(inputs: FinancingInput) -> SolverResult:
    """Maximum affordable price using the bundled rule tables."""
    return default_solver().solve(inputs)
