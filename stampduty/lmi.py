"""Lenders Mortgage Insurance (LMI) estimation.

Based on published Australian LMI rate tables (``tables/lmi.yaml``). Rates
are approximate -- actual premiums vary by insurer (Helia, QBE) and lender.
The table is banded first by loan amount, then by leverage (loan / price).
"""

from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from stampduty.brackets import round_dollars
from stampduty.errors import InvalidInput, ScheduleError
from stampduty.rules import RULES_DIR, load_rule_file

LMI_FILE = RULES_DIR / "lmi.yaml"


@dataclass(frozen=True)
class LeverageBracket:
    min: float
    max: float
    rate: float  # fraction of the loan amount

    def contains(self, leverage: float) -> bool:
        return self.min <= leverage < self.max


@dataclass(frozen=True)
class LoanBand:
    loan_min: float
    loan_max: float | None
    brackets: tuple[LeverageBracket, ...]

    def contains(self, loan: float) -> bool:
        return loan >= self.loan_min and (self.loan_max is None or loan < self.loan_max)


@dataclass(frozen=True)
class LmiQuote:
    """Premium for one loan. ``valid`` is False above the maximum leverage."""

    premium: int
    capitalised: bool
    valid: bool = True
    rate: float = 0.0


@dataclass(frozen=True)
class MortgageInsuranceTable:
    min_leverage_for_premium: float
    max_leverage: float
    bands: tuple[LoanBand, ...]

    def band_for(self, loan: float) -> LoanBand:
        """First band containing the loan; loans past every band use the last."""
        for band in self.bands:
            if band.contains(loan):
                return band
        return self.bands[-1]

    def rate_for(self, loan: float, leverage: float) -> float:
        brackets = self.band_for(loan).brackets
        for bracket in brackets:
            if bracket.contains(leverage):
                return bracket.rate
        # The top bracket closes at the maximum leverage.
        top = brackets[-1]
        if top.min <= leverage <= self.max_leverage:
            return top.rate
        return 0.0

    def quote(self, loan_amount: float, leverage: float, capitalise: bool = True) -> LmiQuote:
        """Estimate the premium for ``loan_amount`` borrowed at ``leverage``."""
        if loan_amount < 0:
            raise InvalidInput(f"loan amount must not be negative, got {loan_amount!r}")
        if leverage <= self.min_leverage_for_premium:
            return LmiQuote(premium=0, capitalised=capitalise)
        if leverage > self.max_leverage:
            return LmiQuote(premium=0, capitalised=capitalise, valid=False)

        rate = self.rate_for(loan_amount, leverage)
        premium = round_dollars(Decimal(str(loan_amount)) * Decimal(str(rate)))
        return LmiQuote(premium=premium, capitalised=capitalise, rate=rate)


def dict_to_lmi_table(data: dict) -> MortgageInsuranceTable:
    caps = data.get("caps", {})
    bands = []
    for band in data.get("bands", []):
        brackets = tuple(
            LeverageBracket(float(b["min"]), float(b["max"]), float(b["rate"]))
            for b in band.get("leverage_brackets", [])
        )
        if not brackets:
            raise ScheduleError(f"LMI band from {band.get('loan_min')} has no leverage brackets")
        loan_max = band.get("loan_max")
        bands.append(
            LoanBand(
                loan_min=float(band.get("loan_min", 0)),
                loan_max=None if loan_max is None else float(loan_max),
                brackets=brackets,
            )
        )
    if not bands:
        raise ScheduleError("LMI table has no loan bands")
    return MortgageInsuranceTable(
        min_leverage_for_premium=float(caps.get("min_leverage_for_premium", 0.80)),
        max_leverage=float(caps.get("max_leverage", 0.95)),
        bands=tuple(bands),
    )


@lru_cache(maxsize=4)
def load_lmi_table(path: str | Path = LMI_FILE) -> MortgageInsuranceTable:
    return dict_to_lmi_table(load_rule_file(path))
