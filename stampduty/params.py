"""Parameters for duty queries and purchasing-power searches."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from stampduty.errors import InvalidInput


@dataclass(frozen=True)
class BuyerFlags:
    """Buyer and property attributes that drive schedule and concession choice."""

    is_vacant_land: bool = False
    is_owner_occupier: bool = False
    is_first_home_buyer: bool = False
    region: str | None = None  # None = jurisdiction's primary region

    @property
    def property_type(self) -> str:
        return "land" if self.is_vacant_land else "established"


@dataclass(frozen=True)
class BuyerProfile:
    """A single duty query."""

    jurisdiction: str
    price: float
    flags: BuyerFlags = field(default_factory=BuyerFlags)


class FinancingPolicy(str, Enum):
    NO_INSURANCE_CAP = "no_insurance_cap"  # 80% leverage, never insured
    INSURANCE_ALLOWED = "insurance_allowed"  # up to 95%, premium charged
    SUBSIDIZED_GUARANTEE = "subsidized_guarantee"  # 95% uninsured where the scheme applies


# Leverage cap per effective financing mode.
LEVERAGE_CAPS = {
    FinancingPolicy.NO_INSURANCE_CAP: 0.80,
    FinancingPolicy.INSURANCE_ALLOWED: 0.95,
    FinancingPolicy.SUBSIDIZED_GUARANTEE: 0.95,
}
MIN_LEVERAGE = 0.50


@dataclass
class FinancingInput:
    """Everything the solver needs except the price it is searching for."""

    jurisdiction: str = "NSW"
    borrowing_power: float = 700_000  # maximum loan the lender will approve
    cash_on_hand: float = 150_000
    target_leverage: float = 0.90  # loan / price the buyer is aiming for
    financing_policy: FinancingPolicy = FinancingPolicy.INSURANCE_ALLOWED
    include_ancillary_fees: bool = False
    ancillary_fees: float = 3_000  # other government fees paid from cash
    capitalise_premium: bool = True  # False = insurance premium paid from cash
    contract_date: date | None = None  # None = today
    buyer: BuyerFlags = field(default_factory=BuyerFlags)

    def __post_init__(self):
        try:
            self.financing_policy = FinancingPolicy(self.financing_policy)
        except ValueError:
            raise InvalidInput(
                f"Unknown financing policy {self.financing_policy!r}. "
                f"Supported: {[p.value for p in FinancingPolicy]}"
            ) from None

    @property
    def fees(self) -> float:
        return self.ancillary_fees if self.include_ancillary_fees else 0.0
