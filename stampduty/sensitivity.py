"""Sensitivity analysis: duty across a price range, max price across one input."""

from dataclasses import dataclass, fields, replace

import numpy as np

from stampduty.duty import DutyEngine, default_engine
from stampduty.errors import InvalidInput
from stampduty.output import fmt
from stampduty.params import BuyerFlags, FinancingInput
from stampduty.solver import PurchasingPowerSolver, default_solver


@dataclass
class SweepResult:
    param_value: float
    max_price: int
    duty: int
    premium: int
    cash_required: float
    mode: str
    feasible: bool


def duty_curve(
    jurisdiction: str,
    prices,
    flags: BuyerFlags | None = None,
    engine: DutyEngine | None = None,
) -> np.ndarray:
    """Duty at each price in ``prices``, as an integer array."""
    engine = engine or default_engine()
    grid = np.asarray(prices, dtype=float)
    return np.array([engine.calc_duty(jurisdiction, float(p), flags) for p in grid], dtype=np.int64)


def price_grid(start: float, stop: float, points: int = 200) -> np.ndarray:
    """Evenly spaced whole-dollar prices from start to stop inclusive."""
    return np.unique(np.round(np.linspace(start, stop, points)))


def sweep(
    inputs: FinancingInput,
    field_name: str,
    values: list[float],
    solver: PurchasingPowerSolver | None = None,
) -> list[SweepResult]:
    """Re-solve the max price for each value of one FinancingInput field."""
    solver = solver or default_solver()
    if field_name not in {f.name for f in fields(inputs)}:
        raise InvalidInput(f"FinancingInput has no field {field_name!r}")

    results = []
    for val in values:
        result = solver.solve(replace(inputs, **{field_name: val}))
        proof = result.explain
        results.append(SweepResult(
            param_value=val,
            max_price=result.max_price,
            duty=proof.duty,
            premium=proof.premium,
            cash_required=proof.cash_required,
            mode=proof.mode.value,
            feasible=result.feasible,
        ))

    return results


def format_sweep(
    field_name: str,
    results: list[SweepResult],
    is_percentage: bool = False,
) -> str:
    """Format sweep results as a table."""
    header = (
        f"{'':>2} {field_name:>16} | {'Max price':>12} | {'Duty':>10} | "
        f"{'LMI':>10} | {'Cash needed':>12} | {'Mode':>20}"
    )
    sep = "-" * len(header)
    lines = [
        f"Sensitivity: {field_name} (max affordable price)",
        header,
        sep,
    ]

    for r in results:
        if is_percentage:
            val_str = f"{r.param_value:.2%}"
        else:
            val_str = f"{r.param_value:,.0f}"
        price = fmt(r.max_price) if r.feasible else "infeasible"
        lines.append(
            f"{'':>2} {val_str:>16} | {price:>12} | {fmt(r.duty):>10} | "
            f"{fmt(r.premium):>10} | {fmt(r.cash_required):>12} | {r.mode:>20}"
        )

    return "\n".join(lines)


def frange(start: float, stop: float, step: float) -> list[float]:
    """Generate a list of floats from start to stop (inclusive) by step."""
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    return [round(float(v), 6) for v in np.arange(start, stop + step / 2, step)]
