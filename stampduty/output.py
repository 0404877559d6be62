"""Output formatting for duty and purchasing-power results."""

import csv
import io
from dataclasses import asdict

from stampduty.duty import DutyBreakdown
from stampduty.params import BuyerFlags, FinancingInput
from stampduty.solver import FeasibilityProof, SolverResult


def fmt(value: float) -> str:
    """Format a dollar amount."""
    if abs(value) >= 1_000_000:
        return f"${value / 1_000_000:,.2f}M"
    return f"${value:,.0f}"


def _flag_summary(flags: BuyerFlags) -> str:
    parts = ["vacant land" if flags.is_vacant_land else "home"]
    if flags.is_owner_occupier:
        parts.append("owner-occupier")
    if flags.is_first_home_buyer:
        parts.append("first home buyer")
    if flags.region:
        parts.append(flags.region)
    return ", ".join(parts)


def duty_report(result: DutyBreakdown, flags: BuyerFlags | None = None) -> str:
    flags = flags or BuyerFlags()
    lines = [
        f"Transfer duty - {result.jurisdiction}",
        "=" * 40,
        f"  Price:        ${result.price:,.0f}",
        f"  Buyer:        {_flag_summary(flags)}",
        f"  Schedule:     {result.mode}",
        f"  Base duty:    ${result.base_duty:,}",
    ]
    if result.concession:
        lines.append(f"  Concession:  -${result.concession:,}")
    lines.append(f"  Duty:         ${result.duty:,}")
    return "\n".join(lines)


def inputs_header(inputs: FinancingInput) -> str:
    """Key financing inputs, one per line."""
    fees = fmt(inputs.ancillary_fees) if inputs.include_ancillary_fees else "excluded"
    lines = [
        f"Purchasing power - {inputs.jurisdiction}",
        "=" * 50,
        "",
        f"  Borrowing power: {fmt(inputs.borrowing_power)}",
        f"  Cash on hand:    {fmt(inputs.cash_on_hand)}",
        f"  Target leverage: {inputs.target_leverage:.0%}",
        f"  Policy:          {inputs.financing_policy.value}",
        f"  Buyer:           {_flag_summary(inputs.buyer)}",
        f"  Ancillary fees:  {fees}",
        "",
    ]
    if not inputs.capitalise_premium:
        lines.insert(8, "  LMI premium:     paid from cash")
    return "\n".join(lines)


def proof_table(proof: FeasibilityProof) -> str:
    """The numbers behind one feasibility decision."""

    def check(ok: bool) -> str:
        return "ok" if ok else "FAIL"

    rows = [
        ("Price", fmt(proof.price)),
        ("Financing mode", proof.mode.value),
        ("Leverage used", f"{proof.leverage_used:.2%}"),
        ("Deposit", fmt(proof.deposit_portion)),
        ("Duty", fmt(proof.duty)),
        ("Ancillary fees", fmt(proof.ancillary_fees)),
        ("LMI premium", fmt(proof.premium) + (" (capitalised)" if proof.capitalised else "")),
        ("Cash required", f"{fmt(proof.cash_required)}  [{check(proof.cash_ok)}]"),
        ("Base loan", fmt(proof.base_loan)),
        ("Loan incl. premium", f"{fmt(proof.loan_with_premium)}  [{check(proof.borrowing_ok)}]"),
        (
            "Effective leverage",
            f"{proof.effective_leverage:.2%} of {proof.leverage_cap:.0%}  [{check(proof.leverage_ok)}]",
        ),
    ]
    if not proof.premium_valid:
        rows.append(("LMI", "not insurable at this leverage"))
    width = max(len(label) for label, _ in rows)
    return "\n".join(f"  {label:<{width}}  {value}" for label, value in rows)


def solver_report(result: SolverResult, inputs: FinancingInput) -> str:
    """Generate a complete purchasing-power report."""
    parts = [inputs_header(inputs)]
    if result.feasible:
        parts.append(f"Maximum price: {fmt(result.max_price)} (${result.max_price:,})")
    else:
        parts.append(f"Maximum price: none ({result.note})")
    parts.append("")
    parts.append(proof_table(result.explain))
    return "\n".join(parts)


def result_to_dict(result: SolverResult) -> dict:
    """Serialisable form of a solver result."""
    explain = asdict(result.explain)
    explain["mode"] = result.explain.mode.value
    explain["feasible"] = result.explain.feasible
    return {
        "max_price": result.max_price,
        "feasible": result.feasible,
        "note": result.note,
        "iterations": result.iterations,
        "explain": explain,
    }


def duty_curve_csv(prices, duties) -> str:
    """Export a duty curve to CSV string."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["price", "duty"])
    for price, duty in zip(prices, duties):
        writer.writerow([f"{price:.0f}", int(duty)])
    return output.getvalue()
