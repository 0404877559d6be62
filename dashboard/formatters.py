"""DataFrame formatters for the dashboard data tables."""

import pandas as pd

from stampduty.duty import DutyEngine
from stampduty.params import BuyerFlags
from stampduty.solver import FeasibilityProof


def proof_dataframe(proof: FeasibilityProof) -> pd.DataFrame:
    """The feasibility proof as a two-column table."""
    rows = [
        ("Price", f"${proof.price:,.0f}"),
        ("Financing mode", proof.mode.value),
        ("Leverage used", f"{proof.leverage_used:.2%}"),
        ("Leverage cap", f"{proof.leverage_cap:.0%}"),
        ("Deposit", f"${proof.deposit_portion:,.0f}"),
        ("Duty", f"${proof.duty:,.0f}"),
        ("Ancillary fees", f"${proof.ancillary_fees:,.0f}"),
        ("LMI premium", f"${proof.premium:,.0f}"),
        ("LMI capitalised", "yes" if proof.capitalised else "no"),
        ("Cash required", f"${proof.cash_required:,.0f}"),
        ("Base loan", f"${proof.base_loan:,.0f}"),
        ("Loan incl. premium", f"${proof.loan_with_premium:,.0f}"),
        ("Effective leverage", f"{proof.effective_leverage:.2%}"),
        ("Cash constraint", "ok" if proof.cash_ok else "fails"),
        ("Borrowing constraint", "ok" if proof.borrowing_ok else "fails"),
        ("Leverage constraint", "ok" if proof.leverage_ok else "fails"),
    ]
    return pd.DataFrame(rows, columns=["Item", "Value"])


def jurisdiction_dataframe(engine: DutyEngine, price: float, flags: BuyerFlags) -> pd.DataFrame:
    """Duty for the same purchase in every jurisdiction."""
    rows = []
    for code in engine.supported_jurisdictions():
        result = engine.breakdown(code, price, flags)
        rows.append(
            {
                "Jurisdiction": code,
                "Schedule": result.mode,
                "Base duty": result.base_duty,
                "Concession": result.concession,
                "Duty": result.duty,
                "Effective rate": result.duty / price,
            }
        )
    df = pd.DataFrame(rows)
    return df.style.format(
        {
            "Base duty": "${:,.0f}",
            "Concession": "${:,.0f}",
            "Duty": "${:,.0f}",
            "Effective rate": "{:.2%}",
        }
    )
