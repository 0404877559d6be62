"""Sidebar controls for the duty dashboard."""

import streamlit as st

from stampduty.duty import jurisdiction_features, supported_jurisdictions
from stampduty.lmi import load_lmi_table
from stampduty.params import BuyerFlags, FinancingInput, FinancingPolicy

POLICY_LABELS = {
    "Standard (80%, no LMI)": FinancingPolicy.NO_INSURANCE_CAP,
    "LMI allowed (up to 95%)": FinancingPolicy.INSURANCE_ALLOWED,
    "Home Guarantee Scheme": FinancingPolicy.SUBSIDIZED_GUARANTEE,
}

# Default values for all widget keys, set on first run.
_DEFAULTS = {
    "jurisdiction": "NSW",
    "is_vacant_land": False,
    "is_owner_occupier": True,
    "is_first_home_buyer": False,
    "region": "metro",
    "borrowing_power": 700_000,
    "cash_on_hand": 150_000,
    "target_leverage": 90.0,
    "policy_label": "LMI allowed (up to 95%)",
    "include_fees": False,
    "capitalise_premium": True,
}


def _init_defaults():
    """Set default session state values on first run only."""
    for key, val in _DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = val


def render_sidebar() -> FinancingInput:
    """Render all sidebar controls and return the constructed FinancingInput."""
    _init_defaults()

    st.sidebar.title("Stamp Duty")

    # --- Property ---
    with st.sidebar.expander("Property & Buyer", expanded=True):
        jurisdiction = st.selectbox(
            "Jurisdiction",
            options=supported_jurisdictions(),
            key="jurisdiction",
            help="State or territory where the property is.",
        )
        features = jurisdiction_features(jurisdiction)
        regions = features["regions"]
        if st.session_state.region not in regions:
            st.session_state.region = regions[0]
        region = st.selectbox(
            "Region",
            options=regions,
            key="region",
            disabled=len(regions) == 1,
            help="Some first home concessions and guarantee caps differ outside the capital.",
        )
        col1, col2 = st.columns(2)
        is_land = col1.checkbox("Vacant land", key="is_vacant_land")
        is_fhb = col2.checkbox("First home buyer", key="is_first_home_buyer")
        is_oo = st.checkbox(
            "Owner-occupier",
            key="is_owner_occupier",
            help="Buyer will live in the property.",
        )
        if is_oo and not features["supports_owner_occupier_mode"]:
            st.caption(f"{jurisdiction} has no separate owner-occupier rates.")

    # --- Finance ---
    with st.sidebar.expander("Finance", expanded=True):
        borrowing_power = st.number_input(
            "Borrowing Power ($)",
            min_value=10_000,
            max_value=10_000_000,
            step=25_000,
            key="borrowing_power",
            help="The largest loan a lender has indicated it will approve.",
        )
        cash_on_hand = st.number_input(
            "Cash on Hand ($)",
            min_value=0,
            max_value=5_000_000,
            step=5_000,
            key="cash_on_hand",
            help="Savings available for deposit, duty, fees and any upfront LMI.",
        )
        policy_label = st.selectbox(
            "Financing",
            options=list(POLICY_LABELS),
            key="policy_label",
        )
        target_leverage = st.slider(
            "Target Loan / Price (%)",
            min_value=50.0,
            max_value=95.0,
            step=1.0,
            key="target_leverage",
            help="Clamped to the cap of the financing mode in force at each price.",
        )
        include_fees = st.checkbox(
            "Include ancillary fees",
            key="include_fees",
            help="Transfer registration and other government fees paid from cash.",
        )
        capitalise = st.checkbox(
            "Add LMI to the loan",
            key="capitalise_premium",
            help="Unticked, the premium is paid upfront from cash.",
        )
        lmi = load_lmi_table()
        if target_leverage / 100 > lmi.min_leverage_for_premium:
            st.caption(f"LMI applies above {lmi.min_leverage_for_premium:.0%} leverage.")

    return FinancingInput(
        jurisdiction=jurisdiction,
        borrowing_power=float(borrowing_power),
        cash_on_hand=float(cash_on_hand),
        target_leverage=target_leverage / 100,
        financing_policy=POLICY_LABELS[policy_label],
        include_ancillary_fees=include_fees,
        capitalise_premium=capitalise,
        buyer=BuyerFlags(
            is_vacant_land=is_land,
            is_owner_occupier=is_oo,
            is_first_home_buyer=is_fhb,
            region=region,
        ),
    )
