"""Streamlit dashboard for Australian transfer duty and purchasing power."""

import streamlit as st

st.set_page_config(
    page_title="Stamp Duty - Purchasing Power",
    page_icon=":house:",
    layout="wide",
)


@st.dialog("Disclaimer")
def _show_disclaimer():
    st.markdown(
        "This tool is for **educational and informational purposes only**. "
        "It is not financial or legal advice.\n\n"
        "Duty schedules, concessions and LMI rates are approximations of published "
        "figures and may be out of date. Always confirm with the relevant revenue "
        "office and your lender before making property decisions."
    )
    if st.button("I understand", use_container_width=True):
        st.session_state.disclaimer_accepted = True
        st.rerun()


if not st.session_state.get("disclaimer_accepted", False):
    _show_disclaimer()
    st.stop()

from stampduty.config import dict_to_inputs, inputs_to_dict
from stampduty.duty import default_engine
from stampduty.params import BuyerFlags
from stampduty.sensitivity import duty_curve, frange, price_grid, sweep
from stampduty.solver import solve_max_price

from dashboard.charts import cash_breakdown_chart, duty_curve_chart, sensitivity_chart
from dashboard.formatters import jurisdiction_dataframe, proof_dataframe
from dashboard.sidebar import render_sidebar


# --- Cached computation ---


@st.cache_data
def cached_solve(inputs_dict: dict):
    return solve_max_price(dict_to_inputs(inputs_dict))


@st.cache_data
def cached_curve(jurisdiction: str, flags_dict: dict, start: float, stop: float) -> tuple:
    prices = price_grid(start, stop, 240)
    return prices, duty_curve(jurisdiction, prices, BuyerFlags(**flags_dict))


@st.cache_data
def cached_sweep(inputs_dict: dict, field_name: str, values_tuple: tuple) -> list:
    return sweep(dict_to_inputs(inputs_dict), field_name, list(values_tuple))


# --- Layout ---

inputs = render_sidebar()
inputs_dict = inputs_to_dict(inputs)
result = cached_solve(inputs_dict)
proof = result.explain

st.header(f"What can I buy in {inputs.jurisdiction}?")

m1, m2, m3, m4 = st.columns(4)
if result.feasible:
    m1.metric("Maximum Price", f"${result.max_price:,.0f}")
else:
    m1.metric("Maximum Price", "None", delta=result.note, delta_color="inverse")
m2.metric("Duty at Max", f"${proof.duty:,.0f}")
m3.metric("LMI Premium", f"${proof.premium:,.0f}")
m4.metric("Loan", f"${proof.loan_with_premium:,.0f}", delta=f"{proof.effective_leverage:.1%} LVR")
st.caption(
    f"Financing mode at this price: **{proof.mode.value}**. Under the guarantee scheme, "
    "prices above the local cap fall back to LMI-backed lending."
)

st.divider()

tab_power, tab_duty, tab_sens, tab_states = st.tabs([
    ":material/savings: Purchasing Power",
    ":material/receipt_long: Duty Curve",
    ":material/tune: Sensitivity",
    ":material/map: Jurisdictions",
])

with tab_power:
    c1, c2 = st.columns([3, 2])
    c1.plotly_chart(cash_breakdown_chart(proof, inputs.cash_on_hand), use_container_width=True)
    c2.dataframe(proof_dataframe(proof), hide_index=True, use_container_width=True)
    st.caption(
        "A price is affordable when cash covers deposit, duty, fees and any upfront LMI; "
        "the loan (with capitalised LMI) is within borrowing power; and loan / price is "
        "within the cap for the financing mode."
    )

with tab_duty:
    dc1, dc2 = st.columns(2)
    lo = dc1.number_input("From ($)", value=200_000, step=50_000, min_value=1_000)
    hi = dc2.number_input("To ($)", value=2_000_000, step=50_000, min_value=lo + 1_000)
    compare_general = st.checkbox("Compare with a buyer who gets no concessions", value=True)

    buyer = inputs.buyer
    flags_dict = {
        "is_vacant_land": buyer.is_vacant_land,
        "is_owner_occupier": buyer.is_owner_occupier,
        "is_first_home_buyer": buyer.is_first_home_buyer,
        "region": buyer.region,
    }
    prices, duties = cached_curve(inputs.jurisdiction, flags_dict, float(lo), float(hi))
    curves = {"This buyer": duties}
    if compare_general:
        general = dict(flags_dict, is_owner_occupier=False, is_first_home_buyer=False)
        curves["No concessions"] = cached_curve(inputs.jurisdiction, general, float(lo), float(hi))[1]
    marker = result.max_price if result.feasible and lo <= result.max_price <= hi else None
    st.plotly_chart(duty_curve_chart(prices, curves, marker), use_container_width=True)
    st.caption(
        "Duty payable across the price range. Steps and kinks mark bracket boundaries, "
        "concession thresholds and owner-occupier price caps."
    )

with tab_sens:
    SWEEP_PARAMS = {
        "Cash on Hand": ("cash_on_hand", 20_000.0, 300_000.0, 20_000.0, False),
        "Borrowing Power": ("borrowing_power", 300_000.0, 1_500_000.0, 100_000.0, False),
        "Target Leverage": ("target_leverage", 0.60, 0.95, 0.05, True),
    }
    selected = st.selectbox("Input to sweep", list(SWEEP_PARAMS.keys()), key="sens_param")
    field_name, default_min, default_max, default_step, is_pct = SWEEP_PARAMS[selected]

    sc1, sc2, sc3 = st.columns(3)
    if is_pct:
        sweep_min = sc1.number_input("Min (%)", value=default_min * 100, step=default_step * 100)
        sweep_max = sc2.number_input("Max (%)", value=default_max * 100, step=default_step * 100)
        sweep_step = sc3.number_input("Step (%)", value=default_step * 100, step=1.0, min_value=1.0)
        values = frange(sweep_min / 100, sweep_max / 100, sweep_step / 100)
    else:
        sweep_min = sc1.number_input("Min", value=default_min, step=default_step)
        sweep_max = sc2.number_input("Max", value=default_max, step=default_step)
        sweep_step = sc3.number_input("Step", value=default_step, step=default_step, min_value=1_000.0)
        values = frange(sweep_min, sweep_max, sweep_step)

    if values:
        results = cached_sweep(inputs_dict, field_name, tuple(values))
        st.plotly_chart(sensitivity_chart(results, selected, is_pct), use_container_width=True)
        infeasible = [r.param_value for r in results if not r.feasible]
        if infeasible:
            st.caption(f"No affordable price for {len(infeasible)} of {len(results)} values.")

with tab_states:
    price = st.number_input(
        "Purchase price ($)",
        value=result.max_price if result.feasible else 750_000,
        step=25_000,
        min_value=1_000,
    )
    st.dataframe(
        jurisdiction_dataframe(default_engine(), float(price), inputs.buyer),
        hide_index=True,
        use_container_width=True,
    )
    st.caption("The same buyer and purchase under each jurisdiction's current rules.")
