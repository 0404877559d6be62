"""Plotly chart builders for the duty dashboard."""

import plotly.graph_objects as go

from stampduty.sensitivity import SweepResult
from stampduty.solver import FeasibilityProof

_PALETTE = ["#2196F3", "#FF9800", "#4CAF50", "#9C27B0", "#F44336", "#00BCD4", "#795548", "#607D8B"]


def duty_curve_chart(prices, curves: dict, marker_price: float | None = None) -> go.Figure:
    """Duty against price, one line per labelled curve."""
    fig = go.Figure()
    for i, (label, duties) in enumerate(curves.items()):
        fig.add_trace(
            go.Scatter(
                x=list(prices),
                y=list(duties),
                name=label,
                line=dict(color=_PALETTE[i % len(_PALETTE)], width=2.5),
                hovertemplate=f"{label}<br>Price $%{{x:,.0f}}<br>Duty $%{{y:,.0f}}<extra></extra>",
            )
        )

    if marker_price is not None:
        fig.add_vline(
            x=marker_price,
            line_dash="dash",
            line_color="gray",
            annotation_text=f"${marker_price:,.0f}",
            annotation_position="top left",
        )

    fig.update_layout(
        title="Transfer Duty by Price",
        xaxis_title="Purchase Price ($)",
        yaxis_title="Duty ($)",
        xaxis_tickformat="$,.0f",
        yaxis_tickformat="$,.0f",
        hovermode="x unified",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        margin=dict(t=60, b=40),
    )
    return fig


def cash_breakdown_chart(proof: FeasibilityProof, cash_on_hand: float) -> go.Figure:
    """Stacked bar of where the buyer's cash goes at one price."""
    parts = [
        ("Deposit", proof.deposit_portion, "#2196F3"),
        ("Duty", proof.duty, "#F44336"),
        ("Fees", proof.ancillary_fees, "#795548"),
        ("LMI (cash)", proof.premium_cash_portion, "#FF9800"),
    ]
    fig = go.Figure()
    for name, value, color in parts:
        if value <= 0:
            continue
        fig.add_trace(
            go.Bar(
                x=["Cash required"],
                y=[value],
                name=name,
                marker_color=color,
                hovertemplate=f"{name}: $%{{y:,.0f}}<extra></extra>",
            )
        )
    fig.add_hline(
        y=cash_on_hand,
        line_dash="dash",
        line_color="gray",
        annotation_text=f"Cash on hand ${cash_on_hand:,.0f}",
    )
    fig.update_layout(
        barmode="stack",
        title=f"Upfront Cash at ${proof.price:,.0f}",
        yaxis_title="Dollars",
        yaxis_tickformat="$,.0f",
        margin=dict(t=60, b=40),
    )
    return fig


def sensitivity_chart(results: list[SweepResult], param_name: str, is_pct: bool) -> go.Figure:
    """Max affordable price and the duty paid at it, across a sweep."""
    if is_pct:
        x_values = [r.param_value * 100 for r in results]
        x_label = f"{param_name} (%)"
    else:
        x_values = [r.param_value for r in results]
        x_label = param_name

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=x_values,
            y=[r.max_price for r in results],
            name="Max price",
            line=dict(color="#2196F3", width=2.5),
            hovertemplate=f"{param_name}: %{{x:,.1f}}<br>Max price: $%{{y:,.0f}}<extra></extra>",
        )
    )
    fig.add_trace(
        go.Bar(
            x=x_values,
            y=[r.duty for r in results],
            name="Duty at max",
            marker_color="#F44336",
            opacity=0.5,
            yaxis="y2",
            hovertemplate=f"{param_name}: %{{x:,.1f}}<br>Duty: $%{{y:,.0f}}<extra></extra>",
        )
    )
    fig.update_layout(
        title=f"Sensitivity: {param_name}",
        xaxis_title=x_label,
        yaxis=dict(title="Max price ($)", tickformat="$,.0f"),
        yaxis2=dict(title="Duty ($)", tickformat="$,.0f", overlaying="y", side="right"),
        hovermode="x unified",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        margin=dict(t=60, b=40),
    )
    return fig
