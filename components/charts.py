"""Plotly chart factory"""
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import plotly.io as pio

from config.constants import ADJUSTMENT_LABEL
from config.settings import COLORS, CURRENCY_SYMBOL

# Custom Plotly theme
pio.templates["emi_tracker_light"] = go.layout.Template(
    layout=go.Layout(
        font=dict(family="sans-serif", color="#333"),
        title_font=dict(size=20, color="#333"),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        xaxis=dict(
            gridcolor="#e0e0e0",
            linecolor="#e0e0e0",
            zerolinecolor="#e0e0e0",
            tickfont=dict(color="#666"),
            title_font=dict(color="#666"),
        ),
        yaxis=dict(
            gridcolor="#e0e0e0",
            linecolor="#e0e0e0",
            zerolinecolor="#e0e0e0",
            tickfont=dict(color="#666"),
            title_font=dict(color="#666"),
        ),
        legend=dict(
            font=dict(color="#666"),
            bgcolor="rgba(255,255,255,0.5)",
            bordercolor="#e0e0e0",
            borderwidth=1,
        ),
        colorway=px.colors.qualitative.Plotly,
    )
)

pio.templates.default = "emi_tracker_light"

AXIS = dict(tickmode="auto", nticks=15, tickangle=45)


def _get_x_labels(schedule: pd.DataFrame) -> list:
    """Axis labels of the form "EMI N YYYY-MM" ("Adjustment YYYY-MM" for the partial period)"""
    labels = []
    for n, due, adj in zip(schedule["emi_number"], schedule["due_date"], schedule["is_adjustment"]):
        month = str(due)[:7]
        prefix = ADJUSTMENT_LABEL if adj else f"EMI {int(n)}"
        labels.append(f"{prefix} {month}")
    return labels


def create_stacked_area(schedule: pd.DataFrame) -> go.Figure:
    """Principal/interest split of each installment"""
    fig = go.Figure()
    x_labels = _get_x_labels(schedule)

    fig.add_trace(go.Scatter(
        x=x_labels,
        y=schedule["principal"],
        mode="lines",
        name="Principal",
        stackgroup="payment",
        line=dict(color=COLORS["principal"]),
        hovertemplate=f"%{{x}}<br>Principal: {CURRENCY_SYMBOL}%{{y:,.2f}}<extra></extra>",
    ))

    fig.add_trace(go.Scatter(
        x=x_labels,
        y=schedule["interest"],
        mode="lines",
        name="Interest",
        stackgroup="payment",
        line=dict(color=COLORS["interest"]),
        hovertemplate=f"%{{x}}<br>Interest: {CURRENCY_SYMBOL}%{{y:,.2f}}<extra></extra>",
    ))

    fig.update_layout(
        title="Principal / Interest per EMI",
        xaxis_title="Installment",
        yaxis_title=f"Amount ({CURRENCY_SYMBOL})",
        hovermode="x unified",
        margin=dict(t=60, b=60, l=60, r=20),
        height=400,
        xaxis=AXIS,
    )
    return fig


def create_outstanding_line(schedule: pd.DataFrame, prepayment_emis: list = None) -> go.Figure:
    """Outstanding principal after each installment, with prepayment markers"""
    fig = go.Figure()
    x_labels = _get_x_labels(schedule)

    fig.add_trace(go.Scatter(
        x=x_labels,
        y=schedule["outstanding_principal"],
        mode="lines",
        name="Outstanding",
        fill="tozeroy",
        line=dict(color=COLORS["outstanding"], width=2),
        hovertemplate=f"%{{x}}<br>Outstanding: {CURRENCY_SYMBOL}%{{y:,.2f}}<extra></extra>",
    ))

    if prepayment_emis:
        marked = schedule["emi_number"].isin(prepayment_emis).to_numpy()
        fig.add_trace(go.Scatter(
            x=[label for label, hit in zip(x_labels, marked) if hit],
            y=schedule.loc[marked, "outstanding_principal"],
            mode="markers",
            name="Prepayment",
            marker=dict(color=COLORS["modified"], size=12, symbol="star"),
        ))

    fig.update_layout(
        title="Outstanding Principal",
        xaxis_title="Installment",
        yaxis_title=f"Outstanding ({CURRENCY_SYMBOL})",
        hovermode="x unified",
        margin=dict(t=60, b=60, l=60, r=20),
        height=400,
        xaxis=AXIS,
    )
    return fig


def create_status_pie(schedule: pd.DataFrame, hole: float = 0.45) -> go.Figure:
    """Installment count per status"""
    counts = schedule["status"].value_counts()
    fig = go.Figure(data=[go.Pie(
        labels=counts.index.tolist(),
        values=counts.tolist(),
        hole=hole,
        marker_colors=[COLORS.get(s, COLORS["primary"]) for s in counts.index],
        textinfo="label+value",
    )])
    fig.update_layout(
        title="Installments by Status",
        showlegend=True,
        margin=dict(t=60, b=20, l=20, r=20),
        height=380,
    )
    return fig
