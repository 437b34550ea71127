"""
Budget Simulator - Interactive Dashboard

Play Chancellor: move spending and tax lines and watch GDP, inflation,
gilt yields, public mood and political capital react, with tabloid
headlines for every bold move.

Run with: streamlit run app.py
"""

import asyncio
import logging
import threading
from collections import deque

import streamlit as st
import plotly.graph_objects as go
import plotly.express as px
from plotly.subplots import make_subplots
import pandas as pd

from budget_sim.config import DEBT_INTEREST, SCENARIO_PRESETS
from budget_sim.engine import BudgetAction, FiscalSimulator
from budget_sim.enrichment import HeadlineWriter, enrich_in_background, fiscal_context
from budget_sim.errors import BudgetSimError, ValidationError
from budget_sim.narrative import EventKind
from budget_sim.news import NewsIngester

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# ── Page config ──────────────────────────────────────────────────────
st.set_page_config(
    page_title="Budget Simulator",
    layout="wide",
    initial_sidebar_state="expanded",
)

COLORS = px.colors.qualitative.Set2
KIND_COLORS = {
    EventKind.CRISIS: "#d62728",
    EventKind.MARKET: "#ff7f0e",
    EventKind.UPDATE: "#1f77b4",
    EventKind.AI: "#9467bd",
    EventKind.LIVE: "#2ca02c",
}

CHART_THEME = dict(
    template="simple_white",
    paper_bgcolor="rgba(0,0,0,0)",
    plot_bgcolor="rgba(0,0,0,0)",
    font=dict(color="#262730"),
)

TICKER_LENGTH = 40


# ── Shared runtime (one budget per server process) ───────────────────
class Runtime:
    def __init__(self):
        self.sim = FiscalSimulator()
        self.writer = HeadlineWriter()
        self.news = NewsIngester()
        self.ticker = deque(maxlen=TICKER_LENGTH)
        self.history = [self.sim.summary()]
        self._lock = threading.Lock()
        threading.Thread(target=asyncio.run, args=(self._poll_news(),), name="live-news", daemon=True).start()

    async def _poll_news(self):
        await self.news.run(self.publish, asyncio.Event())

    def publish(self, events):
        # Newest first on screen, emission order kept within one batch
        with self._lock:
            for event in reversed(events):
                self.ticker.appendleft(event)

    def headlines(self):
        with self._lock:
            return list(self.ticker)

    def apply(self, action: BudgetAction):
        result = self.sim.apply(action)
        self.publish(result.events)
        with self._lock:
            self.history.append(self.sim.summary(result.state))
        if self.writer.settings.enabled:
            enrich_in_background(self.writer, action, result.diff, result.state, result.events, self.publish)
        return result

    def reset(self):
        self.sim.reset()
        with self._lock:
            self.ticker.clear()
            self.history = [self.sim.summary()]


@st.cache_resource
def get_runtime() -> Runtime:
    return Runtime()


runtime = get_runtime()
sim = runtime.sim


# ── Helpers: charts ──────────────────────────────────────────────────
def budget_bars(state, baseline):
    fig = make_subplots(rows=1, cols=2, subplot_titles=("Spending (£bn)", "Revenue (£bn)"))
    for col, (current, start) in enumerate(
        [(state.expenditure, baseline.expenditure), (state.revenue, baseline.revenue)], start=1
    ):
        ids = [item.id for item in current]
        fig.add_trace(
            go.Bar(x=ids, y=[i.value for i in start], name="Start",
                   marker_color="#c7c7c7", showlegend=col == 1),
            row=1, col=col,
        )
        fig.add_trace(
            go.Bar(x=ids, y=[i.value for i in current], name="Now",
                   marker_color=COLORS[col - 1], showlegend=col == 1),
            row=1, col=col,
        )
    fig.update_layout(
        **CHART_THEME,
        barmode="group", height=380,
        margin=dict(l=40, r=20, t=40, b=30),
        legend=dict(orientation="h", yanchor="bottom", y=-0.35),
    )
    return fig


def history_chart(history, keys, title, yaxis):
    df = pd.DataFrame(history)
    fig = go.Figure()
    for i, (key, label) in enumerate(keys):
        fig.add_trace(
            go.Scatter(x=df.index, y=df[key], name=label, mode="lines+markers",
                       line=dict(color=COLORS[i % len(COLORS)], width=2))
        )
    fig.update_layout(
        **CHART_THEME,
        title=dict(text=title, font=dict(size=14)),
        xaxis_title="Decision", yaxis_title=yaxis, height=320,
        margin=dict(l=50, r=20, t=35, b=30),
        hovermode="x unified",
        legend=dict(orientation="h", yanchor="bottom", y=-0.4, font=dict(size=10)),
    )
    return fig


# ── Sidebar ──────────────────────────────────────────────────────────
st.sidebar.title("Red Box")

state = sim.state

category = st.sidebar.radio("Budget side", ["expenditure", "revenue"], horizontal=True,
                            format_func=lambda c: "Spending" if c == "expenditure" else "Tax")
options = [i.id for i in state.items(category) if i.id != DEBT_INTEREST]
item_id = st.sidebar.selectbox("Line item", options)
current = state.find(category, item_id)
new_value = st.sidebar.number_input(
    "New value (£bn)", min_value=0.0, max_value=2000.0,
    value=float(round(current.value, 1)), step=5.0,
    key=f"value_{category}_{item_id}_{state.tick_count}",
)
submitted = st.sidebar.button("Announce")

if submitted:
    try:
        runtime.apply(BudgetAction(category, item_id, new_value))
    except ValidationError as exc:
        st.sidebar.error(str(exc))
    except BudgetSimError as exc:
        st.sidebar.error(f"Simulation reset: {exc}")
    else:
        st.rerun()

with st.sidebar.expander("Scenario Presets", expanded=False):
    preset_name = st.selectbox("Preset", list(SCENARIO_PRESETS.keys()))
    st.caption(", ".join(f"{i} → £{v:.0f}bn" for _, i, v in SCENARIO_PRESETS[preset_name]))
    if st.button("Run preset"):
        try:
            for cat, line, value in SCENARIO_PRESETS[preset_name]:
                runtime.apply(BudgetAction(cat, line, value))
        except BudgetSimError as exc:
            st.error(f"Preset stopped: {exc}")
        else:
            st.rerun()

if st.sidebar.button("Reset budget", type="primary"):
    runtime.reset()
    st.rerun()

# ── Header ───────────────────────────────────────────────────────────
st.title("Budget Simulator")
st.markdown(
    "Every announcement is one tick. Spending changes hit GDP partly now and "
    "partly two decisions later; cuts to public services hurt twice."
)

summary = sim.summary(state)
delta = sim.delta_from_baseline(state)

c1, c2, c3, c4, c5, c6, c7 = st.columns(7)
c1.metric("GDP", f"£{summary['gdp']:,.0f}bn", f"{delta['gdp']:+.1f}")
c2.metric("Deficit", f"£{summary['deficit']:,.0f}bn",
          f"{summary['deficit_pct_gdp']:.1f}% of GDP", delta_color="off")
c3.metric("Inflation", f"{summary['inflation']:.1f}%", f"{delta['inflation']:+.1f}pp",
          delta_color="inverse")
c4.metric("Gilt Yield", f"{summary['gilt_yield']:.2f}%", f"{delta['gilt_yield']:+.2f}pp",
          delta_color="inverse")
c5.metric("Public Mood", f"{summary['public_mood']:.0f}%", f"{delta['public_mood']:+.0f}")
c6.metric("Market Confidence", f"{summary['market_confidence']:.0f}%",
          f"{delta['market_confidence']:+.0f}")
c7.metric("Political Capital", f"{summary['political_capital']:.0f}%",
          f"{delta['political_capital']:+.0f}")

# ── Tabs ─────────────────────────────────────────────────────────────
tab_budget, tab_indicators, tab_pending, tab_news = st.tabs(
    ["Budget", "Indicators", "Pending Effects", "Headlines"]
)

with tab_budget:
    baseline = sim.init()
    st.plotly_chart(budget_bars(state, baseline), use_container_width=True)

    rows = []
    for cat in ("expenditure", "revenue"):
        for item in state.items(cat):
            start = baseline.find(cat, item.id)
            rows.append({
                "Side": "Spending" if cat == "expenditure" else "Tax",
                "Line": item.id,
                "Start (£bn)": f"{start.value:.1f}",
                "Now (£bn)": f"{item.value:.1f}",
                "Change (£bn)": f"{item.value - start.value:+.1f}",
            })
    st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)

with tab_indicators:
    history = runtime.history
    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(
            history_chart(history, [("gdp", "GDP")], "GDP (£bn)", "£bn"),
            use_container_width=True,
        )
        st.plotly_chart(
            history_chart(history, [("inflation", "Inflation"), ("gilt_yield", "Gilt Yield")],
                          "Prices and Borrowing (%)", "%"),
            use_container_width=True,
        )
    with col2:
        st.plotly_chart(
            history_chart(
                history,
                [("public_mood", "Public Mood"), ("market_confidence", "Market Confidence"),
                 ("political_capital", "Political Capital")],
                "Sentiment (0-100)", "Index",
            ),
            use_container_width=True,
        )
        st.plotly_chart(
            history_chart(history, [("deficit", "Deficit"), ("debt_interest", "Debt Interest")],
                          "Deficit and Debt Service (£bn)", "£bn"),
            use_container_width=True,
        )

with tab_pending:
    st.caption(f"Decisions taken: {state.tick_count}")
    if state.pending_impacts:
        st.dataframe(
            pd.DataFrame([
                {"Affects": p.target.value.upper(), "Change": f"{p.delta:+.2f}",
                 "Lands in (decisions)": p.ticks_remaining}
                for p in state.pending_impacts
            ]),
            hide_index=True, use_container_width=True,
        )
    else:
        st.info("Nothing in the pipeline.")

with tab_news:
    col1, col2 = st.columns([3, 2])
    with col1:
        st.subheader("Your Headlines")
        ticker = runtime.headlines()
        if not ticker:
            st.caption("Make a bold move to get the papers talking.")
        for event in ticker:
            color = KIND_COLORS.get(event.kind, "#262730")
            st.markdown(f"<span style='color:{color}'><b>[{event.kind.value}]</b> {event.text}</span>",
                        unsafe_allow_html=True)
    with col2:
        if runtime.writer.settings.enabled:
            st.subheader("Tomorrow's Front Pages")
            front_page = asyncio.run(runtime.writer.batch_headlines(fiscal_context(state)))
            for text in front_page or []:
                st.markdown(f"**{text}**")
        st.subheader("Live News")
        headlines = [e.text for e in runtime.news.latest(10)]
        if not headlines:
            st.caption("No live feed available right now.")
        for text in headlines:
            st.markdown(f"- {text}")

# ── Footer ───────────────────────────────────────────────────────────
st.divider()
context = fiscal_context(state)
st.caption(
    f"Deficit £{context['deficit']:.0f}bn on GDP £{context['gdp']:.0f}bn. "
    "A toy model for exploring trade-offs, not a forecast."
)
