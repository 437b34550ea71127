"""
Configuration for the Budget Simulator.

Defines the baseline budget, the per-department lookup tables (fiscal
multipliers, human-impact translation, headline templates), the tunable
engine parameters, and the settings for the headline and news
collaborators.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Tuple


DEBT_INTEREST = "Debt Interest"

# Largest magnitude (£bn) a line item may be set to
LINE_ITEM_LIMIT = 1_000_000.0

# Baseline budget (£bn). Debt Interest is derived from the gilt yield and
# never edited directly; 100 matches the baseline yield.
BASELINE_EXPENDITURE: List[Tuple[str, float]] = [
    ("Health", 180.0),
    ("Social Protection", 310.0),
    ("Education", 110.0),
    ("Defence", 55.0),
    (DEBT_INTEREST, 100.0),
    ("Infrastructure", 60.0),
    ("Other Services", 380.0),
]

BASELINE_REVENUE: List[Tuple[str, float]] = [
    ("Income Tax", 280.0),
    ("VAT", 180.0),
    ("Corporation Tax", 95.0),
    ("NI", 185.0),
    ("Other Revenue", 360.0),
]

BASELINE_GDP = 2800.0
BASELINE_INFLATION = 2.5
BASELINE_GILT_YIELD = 4.2
BASELINE_PUBLIC_MOOD = 50.0
BASELINE_MARKET_CONFIDENCE = 80.0
BASELINE_POLITICAL_CAPITAL = 100.0

# Allowed range for every bounded indicator
BOUNDS: Dict[str, Tuple[float, float]] = {
    "inflation": (0.0, 20.0),
    "gilt_yield": (0.5, 15.0),
    "public_mood": (0.0, 100.0),
    "market_confidence": (0.0, 100.0),
    "political_capital": (0.0, 100.0),
}

# GDP return per £1bn of departmental spending
FISCAL_MULTIPLIERS: Dict[str, float] = {
    "Infrastructure": 1.0,
    "Health": 0.45,
    "Education": 0.5,
    "Defence": 0.3,
    "Social Protection": 0.6,
    "Other Services": 0.4,
}
DEFAULT_MULTIPLIER = 0.4

# Cuts to these departments cost political capital
SENSITIVE_CATEGORIES = frozenset({"Health", "Social Protection", "Education"})


@dataclass(frozen=True)
class EmpathyEntry:
    """How a £1bn cut to a department shows up in people's lives."""

    factor: float  # people/things affected per £1bn
    unit: str


EMPATHY_MATRIX: Dict[str, EmpathyEntry] = {
    "Health": EmpathyEntry(45000, "people on waiting lists"),
    "Education": EmpathyEntry(1000, "teachers at risk"),
    "Social Protection": EmpathyEntry(50000, "families losing benefits"),
    "Infrastructure": EmpathyEntry(100000, "potholes unfixed"),
    "Other Services": EmpathyEntry(5000, "police officers unfunded"),
}

# Tabloid-style headlines; {amount} is the change in whole £bn
CUT_TEMPLATES: Dict[str, List[str]] = {
    "Health": [
        "NHS ON KNEES: £{amount}bn slashed as queues spiral",
        "HOSPITALS IN CRISIS: Chancellor wields axe on health",
        "A&E MELTDOWN: {amount} billion cut from lifeline services",
    ],
    "Social Protection": [
        "PENSIONERS BETRAYED: £{amount}bn welfare wipeout",
        "BENEFITS AXE: Millions face hardship after savage cuts",
        "COLD WINTER AHEAD: Heating payments slashed by £{amount}bn",
    ],
    "Education": [
        "SCHOOLS GUTTED: £{amount}bn ripped from classrooms",
        "TEACHERS REVOLT: Mass walkouts as education cut",
        "FUTURE CANCELLED: Universities face £{amount}bn blackhole",
    ],
    "Defence": [
        "TROOP CUTS: Army faces £{amount}bn axe amid tensions",
        "DEFENCE WEAKENED: Critics slam {amount}bn military cut",
    ],
    "Infrastructure": [
        "ROADS TO RUIN: £{amount}bn slashed from transport",
        "POTHOLE BRITAIN: Infrastructure budget decimated",
        "HS2-STYLE CUTS: £{amount}bn scrapped from building plans",
    ],
    "Other Services": [
        "POLICE STRETCHED: £{amount}bn cut to frontline services",
        "COUNCILS IN CRISIS: Local services face axe",
    ],
}

BOOST_TEMPLATES: Dict[str, List[str]] = {
    "Health": [
        "NHS BONANZA: £{amount}bn injection to cut queues",
        "HOSPITALS REJOICE: Record investment in health",
    ],
    "Social Protection": [
        "PENSIONERS CELEBRATE: £{amount}bn boost to support",
        "SAFETY NET STRENGTHENED: Benefits rise by £{amount}bn",
    ],
    "Education": [
        "SCHOOLS GOLDEN AGE: £{amount}bn education windfall",
        "TEACHERS TRIUMPH: Biggest funding boost in decades",
    ],
    "Infrastructure": [
        "BUILDING BRITAIN: £{amount}bn infrastructure blitz",
        "ROADS, RAIL, BROADBAND: Record £{amount}bn investment",
    ],
}

MARKET_TEMPLATES: List[str] = [
    "CITY PANIC: Traders flee UK assets after fiscal shock",
    "GILT VIGILANTES: Bond markets punish loose policy",
    "STERLING SLIDES: Pound under pressure on deficit fears",
]

POLITICAL_TEMPLATES: List[str] = [
    "BACKBENCH MUTINY: MPs revolt against unpopular cuts",
    "LEADERSHIP CRISIS: PM faces confidence vote",
    "CABINET SPLIT: Senior ministers brief against policy",
]

FALLBACK_CUT_CATEGORY = "Other Services"
FALLBACK_BOOST_TEMPLATE = "SPENDING UP: £{amount}bn boost for {category}"
TAX_BONANZA_TEMPLATE = "TAX BONANZA: {category} slashed by £{amount}bn"
HUMAN_COST_TEMPLATE = "HUMAN COST: {count:,} {unit}"


@dataclass
class EngineParams:
    """All tunable coefficients of the budget transition."""

    # --- Spending ---
    immediate_gdp_share: float = 0.4  # rest of the GDP effect lands later
    effect_delay_ticks: int = 2
    cut_threshold: float = 5.0  # |diff| beyond this makes headlines
    boost_threshold: float = 5.0
    cut_mood_factor: float = 0.3  # applied now and again after the delay
    cut_capital_factor: float = 1.5
    boost_mood_factor: float = 0.2
    boost_capital_factor: float = 0.5
    capital_crisis_level: float = 30.0
    political_crisis_probability: float = 0.5
    empathy_min_diff: float = 3.0

    # --- Tax ---
    tax_shock_threshold: float = 10.0
    tax_shock_gdp_factor: float = 0.33
    tax_shock_confidence_hit: float = 5.0
    tax_drag_threshold: float = 5.0
    tax_drag_gdp_factor: float = 0.2
    tax_mood_factor: float = 0.2
    tax_cut_threshold: float = 10.0
    tax_cut_mood_factor: float = 0.3
    tax_cut_confidence_hit: float = 3.0

    # --- Prices and borrowing ---
    baseline_spending: float = 1200.0
    inflation_floor: float = 2.0
    inflation_sensitivity: float = 80.0
    inflation_tolerance: float = 4.0  # central bank reacts above this
    inflation_yield_pass_through: float = 0.03
    deficit_alarm_pct: float = 5.0
    deficit_alarm_yield_rise: float = 0.05
    deficit_alarm_confidence_hit: float = 1.0
    market_panic_probability: float = 0.3
    deficit_comfort_pct: float = 3.0
    yield_anchor: float = 4.2
    comfort_yield_easing: float = 0.02
    neutral_yield_easing: float = 0.01
    confidence_recovery: float = 1.0
    confidence_ceiling: float = 80.0  # recovery stops here

    # --- Debt interest ---
    debt_interest_base: float = 100.0
    debt_interest_per_point: float = 10.0


@dataclass
class EnrichmentSettings:
    """Settings for AI-written headlines. Without an API key nothing is called."""

    api_key: str = field(default_factory=lambda: os.getenv("GEMINI_API_KEY", ""))
    model: str = field(default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.5-flash"))
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    request_timeout: float = 8.0
    contextual_cooldown_seconds: float = 15.0
    batch_cache_seconds: float = 60.0
    batch_size: int = 5
    min_headline_length: int = 10
    max_headline_length: int = 100
    min_enrich_diff: float = 10.0  # only dramatic changes get an AI headline

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass
class NewsSettings:
    """Settings for the live RSS news ticker."""

    feeds: List[str] = field(default_factory=lambda: [
        "http://feeds.bbci.co.uk/news/politics/rss.xml",
        "http://feeds.bbci.co.uk/news/business/rss.xml",
        "https://www.theguardian.com/uk/money/rss",
        "https://www.theguardian.com/politics/rss",
    ])
    keywords: List[str] = field(default_factory=lambda: [
        "economy", "tax", "budget", "spending", "chancellor", "treasury",
        "inflation", "bank of england", "deficit", "nhs", "pension",
        "benefits", "debt", "gdp", "recession", "growth", "starmer",
        "reeves", "sunak", "labour", "tory", "conservative", "interest rates",
    ])
    max_items: int = 20
    poll_interval_seconds: float = 300.0
    request_timeout: float = 10.0
    user_agent: str = "BudgetSimulator/1.0"


# Named budget scenarios: ordered (category, line item, new value) actions
SCENARIO_PRESETS: Dict[str, List[Tuple[str, str, float]]] = {
    "Austerity": [
        ("expenditure", "Health", 150.0),
        ("expenditure", "Social Protection", 270.0),
        ("expenditure", "Education", 95.0),
        ("revenue", "VAT", 195.0),
    ],
    "Spending Spree": [
        ("expenditure", "Health", 220.0),
        ("expenditure", "Infrastructure", 110.0),
        ("expenditure", "Education", 140.0),
        ("expenditure", "Defence", 75.0),
    ],
    "Tax Cut Budget": [
        ("revenue", "Income Tax", 250.0),
        ("revenue", "NI", 165.0),
        ("revenue", "Corporation Tax", 80.0),
    ],
}
