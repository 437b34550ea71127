"""
Budget state: line items, the pending-effect queue, the clamp policy,
and the store that owns the single live snapshot.
"""

import copy
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional

from .config import (
    BASELINE_EXPENDITURE,
    BASELINE_REVENUE,
    BASELINE_GDP,
    BASELINE_INFLATION,
    BASELINE_GILT_YIELD,
    BASELINE_PUBLIC_MOOD,
    BASELINE_MARKET_CONFIDENCE,
    BASELINE_POLITICAL_CAPITAL,
    BOUNDS,
    DEBT_INTEREST,
)
from .errors import InvariantViolation

logger = logging.getLogger(__name__)


@dataclass
class LineItem:
    """One row of the budget, in £bn."""

    id: str
    value: float


class ImpactTarget(str, Enum):
    GDP = "gdp"
    MOOD = "mood"


@dataclass
class DelayedEffect:
    """A consequence that lands after ``ticks_remaining`` more actions."""

    target: ImpactTarget
    delta: float
    ticks_remaining: int


@dataclass
class BudgetState:
    """The whole simulated economy at one point in time."""

    expenditure: List[LineItem]
    revenue: List[LineItem]
    gdp: float
    inflation: float
    gilt_yield: float
    public_mood: float
    market_confidence: float
    political_capital: float
    pending_impacts: List[DelayedEffect] = field(default_factory=list)
    tick_count: int = 0

    def items(self, category: str) -> List[LineItem]:
        if category == "expenditure":
            return self.expenditure
        if category == "revenue":
            return self.revenue
        raise KeyError(category)

    def find(self, category: str, item_id: str) -> Optional[LineItem]:
        for item in self.items(category):
            if item.id == item_id:
                return item
        return None

    @property
    def total_expenditure(self) -> float:
        return sum(e.value for e in self.expenditure)

    @property
    def total_revenue(self) -> float:
        return sum(r.value for r in self.revenue)

    @property
    def deficit(self) -> float:
        return self.total_expenditure - self.total_revenue

    @property
    def debt_interest(self) -> float:
        return self.find("expenditure", DEBT_INTEREST).value

    def copy(self) -> "BudgetState":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict:
        """Plain-data view in the wire shape (camelCase, like the client expects)."""
        return {
            "expenditure": [{"id": e.id, "value": e.value} for e in self.expenditure],
            "revenue": [{"id": r.id, "value": r.value} for r in self.revenue],
            "gdp": self.gdp,
            "inflation": self.inflation,
            "giltYield": self.gilt_yield,
            "publicMood": self.public_mood,
            "marketConfidence": self.market_confidence,
            "politicalCapital": self.political_capital,
            "pendingImpacts": [
                {"type": p.target.value, "delta": p.delta, "ticksRemaining": p.ticks_remaining}
                for p in self.pending_impacts
            ],
            "tickCount": self.tick_count,
        }


def baseline_state() -> BudgetState:
    """Fresh copy of the starting budget. Already self-consistent."""
    return BudgetState(
        expenditure=[LineItem(i, v) for i, v in BASELINE_EXPENDITURE],
        revenue=[LineItem(i, v) for i, v in BASELINE_REVENUE],
        gdp=BASELINE_GDP,
        inflation=BASELINE_INFLATION,
        gilt_yield=BASELINE_GILT_YIELD,
        public_mood=BASELINE_PUBLIC_MOOD,
        market_confidence=BASELINE_MARKET_CONFIDENCE,
        political_capital=BASELINE_POLITICAL_CAPITAL,
    )


# ── Clamp policy ─────────────────────────────────────────────────────
def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def apply_bounds(state: BudgetState) -> BudgetState:
    """Force every bounded indicator into its range."""
    clamped = {name: clamp(getattr(state, name), lo, hi) for name, (lo, hi) in BOUNDS.items()}
    return replace(state, **clamped)


def check_bounds(state: BudgetState) -> None:
    for name, (lo, hi) in BOUNDS.items():
        value = getattr(state, name)
        # NaN fails both comparisons, so test for "inside" rather than "outside"
        if not (lo <= value <= hi):
            raise InvariantViolation(name, value, (lo, hi))


# ── Store ────────────────────────────────────────────────────────────
class StateStore:
    """Holds the live snapshot and the baseline it can be reset to."""

    def __init__(self, baseline: BudgetState = None):
        self._baseline = (baseline or baseline_state()).copy()
        self._current = self._baseline.copy()

    @property
    def baseline(self) -> BudgetState:
        return self._baseline.copy()

    @property
    def current(self) -> BudgetState:
        return self._current

    def replace(self, state: BudgetState) -> None:
        self._current = state

    def reset(self) -> BudgetState:
        self._current = self._baseline.copy()
        self._current.tick_count = 0
        logger.info("Budget reset to baseline")
        return self._current
