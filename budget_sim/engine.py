"""
Budget simulation engine.

Every accepted action (one line item moved to a new value) is one tick.
A tick runs these feedback loops:

1. Fiscal Multiplier
   Spending change -> part of the GDP effect now, the rest two ticks later

2. Public Reaction
   Big cuts -> crisis headlines, mood falls now and again later
   Big boosts -> good headlines, mood and political capital rise

3. Political Capital
   Cuts to health, welfare or education drain capital -> possible revolt

4. Tax Elasticity
   Tax rises drag on GDP and mood; big cuts cheer voters but worry markets

5. Inflation Spiral
   Spending above the baseline envelope (relative to GDP) -> inflation

6. Monetary Response
   Inflation above tolerance -> central bank pushes gilt yields up

7. Bond Vigilantes
   Deficit above 5% of GDP -> yields rise, confidence falls, market panic
   Deficit below 3% -> yields ease back toward the anchor

8. Debt Service
   Gilt yield -> Debt Interest line item -> total spending -> deficit
"""

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from .config import (
    DEBT_INTEREST,
    DEFAULT_MULTIPLIER,
    FISCAL_MULTIPLIERS,
    LINE_ITEM_LIMIT,
    SENSITIVE_CATEGORIES,
    EngineParams,
)
from .errors import InvariantViolation, ValidationError
from .narrative import NarrativeEvent, NarrativeSelector
from .scheduler import resolve_pending
from .state import (
    BudgetState,
    DelayedEffect,
    ImpactTarget,
    StateStore,
    apply_bounds,
    check_bounds,
)

logger = logging.getLogger(__name__)

CATEGORIES = ("expenditure", "revenue")


@dataclass(frozen=True)
class BudgetAction:
    """Move one line item to a new value."""

    category: str  # "expenditure" or "revenue"
    id: str
    value: float

    @classmethod
    def from_dict(cls, data: Mapping) -> "BudgetAction":
        """Build from the wire shape. ``type`` is accepted in place of ``category``."""
        category = data.get("category", data.get("type"))
        if category is None or "id" not in data or "value" not in data:
            raise ValidationError(f"action needs category, id and value: {dict(data)!r}")
        return cls(category=category, id=data["id"], value=data["value"])


@dataclass
class ApplyResult:
    state: BudgetState
    events: List[NarrativeEvent] = field(default_factory=list)
    diff: float = 0.0  # change made to the line item


def _is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        return False
    return math.isfinite(value)


def validate_action(state: BudgetState, action: BudgetAction) -> None:
    """Raise ValidationError if ``action`` cannot be applied to ``state``."""
    if action.category not in CATEGORIES:
        raise ValidationError(f"unknown category {action.category!r}")
    if not _is_finite_number(action.value):
        raise ValidationError(f"value for {action.id!r} must be a finite number, got {action.value!r}")
    if abs(action.value) > LINE_ITEM_LIMIT:
        raise ValidationError(f"value for {action.id!r} is beyond ±£{LINE_ITEM_LIMIT:,.0f}bn")
    if state.find(action.category, action.id) is None:
        raise ValidationError(f"no {action.category} line item called {action.id!r}")
    if action.category == "expenditure" and action.id == DEBT_INTEREST:
        raise ValidationError(f"{DEBT_INTEREST} follows the gilt yield and cannot be set")


def _ratio(numerator: float, denominator: float) -> float:
    # GDP is unclamped; keep the arithmetic total if it ever reaches zero
    if denominator == 0:
        return math.copysign(math.inf, numerator) if numerator else 0.0
    return numerator / denominator


def apply_spending_change(
    s: BudgetState,
    category: str,
    diff: float,
    params: EngineParams,
    selector: NarrativeSelector,
) -> List[NarrativeEvent]:
    """Spending branch of a tick. Mutates ``s`` and returns the headlines."""
    p = params
    events = []

    multiplier = FISCAL_MULTIPLIERS.get(category, DEFAULT_MULTIPLIER)
    gdp_effect = diff * multiplier
    s.gdp += gdp_effect * p.immediate_gdp_share
    s.pending_impacts.append(
        DelayedEffect(ImpactTarget.GDP, gdp_effect * (1 - p.immediate_gdp_share), p.effect_delay_ticks)
    )

    if diff < -p.cut_threshold:
        cut = abs(diff)
        events.append(selector.cut(category, cut))

        # People feel a cut twice: on announcement and when services shrink
        mood_hit = cut * p.cut_mood_factor
        s.public_mood -= mood_hit
        s.pending_impacts.append(DelayedEffect(ImpactTarget.MOOD, -mood_hit, p.effect_delay_ticks))

        if category in SENSITIVE_CATEGORIES:
            s.political_capital -= cut * p.cut_capital_factor
            if s.political_capital < p.capital_crisis_level and selector.chance(p.political_crisis_probability):
                events.append(selector.political())

        if cut > p.empathy_min_diff:
            human = selector.human_cost(category, cut)
            if human is not None:
                events.append(human)

    elif diff > p.boost_threshold:
        events.append(selector.boost(category, diff))
        s.public_mood += diff * p.boost_mood_factor
        s.political_capital += diff * p.boost_capital_factor

    return events


def apply_revenue_change(
    s: BudgetState,
    category: str,
    diff: float,
    params: EngineParams,
    selector: NarrativeSelector,
) -> List[NarrativeEvent]:
    """Tax branch of a tick. Mutates ``s`` and returns the headlines."""
    p = params
    events = []

    if diff > p.tax_shock_threshold:
        s.gdp -= diff * p.tax_shock_gdp_factor
        s.market_confidence -= p.tax_shock_confidence_hit
        events.append(selector.market())
    elif diff > p.tax_drag_threshold:
        s.gdp -= diff * p.tax_drag_gdp_factor

    # A negative diff (tax cut) lifts mood here
    s.public_mood -= diff * p.tax_mood_factor

    if diff < -p.tax_cut_threshold:
        s.public_mood += abs(diff) * p.tax_cut_mood_factor
        s.market_confidence -= p.tax_cut_confidence_hit
        events.append(selector.tax_bonanza(category, diff))

    return events


def update_indicators(
    s: BudgetState,
    params: EngineParams,
    selector: NarrativeSelector,
) -> Tuple[BudgetState, List[NarrativeEvent]]:
    """Recompute inflation, gilt yield and debt interest, then clamp.

    Works on the post-action state; ``s`` must be a private working copy.
    """
    p = params
    events = []

    total_exp = s.total_expenditure
    deficit = total_exp - s.total_revenue
    deficit_pct_gdp = _ratio(deficit, s.gdp) * 100

    # Inflation spiral
    spending_pressure = _ratio(total_exp - p.baseline_spending, s.gdp)
    s.inflation = max(0.0, p.inflation_floor + spending_pressure * p.inflation_sensitivity)

    # Central bank response
    if s.inflation > p.inflation_tolerance:
        s.gilt_yield += (s.inflation - p.inflation_tolerance) * p.inflation_yield_pass_through

    # Bond vigilantes
    if deficit_pct_gdp > p.deficit_alarm_pct:
        s.gilt_yield += p.deficit_alarm_yield_rise
        s.market_confidence -= p.deficit_alarm_confidence_hit
        if selector.chance(p.market_panic_probability):
            events.append(selector.market())
    elif deficit_pct_gdp < p.deficit_comfort_pct:
        if s.gilt_yield > p.yield_anchor:
            s.gilt_yield -= p.comfort_yield_easing
        if s.market_confidence < p.confidence_ceiling:
            s.market_confidence += p.confidence_recovery
    elif s.gilt_yield > p.yield_anchor:
        s.gilt_yield -= p.neutral_yield_easing

    s = apply_bounds(s)

    # Debt service follows the (clamped) yield
    debt = s.find("expenditure", DEBT_INTEREST)
    if debt is not None:
        debt.value = p.debt_interest_base + (s.gilt_yield - p.yield_anchor) * p.debt_interest_per_point

    check_bounds(s)
    return s, events


def apply_action(
    state: BudgetState,
    action: BudgetAction,
    params: EngineParams = None,
    selector: NarrativeSelector = None,
) -> ApplyResult:
    """One tick: apply ``action`` to ``state`` and return the new state and headlines.

    ``state`` itself is never modified. Raises ValidationError before doing
    anything if the action is malformed, and InvariantViolation if a bounded
    indicator is out of range at the end.
    """
    params = params or EngineParams()
    selector = selector or NarrativeSelector()
    validate_action(state, action)

    s = state.copy()

    # 1. Delayed effects coming due this tick
    resolved, s.pending_impacts = resolve_pending(s.pending_impacts)

    # 2. Clock
    s.tick_count += 1

    # 3. The change itself
    item = s.find(action.category, action.id)
    diff = float(action.value) - item.value
    item.value = float(action.value)

    # 4-5. Immediate consequences
    if action.category == "expenditure":
        events = apply_spending_change(s, action.id, diff, params, selector)
    else:
        events = apply_revenue_change(s, action.id, diff, params, selector)

    # 6. Land the delayed effects
    s.gdp += resolved[ImpactTarget.GDP]
    s.public_mood += resolved[ImpactTarget.MOOD]

    # 7. Macro feedback
    s, macro_events = update_indicators(s, params, selector)
    events.extend(macro_events)

    logger.debug(
        "tick %d: %s %s %+.1f -> %d event(s), %d pending",
        s.tick_count, action.category, action.id, diff, len(events), len(s.pending_impacts),
    )
    return ApplyResult(state=s, events=events, diff=diff)


class FiscalSimulator:
    """Owns the single live budget and serialises every change to it."""

    def __init__(
        self,
        params: EngineParams = None,
        rng: np.random.Generator = None,
        seed: Optional[int] = None,
        store: StateStore = None,
    ):
        self.params = params or EngineParams()
        self.selector = NarrativeSelector(rng if rng is not None else np.random.default_rng(seed))
        self.store = store or StateStore()
        self._lock = threading.Lock()

    @property
    def state(self) -> BudgetState:
        with self._lock:
            return self.store.current.copy()

    def init(self) -> BudgetState:
        """The starting budget, for showing how far the user has moved from it."""
        return self.store.baseline

    def apply(self, action) -> ApplyResult:
        """Apply an action (BudgetAction or wire-shaped mapping) to the live budget."""
        if not isinstance(action, BudgetAction):
            action = BudgetAction.from_dict(action)
        with self._lock:
            try:
                result = apply_action(self.store.current, action, self.params, self.selector)
            except InvariantViolation:
                logger.exception("Invariant broken applying %s; resetting budget", action)
                self.store.reset()
                raise
            self.store.replace(result.state)
            return ApplyResult(result.state.copy(), list(result.events), result.diff)

    def reset(self) -> BudgetState:
        with self._lock:
            return self.store.reset().copy()

    def summary(self, state: BudgetState = None) -> Dict[str, float]:
        """Headline numbers for display."""
        s = state or self.state
        return {
            "total_expenditure": s.total_expenditure,
            "total_revenue": s.total_revenue,
            "deficit": s.deficit,
            "deficit_pct_gdp": _ratio(s.deficit, s.gdp) * 100,
            "gdp": s.gdp,
            "inflation": s.inflation,
            "gilt_yield": s.gilt_yield,
            "debt_interest": s.debt_interest,
            "public_mood": s.public_mood,
            "market_confidence": s.market_confidence,
            "political_capital": s.political_capital,
        }

    def delta_from_baseline(self, state: BudgetState = None) -> Dict[str, float]:
        """Change in each summary figure since the start."""
        now = self.summary(state)
        start = self.summary(self.init())
        return {k: now[k] - start[k] for k in now}
