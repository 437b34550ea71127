import math

import pytest

from budget_sim.config import DEBT_INTEREST, LINE_ITEM_LIMIT
from budget_sim.engine import BudgetAction, apply_action
from budget_sim.errors import ValidationError
from budget_sim.narrative import EventKind
from budget_sim.state import DelayedEffect, ImpactTarget


def spend(item, value):
    return BudgetAction("expenditure", item, value)


def tax(item, value):
    return BudgetAction("revenue", item, value)


def kinds(result):
    return [e.kind for e in result.events]


# ── End to end ───────────────────────────────────────────────────────
def test_health_cut_scenario(baseline, never):
    result = apply_action(baseline, spend("Health", 150), selector=never)
    s = result.state

    assert s.find("expenditure", "Health").value == 150
    assert s.gdp == pytest.approx(2800 - 5.4)
    assert s.public_mood == pytest.approx(41.0)
    assert s.political_capital == pytest.approx(55.0)
    assert s.tick_count == 1
    assert result.diff == -30

    assert len(s.pending_impacts) == 2
    gdp_effect, mood_effect = s.pending_impacts
    assert gdp_effect.target is ImpactTarget.GDP
    assert gdp_effect.delta == pytest.approx(-8.1)
    assert gdp_effect.ticks_remaining == 2
    assert mood_effect.target is ImpactTarget.MOOD
    assert mood_effect.delta == pytest.approx(-9.0)
    assert mood_effect.ticks_remaining == 2

    assert kinds(result) == [EventKind.CRISIS, EventKind.UPDATE]
    assert result.events[1].text == "HUMAN COST: 1,350,000 people on waiting lists"


def test_health_cut_uses_amount_in_headline(baseline, always):
    result = apply_action(baseline, spend("Health", 150), selector=always)
    assert result.events[0].text == "NHS ON KNEES: £30bn slashed as queues spiral"


def test_input_state_is_not_modified(baseline, selector):
    before = baseline.copy()
    apply_action(baseline, spend("Health", 150), selector=selector)
    assert baseline == before


# ── Headline gating ──────────────────────────────────────────────────
@pytest.mark.parametrize("value", [175, 177, 179.5, 180])
def test_small_cuts_make_no_headlines(baseline, always, value):
    result = apply_action(baseline, spend("Health", value), selector=always)
    assert result.events == []


def test_small_cut_still_moves_gdp(baseline, never):
    result = apply_action(baseline, spend("Health", 175), selector=never)
    assert result.state.gdp == pytest.approx(2800 - 5 * 0.45 * 0.4)
    assert result.state.public_mood == 50
    assert len(result.state.pending_impacts) == 1


def test_cut_to_insensitive_department_keeps_capital(baseline, never):
    result = apply_action(baseline, spend("Defence", 45), selector=never)
    assert kinds(result) == [EventKind.CRISIS]
    assert result.state.political_capital == 100
    # Defence has its own multiplier
    assert result.state.gdp == pytest.approx(2800 - 10 * 0.3 * 0.4)


def test_political_crisis_when_capital_collapses(baseline, always):
    first = apply_action(baseline, spend("Health", 150), selector=always)
    second = apply_action(first.state, spend("Health", 120), selector=always)

    assert second.state.political_capital == pytest.approx(10.0)
    assert kinds(second) == [EventKind.CRISIS, EventKind.CRISIS, EventKind.UPDATE]
    assert second.events[1].text == "BACKBENCH MUTINY: MPs revolt against unpopular cuts"


def test_political_crisis_is_a_coin_flip(baseline, never):
    first = apply_action(baseline, spend("Health", 150), selector=never)
    second = apply_action(first.state, spend("Health", 120), selector=never)
    assert kinds(second) == [EventKind.CRISIS, EventKind.UPDATE]


def test_boost_raises_mood_and_capital(baseline, never):
    result = apply_action(baseline, spend("Infrastructure", 80), selector=never)
    s = result.state
    assert kinds(result) == [EventKind.UPDATE]
    assert result.events[0].text == "BUILDING BRITAIN: £20bn infrastructure blitz"
    assert s.public_mood == pytest.approx(54.0)
    assert s.political_capital == 100  # clamped
    assert s.gdp == pytest.approx(2808.0)
    assert s.pending_impacts == [DelayedEffect(ImpactTarget.GDP, pytest.approx(12.0), 2)]


def test_boost_without_templates_uses_generic_headline(baseline, never):
    result = apply_action(baseline, spend("Defence", 70), selector=never)
    assert [e.text for e in result.events] == ["SPENDING UP: £15bn boost for Defence"]


# ── Tax ──────────────────────────────────────────────────────────────
def test_big_tax_rise_spooks_markets(baseline, never):
    result = apply_action(baseline, tax("Income Tax", 300), selector=never)
    s = result.state
    assert kinds(result) == [EventKind.MARKET]
    assert s.gdp == pytest.approx(2800 - 20 * 0.33)
    assert s.public_mood == pytest.approx(46.0)
    # -5 for the shock, +1 back because the deficit is now under 3% of GDP
    assert s.market_confidence == pytest.approx(76.0)
    assert s.pending_impacts == []


def test_moderate_tax_rise_drags_quietly(baseline, never):
    result = apply_action(baseline, tax("VAT", 188), selector=never)
    assert result.events == []
    assert result.state.gdp == pytest.approx(2800 - 8 * 0.2)
    assert result.state.public_mood == pytest.approx(48.4)


def test_big_tax_cut_is_a_bonanza(baseline, never):
    result = apply_action(baseline, tax("Income Tax", 260), selector=never)
    s = result.state
    assert [e.text for e in result.events] == ["TAX BONANZA: Income Tax slashed by £20bn"]
    assert result.events[0].kind is EventKind.UPDATE
    assert s.public_mood == pytest.approx(60.0)
    assert s.market_confidence == pytest.approx(77.0)
    assert s.gdp == 2800


# ── Macro feedback ───────────────────────────────────────────────────
def test_deficit_alarm_raises_yields(baseline, always):
    result = apply_action(baseline, spend("Other Services", 520), selector=always)
    s = result.state

    gdp = 2800 + 140 * 0.4 * 0.4
    inflation = 2.0 + (1335 - 1200) / gdp * 80
    gilt_yield = 4.2 + (inflation - 4.0) * 0.03 + 0.05

    assert s.inflation == pytest.approx(inflation)
    assert s.gilt_yield == pytest.approx(gilt_yield)
    assert s.market_confidence == pytest.approx(79.0)
    assert kinds(result) == [EventKind.UPDATE, EventKind.MARKET]
    assert s.debt_interest == pytest.approx(100 + (gilt_yield - 4.2) * 10)


def test_market_panic_is_probabilistic(baseline, never):
    result = apply_action(baseline, spend("Other Services", 520), selector=never)
    assert kinds(result) == [EventKind.UPDATE]


def test_prudence_eases_yields_toward_anchor(baseline, never):
    high = baseline.copy()
    high.gilt_yield = 5.0
    result = apply_action(high, spend("Health", 150), selector=never)
    assert result.state.gilt_yield == pytest.approx(5.0 - 0.02)


def test_debt_interest_tracks_gilt_yield(baseline, never):
    result = apply_action(baseline, spend("Health", 179), selector=never)
    # Baseline yield sits on the anchor, so debt interest settles at 100
    assert result.state.debt_interest == pytest.approx(100.0)


def test_bounded_fields_are_clamped(baseline, never):
    s = baseline.copy()
    s.public_mood = 3.0
    result = apply_action(s, spend("Social Protection", 250), selector=never)
    assert result.state.public_mood == 0.0
    assert result.state.political_capital == 10.0


# ── Delayed effects ──────────────────────────────────────────────────
def test_delayed_effect_lands_exactly_two_ticks_later(baseline, never):
    first = apply_action(baseline, spend("Health", 150), selector=never)
    second = apply_action(first.state, tax("Income Tax", 281), selector=never)

    assert second.state.gdp == pytest.approx(2794.6)
    assert second.state.public_mood == pytest.approx(40.8)
    assert [p.ticks_remaining for p in second.state.pending_impacts] == [1, 1]

    third = apply_action(second.state, tax("Income Tax", 282), selector=never)
    assert third.state.gdp == pytest.approx(2794.6 - 8.1)
    assert third.state.public_mood == pytest.approx(40.8 - 0.2 - 9.0)
    assert third.state.pending_impacts == []

    fourth = apply_action(third.state, tax("Income Tax", 283), selector=never)
    assert fourth.state.gdp == pytest.approx(2794.6 - 8.1)


# ── Validation ───────────────────────────────────────────────────────
@pytest.mark.parametrize("action", [
    spend("Nonexistent", 10),
    tax("Health", 10),
    BudgetAction("subsidies", "Health", 10),
    spend("Health", math.nan),
    spend("Health", math.inf),
    spend("Health", "150"),
    spend("Health", True),
    spend("Health", -1e305),
    spend("Health", 1e308),
    tax("VAT", LINE_ITEM_LIMIT + 1),
    spend(DEBT_INTEREST, 90),
])
def test_invalid_actions_are_rejected(baseline, selector, action):
    before = baseline.copy()
    with pytest.raises(ValidationError):
        apply_action(baseline, action, selector=selector)
    assert baseline == before


def test_largest_allowed_swings_stay_finite(baseline, always):
    up = apply_action(baseline, spend("Health", LINE_ITEM_LIMIT), selector=always)
    down = apply_action(up.state, spend("Health", -LINE_ITEM_LIMIT), selector=always)

    assert down.diff == -2 * LINE_ITEM_LIMIT
    assert down.events[-1].text == "HUMAN COST: 90,000,000,000 people on waiting lists"
    assert math.isfinite(down.state.gdp)
    assert 0 <= down.state.public_mood <= 100


def test_action_from_wire_shape():
    assert BudgetAction.from_dict({"category": "revenue", "id": "VAT", "value": 190}) == tax("VAT", 190)
    assert BudgetAction.from_dict({"type": "expenditure", "id": "Health", "value": 150}) == spend("Health", 150)
    with pytest.raises(ValidationError):
        BudgetAction.from_dict({"id": "Health", "value": 150})
