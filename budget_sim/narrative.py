"""
Headlines and human-impact translation.

The selector is the only source of randomness in the engine; it draws from
an injected ``numpy.random.Generator`` so runs can be replayed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from .config import (
    CUT_TEMPLATES,
    BOOST_TEMPLATES,
    MARKET_TEMPLATES,
    POLITICAL_TEMPLATES,
    EMPATHY_MATRIX,
    FALLBACK_CUT_CATEGORY,
    FALLBACK_BOOST_TEMPLATE,
    TAX_BONANZA_TEMPLATE,
    HUMAN_COST_TEMPLATE,
)


class EventKind(str, Enum):
    LIVE = "LIVE"
    CRISIS = "CRISIS"
    MARKET = "MARKET"
    UPDATE = "UPDATE"
    AI = "AI"


@dataclass(frozen=True)
class NarrativeEvent:
    kind: EventKind
    text: str

    def to_dict(self) -> dict:
        return {"type": self.kind.value, "text": self.text}


def _amount(value: float) -> str:
    return f"{abs(value):.0f}"


def human_cost(category: str, amount: float) -> Optional[Tuple[int, str]]:
    """People (or potholes) affected by a £``amount``bn cut, with the unit label.

    None when the department has no empathy entry.
    """
    entry = EMPATHY_MATRIX.get(category)
    if entry is None:
        return None
    return round(abs(amount) * entry.factor), entry.unit


class NarrativeSelector:
    """Picks headline phrasing for each narrative bucket."""

    def __init__(self, rng: np.random.Generator = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def _pick(self, templates: List[str]) -> str:
        return templates[int(self.rng.integers(len(templates)))]

    def chance(self, probability: float) -> bool:
        """True with the given probability, drawn from the same source."""
        return bool(self.rng.random() < probability)

    def cut(self, category: str, amount: float) -> NarrativeEvent:
        templates = CUT_TEMPLATES.get(category) or CUT_TEMPLATES[FALLBACK_CUT_CATEGORY]
        text = self._pick(templates).format(amount=_amount(amount))
        return NarrativeEvent(EventKind.CRISIS, text)

    def boost(self, category: str, amount: float) -> NarrativeEvent:
        templates = BOOST_TEMPLATES.get(category) or [FALLBACK_BOOST_TEMPLATE]
        text = self._pick(templates).format(amount=_amount(amount), category=category)
        return NarrativeEvent(EventKind.UPDATE, text)

    def market(self) -> NarrativeEvent:
        return NarrativeEvent(EventKind.MARKET, self._pick(MARKET_TEMPLATES))

    def political(self) -> NarrativeEvent:
        return NarrativeEvent(EventKind.CRISIS, self._pick(POLITICAL_TEMPLATES))

    def tax_bonanza(self, category: str, amount: float) -> NarrativeEvent:
        text = TAX_BONANZA_TEMPLATE.format(category=category, amount=_amount(amount))
        return NarrativeEvent(EventKind.UPDATE, text)

    def human_cost(self, category: str, amount: float) -> Optional[NarrativeEvent]:
        cost = human_cost(category, amount)
        if cost is None:
            return None
        count, unit = cost
        return NarrativeEvent(EventKind.UPDATE, HUMAN_COST_TEMPLATE.format(count=count, unit=unit))
