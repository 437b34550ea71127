import numpy as np
import pytest

from budget_sim.narrative import NarrativeSelector
from budget_sim.state import baseline_state


class FixedRng:
    """Stands in for numpy's Generator: always the first template, fixed draws."""

    def __init__(self, draw: float):
        self.draw = draw

    def random(self):
        return self.draw

    def integers(self, n):
        return 0


@pytest.fixture
def baseline():
    return baseline_state()


@pytest.fixture
def selector():
    return NarrativeSelector(np.random.default_rng(1234))


@pytest.fixture
def always():
    """Every probabilistic headline fires."""
    return NarrativeSelector(FixedRng(0.0))


@pytest.fixture
def never():
    """No probabilistic headline fires."""
    return NarrativeSelector(FixedRng(0.99))
