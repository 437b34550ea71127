"""Delayed effects: consequences that land a few actions after the decision."""

from typing import Dict, List, Tuple

from .state import DelayedEffect, ImpactTarget


def resolve_pending(
    pending: List[DelayedEffect],
) -> Tuple[Dict[ImpactTarget, float], List[DelayedEffect]]:
    """Advance every pending effect by one tick.

    Returns the summed deltas of effects that came due, per target, and the
    effects still waiting. The input list is not modified.
    """
    resolved = {target: 0.0 for target in ImpactTarget}
    remaining = []
    for effect in pending:
        ticks = effect.ticks_remaining - 1
        if ticks <= 0:
            resolved[effect.target] += effect.delta
        else:
            remaining.append(DelayedEffect(effect.target, effect.delta, ticks))
    return resolved, remaining
