"""Exceptions raised by the budget engine."""


class BudgetSimError(Exception):
    """Base class for budget simulator errors."""


class ValidationError(BudgetSimError):
    """An action was rejected before touching the budget."""


class InvariantViolation(BudgetSimError):
    """A bounded indicator escaped its range after clamping."""

    def __init__(self, field_name: str, value: float, bounds: tuple):
        self.field_name = field_name
        self.value = value
        self.bounds = bounds
        lo, hi = bounds
        super().__init__(f"{field_name}={value!r} outside [{lo}, {hi}]")
