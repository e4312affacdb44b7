"""
Registry of adjustable calculation variables.

Each entry knows how to apply a value to a ReturnCalculationInputs and how
to read the variable's current value back. Yearly cost and benefit streams
are scaled by a multiplier; scalar inputs are replaced outright.
"""
from dataclasses import dataclass, replace
from typing import Callable, Dict, List

from financial_models.models import ReturnCalculationInputs
from utils.exceptions import UnknownVariableError


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


@dataclass(frozen=True)
class VariableAdjustment:
    """How one named variable is applied and read"""
    name: str
    label: str
    apply: Callable[[ReturnCalculationInputs, float], ReturnCalculationInputs]
    read_base: Callable[[ReturnCalculationInputs], float]
    multiplier: bool = False

    def search_base(self, inputs: ReturnCalculationInputs) -> float:
        """Current value expressed in the units apply() expects"""
        return 1.0 if self.multiplier else self.read_base(inputs)


def _scale_benefits(inputs, value):
    return replace(inputs, annual_benefits=[b * value for b in inputs.annual_benefits])


_ADJUSTMENTS = [
    VariableAdjustment(
        name='initial_investment',
        label='Initial Investment',
        apply=lambda inputs, value: replace(inputs, initial_investment=value),
        read_base=lambda inputs: inputs.initial_investment
    ),
    VariableAdjustment(
        name='annual_benefits',
        label='Annual Benefits',
        apply=_scale_benefits,
        read_base=lambda inputs: _mean(inputs.annual_benefits),
        multiplier=True
    ),
    # Revenue-driven benefit estimates scale the same stream
    VariableAdjustment(
        name='revenue_increase',
        label='Revenue Increase',
        apply=_scale_benefits,
        read_base=lambda inputs: _mean(inputs.annual_benefits),
        multiplier=True
    ),
    VariableAdjustment(
        name='implementation_costs',
        label='Implementation Costs',
        apply=lambda inputs, value: replace(
            inputs, implementation_costs=[c * value for c in inputs.implementation_costs]
        ),
        read_base=lambda inputs: sum(inputs.implementation_costs),
        multiplier=True
    ),
    VariableAdjustment(
        name='maintenance_costs',
        label='Maintenance Costs',
        apply=lambda inputs, value: replace(
            inputs, maintenance_costs=[c * value for c in inputs.maintenance_costs]
        ),
        read_base=lambda inputs: _mean(inputs.maintenance_costs),
        multiplier=True
    ),
    VariableAdjustment(
        name='discount_rate',
        label='Discount Rate',
        apply=lambda inputs, value: replace(inputs, discount_rate=value),
        read_base=lambda inputs: inputs.discount_rate
    ),
    VariableAdjustment(
        name='time_horizon',
        label='Time Horizon',
        apply=lambda inputs, value: replace(inputs, time_horizon=max(1, _round_half_up(value))),
        read_base=lambda inputs: float(inputs.time_horizon)
    ),
    VariableAdjustment(
        name='risk_factor',
        label='Risk Factor',
        apply=lambda inputs, value: replace(inputs, risk_factor=max(0.0, min(1.0, value))),
        read_base=lambda inputs: inputs.risk_factor
    ),
]

VARIABLE_REGISTRY: Dict[str, VariableAdjustment] = {a.name: a for a in _ADJUSTMENTS}


def get_adjustment(variable: str) -> VariableAdjustment:
    """
    Look up a registered variable.

    Raises:
        UnknownVariableError: if the name is not registered
    """
    try:
        return VARIABLE_REGISTRY[variable]
    except KeyError:
        raise UnknownVariableError(variable) from None


def apply_variable(inputs: ReturnCalculationInputs, variable: str, value: float) -> ReturnCalculationInputs:
    """Return a copy of inputs with one variable adjusted"""
    return get_adjustment(variable).apply(inputs, value)


def read_base_value(inputs: ReturnCalculationInputs, variable: str) -> float:
    return get_adjustment(variable).read_base(inputs)


def variable_label(variable: str) -> str:
    """Human label for charts; unregistered names are title-cased"""
    adjustment = VARIABLE_REGISTRY.get(variable)
    if adjustment:
        return adjustment.label
    return variable.replace('_', ' ').title()


def is_registered(variable: str) -> bool:
    return variable in VARIABLE_REGISTRY
