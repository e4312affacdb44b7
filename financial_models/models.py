"""
Value objects passed between the return, scenario and sensitivity engines
"""
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List, Optional

# -1 marks payback / break-even that is never reached
NOT_ACHIEVED = -1.0


@dataclass(frozen=True)
class ReturnCalculationInputs:
    """
    Cash-flow assumptions for a single return calculation.

    Yearly sequences shorter than the time horizon carry their last value
    forward; empty sequences count as zero. discount_rate and risk_factor
    are fractions, not percentage points.
    """
    initial_investment: float
    annual_benefits: List[float]
    implementation_costs: List[float] = field(default_factory=list)
    maintenance_costs: List[float] = field(default_factory=list)
    discount_rate: float = 0.10
    time_horizon: int = 3
    risk_factor: float = 0.2

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReturnCalculationResults:
    """Outputs of ReturnCalculator.calculate_roi. roi values are percentage points."""
    npv: float
    irr: float
    payback_period: float
    roi: float
    risk_adjusted_roi: float
    break_even_point: float
    total_return: float
    confidence: float

    @property
    def payback_achieved(self) -> bool:
        return self.payback_period != NOT_ACHIEVED

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class VariableRange:
    """Bounds and sampling distribution for one ranged variable"""
    variable: str
    min: float
    max: float
    distribution: str = 'uniform'

    def __post_init__(self):
        if self.min > self.max:
            raise ValueError(f"Range for {self.variable} has min {self.min} > max {self.max}")

    def clamp(self, value: float) -> float:
        return max(self.min, min(self.max, value))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Correlation:
    """Declared pairwise correlation applied during Monte Carlo sampling"""
    variable1: str
    variable2: str
    correlation: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SensitivityFactor:
    """ROI deltas (percentage points) at the low and high end of a variable's range"""
    variable: str
    base_value: float
    low_value: float
    high_value: float
    impact_low: float
    impact_high: float

    @property
    def max_impact(self) -> float:
        return max(abs(self.impact_high), abs(self.impact_low))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'variable': self.variable,
            'base_value': self.base_value,
            'low_value': self.low_value,
            'high_value': self.high_value,
            'impact_on_roi': {
                'low': self.impact_low,
                'high': self.impact_high
            }
        }


def coerce_variable_ranges(ranges: Any, default_distribution: str = 'uniform') -> List[VariableRange]:
    """
    Normalize range declarations into VariableRange objects.

    Accepts a list of VariableRange, a list of dicts with a 'variable' key,
    or a mapping of variable name to {'min', 'max'[, 'distribution']}.
    """
    if ranges is None:
        return []

    if isinstance(ranges, dict):
        items = [dict(spec, variable=name) for name, spec in ranges.items()]
    else:
        items = list(ranges)

    result = []
    for item in items:
        if isinstance(item, VariableRange):
            result.append(item)
            continue
        result.append(VariableRange(
            variable=item['variable'],
            min=float(item['min']),
            max=float(item['max']),
            distribution=item.get('distribution', default_distribution)
        ))
    return result


def coerce_correlations(correlations: Optional[List[Any]]) -> List[Correlation]:
    """Accept Correlation objects or dicts with variable1/variable2/correlation keys"""
    result = []
    for item in correlations or []:
        if isinstance(item, Correlation):
            result.append(item)
        else:
            result.append(Correlation(
                variable1=item['variable1'],
                variable2=item['variable2'],
                correlation=float(item['correlation'])
            ))
    return result


@dataclass
class ScenarioConfiguration:
    """
    One named business scenario: growth assumptions, yearly projections,
    a three-method valuation and its weight in the expected value.
    """
    name: str
    assumptions: Dict[str, float]
    projections: List[Dict[str, Any]]
    valuation: Dict[str, float]
    risk_score: float
    probability_weight: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
