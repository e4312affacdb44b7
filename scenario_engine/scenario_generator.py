"""
Conservative / realistic / optimistic scenarios and correlated Monte Carlo
"""
import math
import pandas as pd
import numpy as np
from typing import Dict, Any, List, Optional, Tuple

from utils.logger import setup_logger, LogContext
from utils.config_loader import get_section
from utils.exceptions import UnknownVariableError
from financial_models.models import (
    ReturnCalculationInputs,
    ReturnCalculationResults,
    VariableRange,
    Correlation,
    coerce_variable_ranges,
    coerce_correlations
)
from financial_models.return_calculator import ReturnCalculator
from financial_models.variables import apply_variable, is_registered
from scenario_engine.distributions import make_rng, sample_value

logger = setup_logger(__name__)

# (conservative pick, optimistic pick) per variable
SCENARIO_DIRECTIONS = {
    'annual_benefits': ('min', 'max'),
    'revenue_increase': ('min', 'max'),
    'initial_investment': ('max', 'min'),
    'implementation_costs': ('max', 'min'),
    'maintenance_costs': ('max', 'min'),
    'time_horizon': ('min', 'max'),
    'discount_rate': ('max', 'min'),
    'risk_factor': ('max', 'min'),
}

PERCENTILES = [5, 10, 25, 50, 75, 90, 95]

DEFAULT_STANDARD_RANGES = {
    'annual_benefits': {'min': 0.7, 'max': 1.3, 'distribution': 'normal'},
    'implementation_costs': {'min': 0.8, 'max': 1.5, 'distribution': 'triangular'},
    'maintenance_costs': {'min': 0.9, 'max': 1.2, 'distribution': 'uniform'},
    'discount_rate': {'min': 0.05, 'max': 0.15, 'distribution': 'uniform'},
    'risk_factor': {'min': 0.1, 'max': 0.4, 'distribution': 'triangular'},
}

DEFAULT_TYPE_OVERRIDES = {
    'digital_transformation': {'implementation_costs': {'min': 1.0, 'max': 2.0}},
    'process_automation': {'annual_benefits': {'min': 0.8, 'max': 1.5}},
    'marketing_optimization': {'annual_benefits': {'min': 0.6, 'max': 2.0}},
}


def nearest_rank(sorted_values: List[float], fraction: float) -> float:
    """Value at floor(fraction * n) in an ascending list"""
    index = min(len(sorted_values) - 1, int(math.floor(fraction * len(sorted_values))))
    return sorted_values[index]


class ScenarioGenerator:
    """
    Builds scenario variants of a base case and simulates ROI distributions.

    Randomness comes only from the injected generator (or one seeded from
    `seed`); the three deterministic scenarios never draw from it.
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        calculator: Optional[ReturnCalculator] = None
    ):
        self.rng = rng if rng is not None else make_rng(seed)
        self.calculator = calculator or ReturnCalculator()
        self.config = get_section('scenarios')

        self.target_return = self.config.get('target_return', 15)
        self.break_even_band = self.config.get('break_even_band', 5)
        self.default_trials = self.config.get('monte_carlo_trials', 1000)

    def _known_ranges(self, ranges: List[VariableRange]) -> List[VariableRange]:
        known = []
        for variable_range in ranges:
            if is_registered(variable_range.variable):
                known.append(variable_range)
            else:
                logger.warning(f"Unknown variable for scenario adjustment: {variable_range.variable}")
        return known

    def _apply(self, inputs: ReturnCalculationInputs, variable: str, value: float) -> ReturnCalculationInputs:
        try:
            return apply_variable(inputs, variable, value)
        except UnknownVariableError as e:
            logger.warning(f"Skipping scenario adjustment: {e}")
            return inputs

    def _build_extreme_case(
        self,
        base_case: ReturnCalculationInputs,
        ranges: List[VariableRange],
        optimistic: bool
    ) -> ReturnCalculationInputs:
        inputs = base_case
        for variable_range in ranges:
            picks = SCENARIO_DIRECTIONS.get(variable_range.variable, ('min', 'max'))
            pick = picks[1] if optimistic else picks[0]
            inputs = self._apply(inputs, variable_range.variable, getattr(variable_range, pick))
        return inputs

    def build_conservative_case(self, base_case: ReturnCalculationInputs, variable_ranges: Any) -> ReturnCalculationInputs:
        """Every ranged variable pushed to the end that hurts returns"""
        return self._build_extreme_case(base_case, coerce_variable_ranges(variable_ranges), optimistic=False)

    def build_optimistic_case(self, base_case: ReturnCalculationInputs, variable_ranges: Any) -> ReturnCalculationInputs:
        """Every ranged variable pushed to the end that helps returns"""
        return self._build_extreme_case(base_case, coerce_variable_ranges(variable_ranges), optimistic=True)

    def calculate_probabilities(self, *scenarios: ReturnCalculationResults) -> Dict[str, float]:
        """
        Share of scenarios with positive ROI, inside the break-even band, and
        at or above the target return.
        """
        count = len(scenarios)
        if count == 0:
            return {'positive_roi': 0.0, 'break_even': 0.0, 'target_return': 0.0}

        positive = sum(1 for s in scenarios if s.roi > 0)
        break_even = sum(1 for s in scenarios if -self.break_even_band <= s.roi <= self.break_even_band)
        target = sum(1 for s in scenarios if s.roi >= self.target_return)

        return {
            'positive_roi': positive / count,
            'break_even': break_even / count,
            'target_return': target / count
        }

    def rank_sensitivity(self, base_case: ReturnCalculationInputs, variable_ranges: Any) -> List[Dict[str, Any]]:
        """
        Coarse ranking: largest absolute ROI deviation from base at either end of each range.
        """
        base_roi = self.calculator.calculate_roi(base_case).roi
        ranking = []

        for variable_range in self._known_ranges(coerce_variable_ranges(variable_ranges)):
            min_roi = self.calculator.calculate_roi(
                apply_variable(base_case, variable_range.variable, variable_range.min)
            ).roi
            max_roi = self.calculator.calculate_roi(
                apply_variable(base_case, variable_range.variable, variable_range.max)
            ).roi

            ranking.append({
                'variable': variable_range.variable,
                'impact_on_roi': max(abs(min_roi - base_roi), abs(max_roi - base_roi))
            })

        ranking.sort(key=lambda x: x['impact_on_roi'], reverse=True)
        return ranking

    def generate_scenarios(
        self,
        base_case: ReturnCalculationInputs,
        variable_ranges: Any,
        correlations: Optional[List[Any]] = None
    ) -> Dict[str, Any]:
        """
        Evaluate conservative, realistic and optimistic variants of a base case.

        Deterministic: identical inputs give identical results. Correlations
        are accepted for signature parity with the Monte Carlo path and only
        echoed back.

        Args:
            base_case: Realistic assumptions
            variable_ranges: Ranges as VariableRange list, dict list, or name mapping
            correlations: Optional pairwise correlations

        Returns:
            Dictionary with the three scenario results, probability block and sensitivity ranking
        """
        ranges = coerce_variable_ranges(variable_ranges)

        conservative = self.calculator.calculate_roi(self._build_extreme_case(base_case, ranges, optimistic=False))
        realistic = self.calculator.calculate_roi(base_case)
        optimistic = self.calculator.calculate_roi(self._build_extreme_case(base_case, ranges, optimistic=True))

        result = {
            'conservative': conservative,
            'realistic': realistic,
            'optimistic': optimistic,
            'probability': self.calculate_probabilities(conservative, realistic, optimistic),
            'sensitivity_ranking': self.rank_sensitivity(base_case, ranges),
            'correlations': [c.to_dict() for c in coerce_correlations(correlations)]
        }

        logger.info(
            f"Scenario ROI: conservative {conservative.roi:.1f}%, "
            f"realistic {realistic.roi:.1f}%, optimistic {optimistic.roi:.1f}%"
        )
        return result

    def sample_trial(
        self,
        ranges: List[VariableRange],
        correlations: List[Correlation]
    ) -> Dict[str, float]:
        """
        Draw one value per range, then apply correlations.

        The correlation step is a first-order linear nudge, not a joint
        distribution: (value1 - 0.5) * coefficient is added to variable2,
        which is then clamped back into its range. Correlations apply in
        declaration order, so a variable nudged earlier feeds later pairs.
        """
        values = {r.variable: sample_value(self.rng, r) for r in ranges}
        by_variable = {r.variable: r for r in ranges}

        for correlation in correlations:
            if correlation.variable1 not in values or correlation.variable2 not in values:
                continue
            adjustment = (values[correlation.variable1] - 0.5) * correlation.correlation
            target_range = by_variable[correlation.variable2]
            values[correlation.variable2] = target_range.clamp(values[correlation.variable2] + adjustment)

        return values

    def summarize_outcomes(self, roi_values: List[float]) -> Dict[str, Any]:
        """Mean, nearest-rank median and percentiles, population std dev"""
        # nan outcomes (zero cost base) sort last
        ordered = sorted(roi_values, key=lambda roi: (math.isnan(roi), roi))
        count = len(ordered)

        undefined = sum(1 for roi in ordered if math.isnan(roi))
        if undefined:
            logger.warning(f"{undefined} of {count} outcomes have undefined ROI (zero cost base), percentiles are unreliable")

        mean_roi = float(np.mean(ordered))
        return {
            'mean_roi': mean_roi,
            'median_roi': ordered[count // 2],
            'standard_deviation': float(np.std(ordered)),
            'percentiles': {p: nearest_rank(ordered, p / 100) for p in PERCENTILES},
            'confidence_interval': {
                'lower': nearest_rank(ordered, 0.025),
                'upper': nearest_rank(ordered, 0.975)
            },
            'probability_of_positive_roi': sum(1 for roi in ordered if roi > 0) / count,
            'trials': count
        }

    def generate_correlated_scenarios(
        self,
        base_case: ReturnCalculationInputs,
        variable_ranges: Any,
        correlations: Optional[List[Any]] = None,
        number_of_scenarios: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Monte Carlo simulation over ranged variables with pairwise correlations.

        Args:
            base_case: Assumptions each trial starts from
            variable_ranges: Ranged variables and their distributions
            correlations: Optional pairwise correlations (variable1 drives variable2)
            number_of_scenarios: Trial count (default from config, 1000)

        Returns:
            Dictionary with per-trial results, sampled-value table and statistics
        """
        trials = self.default_trials if number_of_scenarios is None else number_of_scenarios
        if trials < 1:
            raise ValueError(f"number_of_scenarios must be at least 1, got {trials}")

        ranges = self._known_ranges(coerce_variable_ranges(variable_ranges))
        pairs = coerce_correlations(correlations)

        scenarios = []
        rows = []

        with LogContext(logger, f"Monte Carlo simulation ({trials} trials, {len(ranges)} variables)"):
            for _ in range(trials):
                values = self.sample_trial(ranges, pairs)

                trial_inputs = base_case
                for variable, value in values.items():
                    trial_inputs = apply_variable(trial_inputs, variable, value)

                result = self.calculator.calculate_roi(trial_inputs)
                scenarios.append(result)
                rows.append(dict(values, roi=result.roi, npv=result.npv))

        statistics = self.summarize_outcomes([s.roi for s in scenarios])
        logger.info(
            f"Monte Carlo ROI mean {statistics['mean_roi']:.1f}%, "
            f"P5 {statistics['percentiles'][5]:.1f}%, P95 {statistics['percentiles'][95]:.1f}%"
        )

        return {
            'scenarios': scenarios,
            'samples': pd.DataFrame(rows),
            'statistics': statistics
        }

    def create_standard_variable_ranges(self, opportunity_type: str) -> List[VariableRange]:
        """
        Standard Monte Carlo ranges, with overrides for known opportunity types.

        Args:
            opportunity_type: e.g. 'digital_transformation', 'process_automation'

        Returns:
            List of VariableRange
        """
        base = self.config.get('standard_ranges') or DEFAULT_STANDARD_RANGES
        overrides = (self.config.get('opportunity_type_overrides') or DEFAULT_TYPE_OVERRIDES).get(opportunity_type, {})

        ranges = []
        for variable, spec in base.items():
            merged = dict(spec, **overrides.get(variable, {}))
            ranges.append(VariableRange(
                variable=variable,
                min=merged['min'],
                max=merged['max'],
                distribution=merged.get('distribution', 'uniform')
            ))
        return ranges


# Convenience functions
def generate_scenarios(
    base_case: ReturnCalculationInputs,
    variable_ranges: Any,
    correlations: Optional[List[Any]] = None
) -> Dict[str, Any]:
    """Quick three-scenario evaluation"""
    return ScenarioGenerator().generate_scenarios(base_case, variable_ranges, correlations)


def run_monte_carlo(
    base_case: ReturnCalculationInputs,
    variable_ranges: Any,
    correlations: Optional[List[Any]] = None,
    number_of_scenarios: int = 1000,
    seed: Optional[int] = None
) -> Tuple[Dict[str, Any], pd.DataFrame]:
    """Quick seeded Monte Carlo run returning (statistics, sample table)"""
    generator = ScenarioGenerator(seed=seed)
    result = generator.generate_correlated_scenarios(base_case, variable_ranges, correlations, number_of_scenarios)
    return result['statistics'], result['samples']
