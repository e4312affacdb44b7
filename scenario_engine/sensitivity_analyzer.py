"""
Sensitivity analysis: single-variable factors, interactions, tornado data and break-even search
"""
import math
import pandas as pd
from typing import Dict, Any, List, Optional, Tuple

from utils.logger import setup_logger
from utils.config_loader import get_section
from utils.exceptions import UnknownVariableError
from financial_models.models import ReturnCalculationInputs, SensitivityFactor, coerce_variable_ranges
from financial_models.return_calculator import ReturnCalculator
from financial_models.variables import apply_variable, get_adjustment, variable_label

logger = setup_logger(__name__)

DEFAULT_VARIABLE_THRESHOLDS = {
    'annual_benefits': 30,
    'implementation_costs': 25,
    'time_horizon': 20,
    'discount_rate': 15,
}

VARIABLE_RECOMMENDATIONS = {
    'annual_benefits': 'Consider conservative benefit estimates and implement milestone-based validation.',
    'implementation_costs': 'Establish detailed cost controls and contingency planning for implementation.',
    'time_horizon': 'Develop phased implementation approach to reduce timeline risks.',
    'discount_rate': 'Consider multiple discount rate scenarios in final decision making.',
}


class SensitivityAnalyzer:
    """Measures how ROI responds to each input variable and to pairs of them"""

    def __init__(self, calculator: Optional[ReturnCalculator] = None):
        self.calculator = calculator or ReturnCalculator()
        self.config = get_section('sensitivity')

        risk = self.config.get('risk_thresholds', {})
        robustness = self.config.get('robustness_thresholds', {})
        break_even = self.config.get('break_even', {})

        self.critical_fraction = self.config.get('critical_fraction', 0.3)
        self.high_risk_threshold = risk.get('high', 50)
        self.medium_risk_threshold = risk.get('medium', 20)
        self.high_priority_robustness = robustness.get('high_priority', 0.3)
        self.medium_priority_robustness = robustness.get('medium_priority', 0.6)
        self.variable_thresholds = self.config.get('variable_thresholds') or DEFAULT_VARIABLE_THRESHOLDS
        self.interaction_threshold = self.config.get('interaction_threshold', 10)
        self.break_even_iterations = break_even.get('max_iterations', 50)
        self.break_even_tolerance = break_even.get('tolerance', 0.01)
        self.break_even_multiple = break_even.get('search_multiple', 10)

    def _roi(self, inputs: ReturnCalculationInputs) -> float:
        return self.calculator.calculate_roi(inputs).roi

    def analyze_single_variable(
        self,
        base_inputs: ReturnCalculationInputs,
        variable: str,
        low: float,
        high: float,
        base_roi: Optional[float] = None
    ) -> Optional[SensitivityFactor]:
        """
        ROI deltas versus base at both ends of one variable's range.

        Returns:
            SensitivityFactor, or None if the variable is not registered
        """
        try:
            adjustment = get_adjustment(variable)
        except UnknownVariableError:
            logger.warning(f"Unknown variable for sensitivity analysis: {variable}")
            return None

        if base_roi is None:
            base_roi = self._roi(base_inputs)

        low_roi = self._roi(adjustment.apply(base_inputs, low))
        high_roi = self._roi(adjustment.apply(base_inputs, high))

        return SensitivityFactor(
            variable=variable,
            base_value=adjustment.read_base(base_inputs),
            low_value=low,
            high_value=high,
            impact_low=low_roi - base_roi,
            impact_high=high_roi - base_roi
        )

    def calculate_robustness_score(self, factors: List[SensitivityFactor]) -> float:
        """
        1 minus the average worst-case impact over 100, clamped to [0, 1].

        Impacts are ROI percentage points, so a 100-point average swing scores 0.
        """
        if not factors:
            return 1.0
        average_impact = sum(f.max_impact for f in factors) / len(factors)
        return max(0.0, min(1.0, 1 - average_impact / 100))

    def assess_risk(self, factors: List[SensitivityFactor]) -> Dict[str, List[str]]:
        """Bucket variables by worst-case ROI swing"""
        high_risk, medium_risk, low_risk = [], [], []

        for factor in factors:
            if factor.max_impact > self.high_risk_threshold:
                high_risk.append(factor.variable)
            elif factor.max_impact > self.medium_risk_threshold:
                medium_risk.append(factor.variable)
            else:
                low_risk.append(factor.variable)

        return {
            'high_risk_factors': high_risk,
            'medium_risk_factors': medium_risk,
            'low_risk_factors': low_risk
        }

    def generate_recommendations(
        self,
        factors: List[SensitivityFactor],
        critical_variables: List[str],
        robustness_score: float
    ) -> List[str]:
        recommendations = []

        if robustness_score < self.high_priority_robustness:
            recommendations.append(
                'HIGH PRIORITY: Project shows high sensitivity to input variations. '
                'Consider additional risk mitigation strategies.'
            )
        elif robustness_score < self.medium_priority_robustness:
            recommendations.append(
                'MEDIUM PRIORITY: Project has moderate sensitivity. '
                'Monitor key variables closely during implementation.'
            )
        else:
            recommendations.append('LOW RISK: Project shows good robustness to input variations.')

        if critical_variables:
            recommendations.append(
                f"Focus monitoring and control on critical variables: {', '.join(critical_variables)}"
            )

        # Top 3 most sensitive
        for factor in factors[:3]:
            threshold = self.variable_thresholds.get(factor.variable)
            template = VARIABLE_RECOMMENDATIONS.get(factor.variable)
            if template and threshold is not None and factor.max_impact > threshold:
                recommendations.append(template)

        return recommendations

    def perform_sensitivity_analysis(
        self,
        base_inputs: ReturnCalculationInputs,
        variable_ranges: Any
    ) -> Dict[str, Any]:
        """
        Rank variables by ROI sensitivity and derive risk and recommendations.

        Args:
            base_inputs: Base case assumptions
            variable_ranges: Mapping of variable name to {'min', 'max'}, or VariableRange list

        Returns:
            Dictionary with factors, critical variables, robustness score,
            risk buckets and recommendations
        """
        base_roi = self._roi(base_inputs)
        factors = []

        for variable_range in coerce_variable_ranges(variable_ranges):
            factor = self.analyze_single_variable(
                base_inputs, variable_range.variable, variable_range.min, variable_range.max, base_roi
            )
            if factor:
                factors.append(factor)

        factors.sort(key=lambda f: f.max_impact, reverse=True)

        # Rounded first so 10 x 0.3 does not ceil to 4
        critical_count = math.ceil(round(len(factors) * self.critical_fraction, 9))
        critical_variables = [f.variable for f in factors[:critical_count]]
        robustness_score = self.calculate_robustness_score(factors)

        result = {
            'factors': factors,
            'critical_variables': critical_variables,
            'robustness_score': robustness_score,
            'risk_assessment': self.assess_risk(factors),
            'recommendations': self.generate_recommendations(factors, critical_variables, robustness_score)
        }

        logger.info(
            f"Sensitivity analysis over {len(factors)} variables: robustness {robustness_score:.2f}, "
            f"critical {critical_variables}"
        )
        return result

    def perform_interaction_analysis(
        self,
        base_inputs: ReturnCalculationInputs,
        variable_pairs: List[Tuple[str, str]],
        variable_ranges: Any
    ) -> Dict[str, Any]:
        """
        Compare joint and independent effects of variable pairs at their range maxima.

        interaction_effect = combined_effect - (effect1 + effect2); pairs whose
        interaction exceeds the threshold in magnitude are reported as significant.

        Args:
            base_inputs: Base case assumptions
            variable_pairs: (variable1, variable2) tuples or {'var1', 'var2'} dicts
            variable_ranges: Ranges keyed as for perform_sensitivity_analysis

        Returns:
            Dictionary with all interactions and the significant pairs, largest first
        """
        ranges = {r.variable: r for r in coerce_variable_ranges(variable_ranges)}
        base_roi = self._roi(base_inputs)
        interactions = []

        for pair in variable_pairs:
            var1, var2 = (pair['var1'], pair['var2']) if isinstance(pair, dict) else pair

            if var1 not in ranges or var2 not in ranges:
                logger.debug(f"Skipping interaction {var1} x {var2}: missing range")
                continue

            try:
                var1_inputs = apply_variable(base_inputs, var1, ranges[var1].max)
                var2_inputs = apply_variable(base_inputs, var2, ranges[var2].max)
                combined_inputs = apply_variable(var1_inputs, var2, ranges[var2].max)
            except UnknownVariableError as e:
                logger.warning(f"Skipping interaction {var1} x {var2}: {e}")
                continue

            var1_effect = self._roi(var1_inputs) - base_roi
            var2_effect = self._roi(var2_inputs) - base_roi
            combined_effect = self._roi(combined_inputs) - base_roi
            independent_effect = var1_effect + var2_effect

            interactions.append({
                'variables': [var1, var2],
                'independent_effect': independent_effect,
                'combined_effect': combined_effect,
                'interaction_effect': combined_effect - independent_effect
            })

        significant = sorted(
            (i for i in interactions if abs(i['interaction_effect']) > self.interaction_threshold),
            key=lambda i: abs(i['interaction_effect']),
            reverse=True
        )

        return {
            'interactions': interactions,
            'significant_interactions': [i['variables'] for i in significant]
        }

    def generate_tornado_diagram_data(self, factors: List[SensitivityFactor]) -> List[Dict[str, Any]]:
        """Per-factor low/high ROI impact, widest range first"""
        rows = [
            {
                'variable': f.variable,
                'low_impact': f.impact_low,
                'high_impact': f.impact_high,
                'range': abs(f.impact_high - f.impact_low),
                'label': variable_label(f.variable)
            }
            for f in factors
        ]
        return sorted(rows, key=lambda x: x['range'], reverse=True)

    def find_break_even_value(self, base_inputs: ReturnCalculationInputs, variable: str) -> Optional[float]:
        """
        Bisect for the value of one variable at which ROI is zero.

        Searches [0, search_multiple x current value], where the current value
        is 1.0 for multiplier variables. Assumes ROI is monotonic over the
        interval; when both ends have the same sign there is no crossing to
        find and None is returned.

        Returns:
            Break-even value in the variable's adjustment units, or None
        """
        try:
            adjustment = get_adjustment(variable)
        except UnknownVariableError:
            logger.warning(f"Unknown variable for break-even search: {variable}")
            return None

        low = 0.0
        high = adjustment.search_base(base_inputs) * self.break_even_multiple
        if high <= low:
            return None

        low_roi = self._roi(adjustment.apply(base_inputs, low))
        high_roi = self._roi(adjustment.apply(base_inputs, high))

        if abs(low_roi) < self.break_even_tolerance:
            return low
        if abs(high_roi) < self.break_even_tolerance:
            return high
        if not (math.isfinite(low_roi) and math.isfinite(high_roi)) or (low_roi > 0) == (high_roi > 0):
            logger.debug(f"No ROI sign change for {variable} on [{low}, {high}]")
            return None

        increasing = high_roi > low_roi

        for _ in range(self.break_even_iterations):
            mid = (low + high) / 2
            roi = self._roi(adjustment.apply(base_inputs, mid))

            if abs(roi) < self.break_even_tolerance:
                return mid

            if (roi > 0) == increasing:
                high = mid
            else:
                low = mid

        logger.debug(f"Break-even search for {variable} exhausted {self.break_even_iterations} iterations")
        return (low + high) / 2

    def find_break_even_points(
        self,
        base_inputs: ReturnCalculationInputs,
        sensitive_variables: List[str]
    ) -> List[Dict[str, Any]]:
        """Break-even values for each variable that crosses zero ROI inside its search interval"""
        results = []

        for variable in sensitive_variables:
            break_even = self.find_break_even_value(base_inputs, variable)
            if break_even is None:
                continue
            results.append({
                'variable': variable,
                'break_even_value': break_even,
                'current_value': get_adjustment(variable).search_base(base_inputs)
            })

        return results

    def generate_sensitivity_matrix(
        self,
        base_inputs: ReturnCalculationInputs,
        row_variable: str,
        row_values: List[float],
        column_variable: str,
        column_values: List[float],
        metric: str = 'roi'
    ) -> Tuple[pd.DataFrame, Dict[str, Any]]:
        """
        Two-way grid of a result metric across values of two variables.

        Args:
            base_inputs: Base case assumptions
            row_variable: Variable varied down the rows
            row_values: Values for the rows
            column_variable: Variable varied across the columns
            column_values: Values for the columns
            metric: ReturnCalculationResults attribute to report

        Returns:
            Tuple of (DataFrame with matrix, metadata dict)
        """
        matrix_data = []

        for row_value in row_values:
            row = {}
            row_inputs = apply_variable(base_inputs, row_variable, row_value)
            for column_value in column_values:
                results = self.calculator.calculate_roi(apply_variable(row_inputs, column_variable, column_value))
                row[column_value] = getattr(results, metric)
            matrix_data.append(row)

        df = pd.DataFrame(matrix_data, index=pd.Index(row_values, name=row_variable))
        df.columns.name = column_variable

        metadata = {
            'metric': metric,
            'row_variable': row_variable,
            'column_variable': column_variable,
            'row_label': variable_label(row_variable),
            'column_label': variable_label(column_variable),
            'base_value': getattr(self.calculator.calculate_roi(base_inputs), metric),
            'max_value': df.max().max(),
            'min_value': df.min().min()
        }

        logger.info(f"Generated {len(row_values)}x{len(column_values)} {metric} sensitivity matrix")
        return df, metadata


# Convenience function
def perform_sensitivity_analysis(
    base_inputs: ReturnCalculationInputs,
    variable_ranges: Any
) -> Dict[str, Any]:
    """Quick sensitivity analysis"""
    return SensitivityAnalyzer().perform_sensitivity_analysis(base_inputs, variable_ranges)
