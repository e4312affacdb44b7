"""
Tests for sensitivity factors, interactions, tornado data and break-even search
"""
import math

import pytest

from financial_models.models import VariableRange
from financial_models.variables import apply_variable
from scenario_engine.sensitivity_analyzer import SensitivityAnalyzer, perform_sensitivity_analysis


@pytest.fixture
def analyzer(calculator):
    return SensitivityAnalyzer(calculator=calculator)


@pytest.fixture
def variable_ranges():
    return {
        'annual_benefits': {'min': 0.7, 'max': 1.3},
        'implementation_costs': {'min': 0.5, 'max': 1.5},
        'maintenance_costs': {'min': 0.8, 'max': 1.2},
        'discount_rate': {'min': 0.05, 'max': 0.15},
        'time_horizon': {'min': 2, 'max': 5}
    }


class TestSensitivityAnalysis:

    def test_factors_sorted_by_magnitude(self, analyzer, base_inputs, variable_ranges):
        factors = analyzer.perform_sensitivity_analysis(base_inputs, variable_ranges)['factors']
        magnitudes = [f.max_impact for f in factors]
        assert len(factors) == 5
        assert magnitudes == sorted(magnitudes, reverse=True)

    def test_critical_variables_count(self, analyzer, base_inputs, variable_ranges):
        result = analyzer.perform_sensitivity_analysis(base_inputs, variable_ranges)
        assert len(result['critical_variables']) == math.ceil(0.3 * 5)
        assert result['critical_variables'] == [f.variable for f in result['factors'][:2]]

    def test_critical_count_exact_at_multiples_of_ten(self, analyzer, base_inputs):
        ranges = [VariableRange('annual_benefits', 0.5 + step * 0.01, 1.5) for step in range(10)]
        result = analyzer.perform_sensitivity_analysis(base_inputs, ranges)
        assert len(result['factors']) == 10
        assert len(result['critical_variables']) == 3

    def test_robustness_in_unit_interval(self, analyzer, base_inputs, variable_ranges):
        assert 0.0 <= analyzer.perform_sensitivity_analysis(base_inputs, variable_ranges)['robustness_score'] <= 1.0

    def test_factor_deltas_against_base(self, analyzer, calculator, base_inputs):
        factor = analyzer.analyze_single_variable(base_inputs, 'annual_benefits', 0.5, 1.5)
        base_roi = calculator.calculate_roi(base_inputs).roi
        low_roi = calculator.calculate_roi(apply_variable(base_inputs, 'annual_benefits', 0.5)).roi

        assert factor.base_value == 40000
        assert factor.impact_low == pytest.approx(low_roi - base_roi)
        assert factor.impact_high > 0 > factor.impact_low
        assert factor.to_dict()['impact_on_roi']['low'] == factor.impact_low

    def test_unknown_variable_skipped(self, analyzer, base_inputs):
        assert analyzer.analyze_single_variable(base_inputs, 'headcount', 1, 2) is None
        result = analyzer.perform_sensitivity_analysis(base_inputs, {'headcount': {'min': 1, 'max': 2}})
        assert result['factors'] == []
        assert result['robustness_score'] == 1.0

    def test_risk_buckets_partition_factors(self, analyzer, base_inputs, variable_ranges):
        result = analyzer.perform_sensitivity_analysis(base_inputs, variable_ranges)
        buckets = result['risk_assessment']
        bucketed = buckets['high_risk_factors'] + buckets['medium_risk_factors'] + buckets['low_risk_factors']
        assert sorted(bucketed) == sorted(f.variable for f in result['factors'])
        assert 'discount_rate' in buckets['low_risk_factors']

    def test_recommendations_start_with_priority(self, analyzer, base_inputs, variable_ranges):
        recommendations = analyzer.perform_sensitivity_analysis(base_inputs, variable_ranges)['recommendations']
        assert recommendations[0].split(':')[0] in ('HIGH PRIORITY', 'MEDIUM PRIORITY', 'LOW RISK')

    def test_convenience_function(self, base_inputs, variable_ranges):
        assert len(perform_sensitivity_analysis(base_inputs, variable_ranges)['factors']) == 5


class TestRobustnessAndRisk:

    def test_robustness_clamped(self, analyzer, base_inputs):
        wild = analyzer.analyze_single_variable(base_inputs, 'annual_benefits', 0.0, 10.0)
        assert analyzer.calculate_robustness_score([wild]) == 0.0
        assert analyzer.calculate_robustness_score([]) == 1.0


class TestInteractions:

    def test_interaction_effect_is_combined_minus_independent(self, analyzer, base_inputs):
        ranges = {'annual_benefits': {'min': 0.7, 'max': 1.3}, 'initial_investment': {'min': 50000, 'max': 150000}}
        result = analyzer.perform_interaction_analysis(base_inputs, [('annual_benefits', 'initial_investment')], ranges)

        interaction = result['interactions'][0]
        assert interaction['variables'] == ['annual_benefits', 'initial_investment']
        assert interaction['interaction_effect'] == pytest.approx(
            interaction['combined_effect'] - interaction['independent_effect']
        )

    def test_significant_pairs_exceed_threshold(self, analyzer, base_inputs):
        ranges = {'annual_benefits': {'min': 0.5, 'max': 3.0}, 'initial_investment': {'min': 10000, 'max': 20000}}
        result = analyzer.perform_interaction_analysis(
            base_inputs, [{'var1': 'annual_benefits', 'var2': 'initial_investment'}], ranges
        )
        interaction = result['interactions'][0]
        significant = abs(interaction['interaction_effect']) > 10
        assert (['annual_benefits', 'initial_investment'] in result['significant_interactions']) == significant

    def test_pair_without_range_skipped(self, analyzer, base_inputs):
        result = analyzer.perform_interaction_analysis(
            base_inputs, [('annual_benefits', 'discount_rate')], {'annual_benefits': {'min': 0.7, 'max': 1.3}}
        )
        assert result['interactions'] == []


class TestTornado:

    def test_sorted_by_range(self, analyzer, base_inputs, variable_ranges):
        factors = analyzer.perform_sensitivity_analysis(base_inputs, variable_ranges)['factors']
        rows = analyzer.generate_tornado_diagram_data(factors)
        ranges = [row['range'] for row in rows]

        assert ranges == sorted(ranges, reverse=True)
        for row in rows:
            assert row['range'] == pytest.approx(abs(row['high_impact'] - row['low_impact']))
        assert {row['label'] for row in rows} >= {'Annual Benefits', 'Time Horizon'}


class TestBreakEven:

    @pytest.mark.parametrize('variable', ['annual_benefits', 'initial_investment'])
    def test_break_even_zeroes_roi(self, analyzer, calculator, base_inputs, variable):
        value = analyzer.find_break_even_value(base_inputs, variable)
        assert value is not None
        roi = calculator.calculate_roi(apply_variable(base_inputs, variable, value)).roi
        assert abs(roi) < 0.01

    def test_no_crossing_returns_none(self, analyzer, base_inputs):
        assert analyzer.find_break_even_value(base_inputs, 'discount_rate') is None

    def test_unknown_variable_returns_none(self, analyzer, base_inputs):
        assert analyzer.find_break_even_value(base_inputs, 'headcount') is None

    def test_break_even_points(self, analyzer, base_inputs):
        points = analyzer.find_break_even_points(base_inputs, ['annual_benefits', 'discount_rate', 'initial_investment'])
        assert [p['variable'] for p in points] == ['annual_benefits', 'initial_investment']
        assert points[0]['current_value'] == 1.0
        assert points[1]['current_value'] == 100000
        # A 4k surplus on 116k of costs breaks even just below the current benefits
        assert points[0]['break_even_value'] == pytest.approx(116000 / 120000, abs=1e-3)


class TestSensitivityMatrix:

    def test_matrix_shape_and_metadata(self, analyzer, calculator, base_inputs):
        df, metadata = analyzer.generate_sensitivity_matrix(
            base_inputs, 'annual_benefits', [0.8, 1.0, 1.2], 'discount_rate', [0.05, 0.10], metric='npv'
        )
        assert df.shape == (3, 2)
        assert df.index.name == 'annual_benefits'
        assert df.loc[1.0, 0.10] == pytest.approx(calculator.calculate_roi(base_inputs).npv)
        assert metadata['base_value'] == pytest.approx(calculator.calculate_roi(base_inputs).npv)
        assert metadata['min_value'] <= metadata['max_value']
