"""
Tests for enterprise scenario projections and valuation
"""
import pytest

from scenario_engine.enterprise_scenarios import EnterpriseScenarioModeler


@pytest.fixture
def modeler():
    return EnterpriseScenarioModeler()


@pytest.fixture
def base_assumptions():
    return {
        'revenue_growth_rate': 0.10,
        'margin_improvement': 0.005,
        'capex_percentage': 0.05,
        'working_capital_change': 0.02
    }


class TestProjections:

    def test_yearly_growth(self, modeler, base_assumptions):
        projections = modeler.calculate_scenario_projections(1000000, 0.4, 0.1, base_assumptions)
        assert [p['year'] for p in projections] == [1, 2, 3, 4, 5]
        assert projections[0]['revenue'] == 1100000
        assert projections[0]['gross_margin'] == pytest.approx(40.5)
        assert projections[0]['net_margin'] == pytest.approx(10.3)

    def test_margins_capped(self, modeler, base_assumptions):
        projections = modeler.calculate_scenario_projections(1000000, 0.749, 0.349, base_assumptions, years=3)
        assert projections[-1]['gross_margin'] == 75.0
        assert projections[-1]['net_margin'] == 35.0


class TestValuation:

    def test_terminal_value_omitted_when_rate_below_growth(self, modeler, base_assumptions):
        projections = modeler.calculate_scenario_projections(1000000, 0.4, 0.1, base_assumptions)
        valuation = modeler.calculate_scenario_valuation(projections, discount_rate=0.02)
        expected = sum(p['cash_flow'] / 1.02 ** (i + 1) for i, p in enumerate(projections))
        assert valuation['dcf_value'] == round(expected)

    def test_multiple_and_asset_values(self, modeler, base_assumptions):
        projections = modeler.calculate_scenario_projections(1000000, 0.4, 0.1, base_assumptions)
        valuation = modeler.calculate_scenario_valuation(projections, industry_multiple=2.0)
        assert valuation['multiple_value'] == round(projections[-1]['revenue'] * 2.0)
        assert valuation['asset_value'] == round(projections[-1]['revenue'] * 0.8)

    def test_empty_projections(self, modeler):
        assert modeler.calculate_scenario_valuation([]) == {'dcf_value': 0, 'multiple_value': 0, 'asset_value': 0}


class TestScenarioModel:

    def test_three_weighted_scenarios(self, modeler):
        configurations = modeler.create_scenario_model(2000000, 0.45, 0.12)
        assert [c.name for c in configurations] == ['conservative', 'base', 'optimistic']
        assert sum(c.probability_weight for c in configurations) == pytest.approx(1.0)
        assert configurations[2].valuation['multiple_value'] > configurations[0].valuation['multiple_value']

    def test_risk_scores(self, modeler):
        configurations = {c.name: c for c in modeler.create_scenario_model(2000000, 0.45, 0.12)}
        assert configurations['base'].risk_score == 70
        assert configurations['optimistic'].risk_score == 85

    def test_custom_assumptions_override(self, modeler):
        configurations = modeler.create_scenario_model(
            2000000, 0.45, 0.12, custom_assumptions={'base': {'revenue_growth_rate': 0.0}}
        )
        base = configurations[1]
        assert base.projections[-1]['revenue'] == 2000000
        assert base.assumptions['capex_percentage'] == 0.05

    def test_weighted_valuation(self, modeler):
        configurations = modeler.create_scenario_model(2000000, 0.45, 0.12)
        weighted = modeler.calculate_weighted_valuation(configurations)
        expected = round((weighted['weighted_dcf'] + weighted['weighted_multiple'] + weighted['weighted_asset']) / 3)
        assert abs(weighted['expected_value'] - expected) <= 1

    def test_value_drivers_cover_total_uplift(self, modeler):
        configurations = modeler.create_scenario_model(2000000, 0.45, 0.12)
        base, optimistic = configurations[1], configurations[2]
        drivers = modeler.identify_value_drivers(base, optimistic)
        total = optimistic.valuation['dcf_value'] - base.valuation['dcf_value']
        assert abs(sum(d['impact'] for d in drivers) - total) <= 4
        assert [d['impact'] for d in drivers] == sorted((d['impact'] for d in drivers), reverse=True)

    def test_projections_frame(self, modeler):
        configuration = modeler.create_scenario_model(2000000, 0.45, 0.12)[0]
        df = modeler.projections_frame(configuration)
        assert df.index.name == 'year'
        assert len(df) == 5
