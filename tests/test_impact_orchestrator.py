"""
Tests for the comprehensive impact analysis
"""
import pytest

from financial_models.opportunity import ImprovementOpportunity, BusinessMetrics
from impact_analysis import ImpactOrchestrator, ComprehensiveImpactAnalysis, perform_comprehensive_impact_analysis
from utils.exceptions import OpportunityDataError


@pytest.fixture
def orchestrator():
    return ImpactOrchestrator(seed=7, monte_carlo_trials=50)


@pytest.fixture
def business_metrics():
    return {'industry': 'Retail', 'annual_revenue': 0, 'gross_margin': 0.4, 'net_margin': 0.08}


class TestInputConstruction:

    def test_roi_inputs_ramp_and_phasing(self, orchestrator, opportunity_record):
        opportunity = ImprovementOpportunity.from_dict(opportunity_record)
        inputs = orchestrator.create_roi_inputs(opportunity)

        assert inputs.initial_investment == 100000
        assert inputs.time_horizon == 3
        assert inputs.annual_benefits == pytest.approx([56000, 80000, 80000])
        assert inputs.implementation_costs == pytest.approx([21000, 9000, 0])
        assert inputs.maintenance_costs == pytest.approx([8000, 8000, 8000])
        assert inputs.risk_factor == pytest.approx(0.49)

    def test_category_ranges(self, orchestrator):
        financial = orchestrator.create_variable_ranges('financial')
        strategic = orchestrator.create_variable_ranges('strategic')
        operational = orchestrator.create_variable_ranges('operational')
        other = orchestrator.create_variable_ranges('hr')

        assert (financial['annual_benefits']['min'], financial['annual_benefits']['max']) == (0.8, 1.2)
        assert strategic['annual_benefits']['max'] == 2.0
        assert strategic['time_horizon']['max'] == 7
        assert (operational['implementation_costs']['min'], operational['implementation_costs']['max']) == (0.9, 1.3)
        assert other['annual_benefits'] == {'min': 0.6, 'max': 1.4}

    def test_opportunity_type(self, orchestrator):
        assert orchestrator.resolve_opportunity_type(
            ImprovementOpportunity('1', 'Process automation', 'operational', 0.5, 0, 1, 1)
        ) == 'process_automation'
        assert orchestrator.resolve_opportunity_type(
            ImprovementOpportunity('2', 'Email campaigns', 'marketing', 0.5, 1, 0, 1)
        ) == 'marketing_optimization'


class TestComprehensiveAnalysis:

    def test_analysis_contents(self, orchestrator, opportunity_record, business_metrics):
        analysis = orchestrator.perform_comprehensive_impact_analysis(opportunity_record, business_metrics)

        assert isinstance(analysis, ComprehensiveImpactAnalysis)
        assert analysis.opportunity_id == 'opp-001'
        assert 0.1 <= analysis.confidence_level <= 0.95
        assert analysis.benchmark_comparison['metric'] == 'marketing_improvement_roi'
        assert analysis.benchmark_comparison['industry'] == 'Retail'
        assert 'Digital Transformation Trend' in [f['factor'] for f in analysis.market_factors]
        assert analysis.monte_carlo['statistics']['trials'] == 50
        assert analysis.scenario_configurations == []
        assert analysis.weighted_valuation is None
        assert any('risk factor' in a.lower() for a in analysis.assumptions)

    def test_risks_sorted(self, orchestrator, opportunity_record, business_metrics):
        risks = orchestrator.perform_comprehensive_impact_analysis(opportunity_record, business_metrics).risk_assessment
        scores = [r['risk_score'] for r in risks]
        assert scores == sorted(scores, reverse=True)
        assert 'Technology Implementation' in [r['risk'] for r in risks]

    def test_sensitivity_extras(self, orchestrator, opportunity_record, business_metrics):
        sensitivity = orchestrator.perform_comprehensive_impact_analysis(
            opportunity_record, business_metrics
        ).sensitivity_analysis
        ranges = [row['range'] for row in sensitivity['tornado_data']]
        assert ranges == sorted(ranges, reverse=True)
        assert 'break_even_points' in sensitivity

    def test_confidence_blending(self, orchestrator, opportunity_record, business_metrics):
        analysis = orchestrator.perform_comprehensive_impact_analysis(opportunity_record, business_metrics)
        expected = (0.8 + analysis.roi_analysis.confidence) / 2
        expected = (expected + analysis.scenario_analysis['probability']['positive_roi']) / 2
        expected = (expected + analysis.sensitivity_analysis['robustness_score']) / 2
        if len(analysis.sensitivity_analysis['risk_assessment']['high_risk_factors']) > 2:
            expected *= 0.9
        assert analysis.confidence_level == pytest.approx(max(0.1, min(0.95, expected)))

    def test_seeded_runs_match(self, opportunity_record, business_metrics):
        first = ImpactOrchestrator(seed=3, monte_carlo_trials=40).perform_comprehensive_impact_analysis(
            opportunity_record, business_metrics
        )
        second = ImpactOrchestrator(seed=3, monte_carlo_trials=40).perform_comprehensive_impact_analysis(
            opportunity_record, business_metrics
        )
        assert first.monte_carlo['statistics'] == second.monte_carlo['statistics']
        assert first.confidence_level == second.confidence_level

    def test_monte_carlo_disabled(self, opportunity_record, business_metrics):
        analysis = ImpactOrchestrator(monte_carlo_trials=0).perform_comprehensive_impact_analysis(
            opportunity_record, business_metrics
        )
        assert analysis.monte_carlo is None

    def test_enterprise_scenarios_with_revenue(self, orchestrator, opportunity_record):
        metrics = BusinessMetrics(industry='Retail', annual_revenue=5000000, gross_margin=0.4, net_margin=0.08)
        low = orchestrator.perform_comprehensive_impact_analysis(opportunity_record, metrics, {'industry_multiple': 2.0})
        high = orchestrator.perform_comprehensive_impact_analysis(opportunity_record, metrics, {'industry_multiple': 4.0})

        assert [c.name for c in low.scenario_configurations] == ['conservative', 'base', 'optimistic']
        assert low.weighted_valuation['expected_value'] > 0
        assert high.weighted_valuation['weighted_multiple'] > low.weighted_valuation['weighted_multiple']

    def test_malformed_opportunity(self, orchestrator, business_metrics):
        with pytest.raises(OpportunityDataError):
            orchestrator.perform_comprehensive_impact_analysis({'title': 'No figures'}, business_metrics)

    def test_malformed_metrics(self, orchestrator, opportunity_record):
        with pytest.raises(OpportunityDataError):
            orchestrator.perform_comprehensive_impact_analysis(opportunity_record, {'annual_revenue': 'lots'})

    def test_convenience_function(self, opportunity_record):
        analysis = perform_comprehensive_impact_analysis(opportunity_record, None, seed=1)
        assert analysis.opportunity_id == 'opp-001'


class TestRecord:

    def test_to_record(self, orchestrator, opportunity_record, business_metrics):
        analysis = orchestrator.perform_comprehensive_impact_analysis(opportunity_record, business_metrics)
        record = analysis.to_record()
        realistic = analysis.scenario_analysis['realistic']

        projection = record['scenario_projections']['realistic']
        assert projection['revenue_impact'] == pytest.approx(realistic.total_return * 0.6)
        assert projection['cost_impact'] == pytest.approx(realistic.total_return * 0.4)
        assert projection['timeline'] == realistic.payback_period
        assert projection['probability'] == realistic.confidence

        assert isinstance(record['analysis_date'], str)
        assert isinstance(record['roi_analysis'], dict)
        assert isinstance(record['scenario_analysis']['conservative'], dict)
        assert all(isinstance(f, dict) for f in record['sensitivity_analysis']['factors'])
        assert record['monte_carlo']['trials'] == 50
