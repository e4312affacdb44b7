"""
Tests for industry benchmark ranking and market-factor commentary
"""
import pytest

from financial_models.opportunity import ImprovementOpportunity
from benchmarks.industry_benchmarks import IndustryBenchmarks, get_benchmark_comparison
from benchmarks.market_factors import get_market_factors


def make_opportunity(**overrides):
    fields = dict(
        id='opp', title='Campaign targeting', category='marketing', confidence=0.7,
        revenue_increase=40000, cost_reduction=0, investment_required=50000
    )
    fields.update(overrides)
    return ImprovementOpportunity(**fields)


@pytest.fixture
def benchmarks():
    return IndustryBenchmarks()


class TestPercentileRank:

    @pytest.fixture
    def marketing(self, benchmarks):
        return benchmarks.get_category_benchmarks('marketing')

    def test_quartiles(self, marketing):
        assert marketing['industry_average'] == 35
        assert marketing['top_quartile'] == pytest.approx(52.5)
        assert marketing['bottom_quartile'] == pytest.approx(21)

    @pytest.mark.parametrize('value, expected', [
        (0, 0),
        (21, 25),
        (28, 37.5),
        (35, 50),
        (43.75, 70),
        (52.5, 90),
        (105, 100),
        (1000, 100),
        (-50, 0)
    ])
    def test_four_bands(self, benchmarks, marketing, value, expected):
        assert benchmarks.calculate_percentile_rank(value, marketing) == pytest.approx(expected)

    def test_unknown_category_uses_default_average(self, benchmarks):
        assert benchmarks.get_category_benchmarks('facilities')['industry_average'] == 25


class TestBenchmarkComparison:

    def test_estimated_roi_preferred(self, benchmarks):
        comparison = benchmarks.get_benchmark_comparison(make_opportunity(estimated_roi=35.0), calculated_roi=5.0)
        assert comparison['company_value'] == 35.0
        assert comparison['percentile_rank'] == pytest.approx(50)
        assert comparison['metric'] == 'marketing_improvement_roi'
        assert comparison['industry'] == 'General Business'

    def test_calculated_roi_fallback(self):
        comparison = get_benchmark_comparison(make_opportunity(category='operational'), calculated_roi=30.0)
        assert comparison['company_value'] == 30.0
        assert comparison['percentile_rank'] == pytest.approx(50)


class TestMarketFactors:

    def test_economic_conditions_always_present(self):
        factors = get_market_factors(make_opportunity(category='hr'))
        assert [f['factor'] for f in factors] == ['Economic Conditions']

    def test_rules(self):
        digital = get_market_factors(make_opportunity(title='Digital onboarding', category='strategic'))
        operational = get_market_factors(make_opportunity(category='operational'))

        assert [f['factor'] for f in digital] == [
            'Economic Conditions', 'Digital Transformation Trend', 'Competitive Pressure'
        ]
        assert [f['factor'] for f in operational] == ['Economic Conditions', 'Regulatory Environment']

    def test_economic_outlook_override(self):
        text = get_market_factors(make_opportunity(), {'economic_outlook': 'Recession expected'})[0]
        detailed = get_market_factors(make_opportunity(), {'economic_outlook': {'impact': 'negative', 'weight': 0.3}})[0]

        assert text['description'] == 'Recession expected'
        assert text['impact'] == 'neutral'
        assert detailed['impact'] == 'negative'
        assert detailed['weight'] == 0.3
