"""
Shared fixtures for the impact engine tests
"""
import pytest

from financial_models.models import ReturnCalculationInputs
from financial_models.return_calculator import ReturnCalculator


@pytest.fixture
def base_inputs():
    """Three-year case with a 100k outlay and 40k yearly benefits"""
    return ReturnCalculationInputs(
        initial_investment=100000,
        annual_benefits=[40000, 40000, 40000],
        implementation_costs=[10000, 0, 0],
        maintenance_costs=[2000, 2000, 2000],
        discount_rate=0.10,
        time_horizon=3,
        risk_factor=0.2
    )


@pytest.fixture
def calculator():
    return ReturnCalculator()


@pytest.fixture
def opportunity_record():
    return {
        'id': 'opp-001',
        'title': 'Digital marketing automation',
        'category': 'marketing',
        'confidence': 0.8,
        'impact_estimate': {
            'revenue_increase': {'amount': 60000},
            'cost_reduction': {'amount': 20000}
        },
        'implementation_requirements': {
            'investment_required': 100000,
            'difficulty': 'medium'
        }
    }
