"""
Multi-scenario business projections with DCF, revenue-multiple and asset-based valuation
"""
import pandas as pd
from typing import Dict, Any, List, Optional

from utils.logger import setup_logger
from utils.config_loader import get_section
from financial_models.models import ScenarioConfiguration

logger = setup_logger(__name__)

DEFAULT_ASSUMPTIONS = {
    'base': {
        'revenue_growth_rate': 0.10,
        'margin_improvement': 0.005,
        'capex_percentage': 0.05,
        'working_capital_change': 0.02
    },
    'optimistic': {
        'revenue_growth_rate': 0.20,
        'margin_improvement': 0.010,
        'capex_percentage': 0.07,
        'working_capital_change': 0.03
    },
    'conservative': {
        'revenue_growth_rate': 0.05,
        'margin_improvement': 0.002,
        'capex_percentage': 0.03,
        'working_capital_change': 0.01
    }
}

DEFAULT_WEIGHTS = {'conservative': 0.25, 'base': 0.50, 'optimistic': 0.25}

# Multiple applied to the industry multiple per scenario
MULTIPLE_ADJUSTMENTS = {'conservative': 0.8, 'base': 1.0, 'optimistic': 1.2}

COMPETITION_RISK = {'low': 0, 'medium': 10, 'high': 20}
MATURITY_RISK = {'emerging': 20, 'growing': 10, 'mature': 5}
REGULATORY_RISK = {'low': 0, 'medium': 10, 'high': 25}

DEFAULT_MARKET_CONDITIONS = {
    'competition_level': 'medium',
    'market_maturity': 'growing',
    'regulatory_risk': 'low'
}


class EnterpriseScenarioModeler:
    """Projects revenue and cash flow under growth scenarios and values each one"""

    def __init__(self):
        self.config = get_section('enterprise_scenarios')
        self.projection_years = self.config.get('projection_years', 5)
        self.discount_rate = self.config.get('discount_rate', 0.12)
        self.terminal_growth = self.config.get('terminal_growth', 0.03)
        self.industry_multiple = self.config.get('industry_multiple', 3.5)
        self.asset_revenue_ratio = self.config.get('asset_revenue_ratio', 0.8)
        self.gross_margin_cap = self.config.get('gross_margin_cap', 0.75)
        self.net_margin_cap = self.config.get('net_margin_cap', 0.35)
        self.probability_weights = self.config.get('probability_weights') or DEFAULT_WEIGHTS
        self.default_assumptions = self.config.get('assumptions') or DEFAULT_ASSUMPTIONS

    def calculate_scenario_projections(
        self,
        base_revenue: float,
        base_gross_margin: float,
        base_net_margin: float,
        assumptions: Dict[str, float],
        years: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Yearly revenue, margin and free-cash-flow projections.

        Args:
            base_revenue: Current annual revenue
            base_gross_margin: Current gross margin as a fraction
            base_net_margin: Current net margin as a fraction
            assumptions: Growth, margin, capex and working-capital rates
            years: Projection length (default from config)

        Returns:
            List of yearly projection dicts; margins in percentage points
        """
        years = years or self.projection_years
        projections = []
        revenue = base_revenue
        gross_margin = base_gross_margin
        net_margin = base_net_margin

        for year in range(1, years + 1):
            revenue *= 1 + assumptions['revenue_growth_rate']

            gross_margin = min(gross_margin + assumptions['margin_improvement'], self.gross_margin_cap)
            # Net margin improves slower than gross
            net_margin = min(net_margin + assumptions['margin_improvement'] * 0.6, self.net_margin_cap)

            net_income = revenue * net_margin
            capex = revenue * assumptions['capex_percentage']
            working_capital_change = revenue * assumptions['working_capital_change']

            projections.append({
                'year': year,
                'revenue': round(revenue),
                'gross_margin': round(gross_margin * 100, 2),
                'net_margin': round(net_margin * 100, 2),
                'cash_flow': round(net_income - capex - working_capital_change),
                'capex': round(capex)
            })

        return projections

    def calculate_scenario_valuation(
        self,
        projections: List[Dict[str, Any]],
        industry_multiple: Optional[float] = None,
        discount_rate: Optional[float] = None
    ) -> Dict[str, float]:
        """
        DCF with Gordon terminal value, final-year revenue multiple, and asset value.
        """
        multiple = self.industry_multiple if industry_multiple is None else industry_multiple
        rate = self.discount_rate if discount_rate is None else discount_rate

        if not projections:
            return {'dcf_value': 0, 'multiple_value': 0, 'asset_value': 0}

        dcf_value = sum(
            projection['cash_flow'] / (1 + rate) ** (index + 1)
            for index, projection in enumerate(projections)
        )

        if rate > self.terminal_growth:
            last_cash_flow = projections[-1]['cash_flow']
            terminal_value = last_cash_flow * (1 + self.terminal_growth) / (rate - self.terminal_growth)
            dcf_value += terminal_value / (1 + rate) ** len(projections)
        else:
            logger.warning(f"Discount rate {rate} does not exceed terminal growth, terminal value omitted")

        last_revenue = projections[-1]['revenue']
        return {
            'dcf_value': round(dcf_value),
            'multiple_value': round(last_revenue * multiple),
            'asset_value': round(last_revenue * self.asset_revenue_ratio)
        }

    def calculate_risk_score(
        self,
        assumptions: Dict[str, float],
        market_conditions: Optional[Dict[str, str]] = None
    ) -> float:
        """Risk score on 0-100 (higher is riskier)"""
        conditions = dict(DEFAULT_MARKET_CONDITIONS, **(market_conditions or {}))
        risk_score = 50

        growth = assumptions['revenue_growth_rate']
        if growth > 0.15:
            risk_score += 15
        elif growth < 0.05:
            risk_score += 10

        risk_score += COMPETITION_RISK.get(conditions['competition_level'], 10)
        risk_score += MATURITY_RISK.get(conditions['market_maturity'], 10)
        risk_score += REGULATORY_RISK.get(conditions['regulatory_risk'], 10)

        return min(100, max(0, risk_score))

    def create_scenario_model(
        self,
        base_revenue: float,
        base_gross_margin: float,
        base_net_margin: float,
        market_conditions: Optional[Dict[str, Any]] = None,
        custom_assumptions: Optional[Dict[str, Dict[str, float]]] = None
    ) -> List[ScenarioConfiguration]:
        """
        Build conservative, base and optimistic scenario configurations.

        Args:
            base_revenue: Current annual revenue
            base_gross_margin: Gross margin fraction
            base_net_margin: Net margin fraction
            market_conditions: competition_level, market_maturity, regulatory_risk, industry_multiple
            custom_assumptions: Per-scenario overrides merged over the defaults

        Returns:
            List of ScenarioConfiguration in conservative, base, optimistic order
        """
        market_conditions = market_conditions or {}
        custom_assumptions = custom_assumptions or {}
        industry_multiple = market_conditions.get('industry_multiple', self.industry_multiple)

        configurations = []
        for name in ('conservative', 'base', 'optimistic'):
            assumptions = {
                **DEFAULT_ASSUMPTIONS[name],
                **self.default_assumptions.get(name, {}),
                **custom_assumptions.get(name, {})
            }
            projections = self.calculate_scenario_projections(
                base_revenue, base_gross_margin, base_net_margin, assumptions
            )
            configurations.append(ScenarioConfiguration(
                name=name,
                assumptions=assumptions,
                projections=projections,
                valuation=self.calculate_scenario_valuation(
                    projections, industry_multiple * MULTIPLE_ADJUSTMENTS[name]
                ),
                risk_score=self.calculate_risk_score(assumptions, market_conditions),
                probability_weight=self.probability_weights.get(name, DEFAULT_WEIGHTS[name])
            ))

        logger.info(
            f"Scenario model on revenue {base_revenue:,.0f}: "
            + ', '.join(f"{c.name} DCF {c.valuation['dcf_value']:,.0f}" for c in configurations)
        )
        return configurations

    def calculate_weighted_valuation(self, configurations: List[ScenarioConfiguration]) -> Dict[str, float]:
        """Probability-weighted value per method; expected value averages the three methods"""
        weighted_dcf = sum(c.valuation['dcf_value'] * c.probability_weight for c in configurations)
        weighted_multiple = sum(c.valuation['multiple_value'] * c.probability_weight for c in configurations)
        weighted_asset = sum(c.valuation['asset_value'] * c.probability_weight for c in configurations)

        return {
            'weighted_dcf': round(weighted_dcf),
            'weighted_multiple': round(weighted_multiple),
            'weighted_asset': round(weighted_asset),
            'expected_value': round((weighted_dcf + weighted_multiple + weighted_asset) / 3)
        }

    def identify_value_drivers(
        self,
        base_case: ScenarioConfiguration,
        optimistic_case: ScenarioConfiguration
    ) -> List[Dict[str, Any]]:
        """
        Attribute the optimistic-over-base DCF uplift to growth, margin and
        working-capital differences; the remainder is 'Other Factors'.
        """
        base_value = base_case.valuation['dcf_value']
        total_impact = optimistic_case.valuation['dcf_value'] - base_value
        base_assumptions = base_case.assumptions
        optimistic_assumptions = optimistic_case.assumptions

        revenue_impact = (
            optimistic_assumptions['revenue_growth_rate'] - base_assumptions['revenue_growth_rate']
        ) * base_value * 5
        margin_impact = (
            optimistic_assumptions['margin_improvement'] - base_assumptions['margin_improvement']
        ) * base_value * 10
        working_capital_impact = (
            base_assumptions['working_capital_change'] - optimistic_assumptions['working_capital_change']
        ) * base_value * 2
        other_impact = total_impact - revenue_impact - margin_impact - working_capital_impact

        drivers = []
        for driver, impact in (
            ('Revenue Growth', revenue_impact),
            ('Margin Improvement', margin_impact),
            ('Working Capital Efficiency', working_capital_impact),
            ('Other Factors', other_impact)
        ):
            drivers.append({
                'driver': driver,
                'impact': round(impact),
                'percentage': impact / total_impact * 100 if total_impact else 0.0
            })

        return sorted(drivers, key=lambda x: x['impact'], reverse=True)

    def projections_frame(self, configuration: ScenarioConfiguration) -> pd.DataFrame:
        """Scenario projections as a DataFrame indexed by year"""
        df = pd.DataFrame(configuration.projections)
        if not df.empty:
            df = df.set_index('year')
        return df
