"""
Comprehensive impact analysis for improvement opportunities.

Combines the return calculation, scenario and Monte Carlo analysis,
sensitivity analysis, risk assessment, benchmarks and market commentary
into one ComprehensiveImpactAnalysis.
"""
from typing import Dict, Any, List, Optional, Union

import numpy as np

from utils.logger import setup_logger, LogContext
from utils.config_loader import get_section
from financial_models.models import ReturnCalculationInputs, ReturnCalculationResults, VariableRange
from financial_models.opportunity import ImprovementOpportunity, BusinessMetrics
from financial_models.return_calculator import ReturnCalculator
from scenario_engine.scenario_generator import ScenarioGenerator
from scenario_engine.sensitivity_analyzer import SensitivityAnalyzer
from scenario_engine.enterprise_scenarios import EnterpriseScenarioModeler
from risk_engine.risk_assessor import RiskAssessor
from benchmarks.industry_benchmarks import IndustryBenchmarks
from benchmarks.market_factors import get_market_factors
from impact_analysis.records import ComprehensiveImpactAnalysis

logger = setup_logger(__name__)

DEFAULT_BASE_RANGES = {
    'annual_benefits': {'min': 0.6, 'max': 1.4},
    'implementation_costs': {'min': 0.8, 'max': 1.5},
    'maintenance_costs': {'min': 0.9, 'max': 1.2},
    'discount_rate': {'min': 0.05, 'max': 0.15},
    'risk_factor': {'min': 0.1, 'max': 0.5},
    'time_horizon': {'min': 2, 'max': 5}
}

DEFAULT_CATEGORY_RANGES = {
    'financial': {'annual_benefits': {'min': 0.8, 'max': 1.2}},
    'strategic': {'annual_benefits': {'min': 0.5, 'max': 2.0}, 'time_horizon': {'min': 3, 'max': 7}},
    'marketing': {'annual_benefits': {'min': 0.4, 'max': 2.5}},
    'operational': {'implementation_costs': {'min': 0.9, 'max': 1.3}}
}

DEFAULT_CORRELATIONS = [
    {'variable1': 'annual_benefits', 'variable2': 'implementation_costs', 'correlation': 0.3},
    {'variable1': 'risk_factor', 'variable2': 'annual_benefits', 'correlation': -0.4}
]

BREAK_EVEN_VARIABLES = ('annual_benefits', 'initial_investment', 'implementation_costs')

METHODOLOGY = (
    'Multi-method financial analysis combining discounted cash flow (NPV, IRR, payback), '
    'conservative/realistic/optimistic scenario modeling, correlated Monte Carlo simulation, '
    'single-variable and interaction sensitivity analysis, rule-based risk assessment and '
    'industry benchmark comparison.'
)


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


class ImpactOrchestrator:
    """
    Runs every analysis for one opportunity.

    One numpy Generator drives all Monte Carlo sampling, so a fixed seed
    reproduces the whole analysis.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        monte_carlo_trials: Optional[int] = None
    ):
        self.calculator = ReturnCalculator()
        self.scenario_generator = ScenarioGenerator(rng=rng, seed=seed, calculator=self.calculator)
        self.sensitivity_analyzer = SensitivityAnalyzer(calculator=self.calculator)
        self.enterprise_modeler = EnterpriseScenarioModeler()
        self.risk_assessor = RiskAssessor()
        self.benchmarks = IndustryBenchmarks()

        self.config = get_section('impact_model')
        self.time_horizon = self.config.get('time_horizon', 3)
        self.discount_rate = self.config.get('discount_rate', 0.10)
        self.ramp_step = self.config.get('ramp_step', 0.7)
        self.implementation_cost_ratio = self.config.get('implementation_cost_ratio', 0.3)
        self.implementation_phasing = self.config.get('implementation_phasing') or [0.7, 0.3, 0.0]
        self.maintenance_ratio = self.config.get('maintenance_ratio', 0.1)
        self.base_ranges = self.config.get('base_ranges') or DEFAULT_BASE_RANGES
        self.category_ranges = self.config.get('category_ranges') or DEFAULT_CATEGORY_RANGES
        self.correlations = get_section('scenarios').get('correlations') or DEFAULT_CORRELATIONS

        # 0 disables the simulation; None uses the configured default
        self.monte_carlo_trials = (
            self.scenario_generator.default_trials if monte_carlo_trials is None else monte_carlo_trials
        )

    def create_roi_inputs(self, opportunity: ImprovementOpportunity) -> ReturnCalculationInputs:
        """
        Cash-flow assumptions for an opportunity.

        Benefits ramp up by ramp_step per year until full run-rate;
        implementation costs are a share of the investment phased over the
        first years; maintenance is a flat share of the full run-rate benefit.
        """
        annual_benefit = opportunity.annual_benefit
        annual_benefits = [
            annual_benefit * min(1.0, (year + 1) * self.ramp_step)
            for year in range(self.time_horizon)
        ]

        implementation_total = opportunity.investment_required * self.implementation_cost_ratio
        phasing = list(self.implementation_phasing[:self.time_horizon])
        phasing += [0.0] * (self.time_horizon - len(phasing))

        return ReturnCalculationInputs(
            initial_investment=opportunity.investment_required,
            annual_benefits=annual_benefits,
            implementation_costs=[implementation_total * share for share in phasing],
            maintenance_costs=[annual_benefit * self.maintenance_ratio] * self.time_horizon,
            discount_rate=self.discount_rate,
            time_horizon=self.time_horizon,
            risk_factor=self.risk_assessor.calculate_risk_factor(opportunity)
        )

    def create_variable_ranges(self, category: str) -> Dict[str, Dict[str, float]]:
        """Base sensitivity ranges with the category's overrides applied"""
        overrides = self.category_ranges.get(category, {})
        return {
            variable: dict(spec, **overrides.get(variable, {}))
            for variable, spec in self.base_ranges.items()
        }

    def resolve_opportunity_type(self, opportunity: ImprovementOpportunity) -> str:
        """Map an opportunity onto the Monte Carlo standard-range profiles"""
        title = opportunity.title.lower()
        if 'digital' in title:
            return 'digital_transformation'
        if 'automation' in title:
            return 'process_automation'
        if opportunity.category == 'marketing':
            return 'marketing_optimization'
        return opportunity.category

    def create_scenario_inputs(self, opportunity: ImprovementOpportunity) -> Dict[str, Any]:
        """Standard Monte Carlo ranges and default correlations for the opportunity"""
        ranges: List[VariableRange] = self.scenario_generator.create_standard_variable_ranges(
            self.resolve_opportunity_type(opportunity)
        )
        return {'variable_ranges': ranges, 'correlations': self.correlations}

    def run_monte_carlo(self, base_inputs: ReturnCalculationInputs, opportunity: ImprovementOpportunity) -> Optional[Dict[str, Any]]:
        if self.monte_carlo_trials <= 0:
            return None
        scenario_inputs = self.create_scenario_inputs(opportunity)
        return self.scenario_generator.generate_correlated_scenarios(
            base_inputs,
            scenario_inputs['variable_ranges'],
            scenario_inputs['correlations'],
            self.monte_carlo_trials
        )

    def calculate_confidence_level(
        self,
        opportunity: ImprovementOpportunity,
        roi_analysis: ReturnCalculationResults,
        scenario_analysis: Dict[str, Any],
        sensitivity_analysis: Dict[str, Any]
    ) -> float:
        """
        Blend opportunity, calculation, scenario and sensitivity confidence.

        Each signal is averaged into the running value in turn, so later
        signals weigh more. More than two high-risk variables cost 10%.
        """
        confidence = (opportunity.confidence + roi_analysis.confidence) / 2
        confidence = (confidence + scenario_analysis['probability']['positive_roi']) / 2
        confidence = (confidence + sensitivity_analysis['robustness_score']) / 2

        if len(sensitivity_analysis['risk_assessment']['high_risk_factors']) > 2:
            confidence *= 0.9

        return _clamp(confidence, 0.1, 0.95)

    def build_assumptions(self, inputs: ReturnCalculationInputs) -> List[str]:
        phasing = '/'.join(f"{share * 100:.0f}%" for share in self.implementation_phasing if share)
        return [
            f"{self.time_horizon}-year analysis period",
            f"{self.discount_rate * 100:.0f}% discount rate",
            f"Benefits ramp up {self.ramp_step * 100:.0f}% per year to full run-rate",
            f"Implementation costs of {self.implementation_cost_ratio * 100:.0f}% of investment phased {phasing}",
            f"Annual maintenance costs of {self.maintenance_ratio * 100:.0f}% of benefits",
            f"Risk factor of {inputs.risk_factor * 100:.0f}% applied to risk-adjusted ROI",
            'Conservative estimates used for uncertain variables'
        ]

    def model_enterprise_scenarios(
        self,
        business_metrics: BusinessMetrics,
        market_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Enterprise scenario configurations and weighted valuation, when revenue is known"""
        if business_metrics.annual_revenue <= 0:
            return {'scenario_configurations': [], 'weighted_valuation': None}

        market_conditions = dict(market_data.get('market_conditions') or {})
        if 'industry_multiple' in market_data:
            market_conditions['industry_multiple'] = market_data['industry_multiple']

        configurations = self.enterprise_modeler.create_scenario_model(
            business_metrics.annual_revenue,
            business_metrics.gross_margin,
            business_metrics.net_margin,
            market_conditions
        )
        return {
            'scenario_configurations': configurations,
            'weighted_valuation': self.enterprise_modeler.calculate_weighted_valuation(configurations)
        }

    def perform_comprehensive_impact_analysis(
        self,
        opportunity: Union[ImprovementOpportunity, Dict[str, Any]],
        business_metrics: Union[BusinessMetrics, Dict[str, Any], None],
        market_data: Optional[Dict[str, Any]] = None
    ) -> ComprehensiveImpactAnalysis:
        """
        Run the full impact analysis for one opportunity.

        Args:
            opportunity: ImprovementOpportunity or host record
            business_metrics: BusinessMetrics or host record
            market_data: Optional economic_outlook, market_conditions, industry_multiple

        Returns:
            ComprehensiveImpactAnalysis

        Raises:
            OpportunityDataError: if the opportunity or metrics records are malformed
        """
        if not isinstance(opportunity, ImprovementOpportunity):
            opportunity = ImprovementOpportunity.from_dict(opportunity)
        if not isinstance(business_metrics, BusinessMetrics):
            business_metrics = BusinessMetrics.from_dict(business_metrics)
        market_data = market_data or {}

        with LogContext(logger, f"Impact analysis for '{opportunity.title}'"):
            roi_inputs = self.create_roi_inputs(opportunity)
            roi_analysis = self.calculator.calculate_roi(roi_inputs)

            variable_ranges = self.create_variable_ranges(opportunity.category)
            scenario_analysis = self.scenario_generator.generate_scenarios(
                roi_inputs, variable_ranges, self.correlations
            )

            sensitivity_analysis = self.sensitivity_analyzer.perform_sensitivity_analysis(roi_inputs, variable_ranges)
            sensitivity_analysis['tornado_data'] = self.sensitivity_analyzer.generate_tornado_diagram_data(
                sensitivity_analysis['factors']
            )
            sensitivity_analysis['break_even_points'] = self.sensitivity_analyzer.find_break_even_points(
                roi_inputs, list(BREAK_EVEN_VARIABLES)
            )

            monte_carlo = self.run_monte_carlo(roi_inputs, opportunity)
            enterprise = self.model_enterprise_scenarios(business_metrics, market_data)

            confidence_level = self.calculate_confidence_level(
                opportunity, roi_analysis, scenario_analysis, sensitivity_analysis
            )

            analysis = ComprehensiveImpactAnalysis(
                opportunity_id=opportunity.id,
                roi_analysis=roi_analysis,
                scenario_analysis=scenario_analysis,
                sensitivity_analysis=sensitivity_analysis,
                risk_assessment=self.risk_assessor.assess_risks(opportunity, scenario_analysis),
                benchmark_comparison=self.benchmarks.get_benchmark_comparison(
                    opportunity, roi_analysis.roi, business_metrics.industry
                ),
                market_factors=get_market_factors(opportunity, market_data),
                confidence_level=confidence_level,
                methodology=METHODOLOGY,
                assumptions=self.build_assumptions(roi_inputs),
                monte_carlo=monte_carlo,
                scenario_configurations=enterprise['scenario_configurations'],
                weighted_valuation=enterprise['weighted_valuation']
            )

        logger.info(
            f"Impact analysis for '{opportunity.title}': ROI {roi_analysis.roi:.1f}%, "
            f"NPV {roi_analysis.npv:,.0f}, confidence {confidence_level:.2f}"
        )
        return analysis


# Convenience function
def perform_comprehensive_impact_analysis(
    opportunity: Union[ImprovementOpportunity, Dict[str, Any]],
    business_metrics: Union[BusinessMetrics, Dict[str, Any], None],
    market_data: Optional[Dict[str, Any]] = None,
    seed: Optional[int] = None
) -> ComprehensiveImpactAnalysis:
    """Quick seeded comprehensive analysis"""
    return ImpactOrchestrator(seed=seed).perform_comprehensive_impact_analysis(
        opportunity, business_metrics, market_data
    )
